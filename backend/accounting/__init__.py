# accounting/__init__.py
"""
Accounting app - the chart of accounts.

This app provides:
- AccountGroup: TT.GG groupings per account type
- GeneralLedgerAccount: posting and controlling accounts (TT.GG.AAAA)
- Receivable/Payable/Bank/InventoryAccount: subsidiaries (TT.GG.AAAA.SS)
- repository: account lookups per storage backend
- resolver: turns typed codes and formatted numbers into accounts

Commands handle all mutations of the chart.
"""
