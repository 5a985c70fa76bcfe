"""
Business - the tenant-business every ledger row is scoped to.

Master-data maintenance (addresses, contacts, onboarding) lives outside
this project; the ledger only needs identity and accounting basis.
"""
