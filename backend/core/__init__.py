"""
Core - pieces shared by every ledger app.

This app provides:
- exceptions: the error taxonomy raised by commands
- write_barrier: write contexts guarding immutable rows
- NumberSequence: gapless per-business counters (sequences.get_next)
"""
