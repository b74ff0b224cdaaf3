"""
Per-domain repository modules.

Each function takes an open `TransactionHandle` and encodes the
cross-collection invariants raw store primitives cannot enforce alone. The
caller owns the transaction; repositories never open one themselves.
"""
