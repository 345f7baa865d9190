"""
Credit Ledger - in-memory account ledger with overdraft limits.

Accounts are seeded at startup with a fixed credit limit; every credit or
debit is applied atomically and recorded, and debits that would take a
balance below its limit are rejected.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
