"""Ledger store - accounts, transactions and domain errors."""

from .errors import (
    AccountNotFound,
    InvalidAmount,
    InvalidDirection,
    LimitExceeded,
    TransactionError,
)
from .ledger import (
    DEFAULT_SEED_ACCOUNTS,
    AccountSeed,
    AccountSnapshot,
    AccountView,
    Direction,
    LedgerStore,
    Transaction,
)

__all__ = [
    "LedgerStore",
    "AccountSeed",
    "AccountSnapshot",
    "AccountView",
    "Direction",
    "Transaction",
    "DEFAULT_SEED_ACCOUNTS",
    "TransactionError",
    "AccountNotFound",
    "InvalidDirection",
    "InvalidAmount",
    "LimitExceeded",
]
