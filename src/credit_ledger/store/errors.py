"""Domain errors raised by the Ledger Store.

Every error is an expected rejection, not a fault: the store raises it
before touching any state, so a caller never has to undo anything.
"""

from __future__ import annotations

from typing import Any


class TransactionError(Exception):
    """Base class for all ledger rejections.

    Attributes:
        reason: Stable machine-readable code for the rejection
        account_id: Account the request targeted
    """

    reason: str = "transaction_error"

    def __init__(self, message: str, account_id: int | None = None):
        super().__init__(message)
        self.account_id = account_id


class AccountNotFound(TransactionError):
    """No account with the given id exists in the seed set."""

    reason = "account_not_found"

    def __init__(self, account_id: int):
        super().__init__(f"Account {account_id} not found", account_id)


class InvalidDirection(TransactionError):
    """Direction token is neither credit nor debit."""

    reason = "invalid_direction"

    def __init__(self, token: Any, account_id: int | None = None):
        super().__init__(f"Invalid transaction direction: {token!r}", account_id)
        self.token = token


class InvalidAmount(TransactionError):
    """Amount is not a positive integer magnitude."""

    reason = "invalid_amount"

    def __init__(self, amount: Any, account_id: int | None = None):
        super().__init__(f"Amount must be a positive integer, got {amount!r}", account_id)
        self.amount = amount


class LimitExceeded(TransactionError):
    """Debit would push the balance below the account's overdraft limit."""

    reason = "limit_exceeded"

    def __init__(self, account_id: int, limit: int, balance: int, amount: int):
        super().__init__(
            f"Debit of {amount} would take account {account_id} below its "
            f"limit of {limit} (balance {balance})",
            account_id,
        )
        self.limit = limit
        self.balance = balance
        self.amount = amount


__all__ = [
    "TransactionError",
    "AccountNotFound",
    "InvalidDirection",
    "InvalidAmount",
    "LimitExceeded",
]
