"""Pydantic models backing the ledger API."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from ..store.ledger import AccountSnapshot, AccountView, Transaction


# ---------------------------------------------------------------------------
# Account Models
# ---------------------------------------------------------------------------


class Account(BaseModel):
    """An account's limit and balance at one instant."""

    id: int
    limit: int
    balance: int

    @classmethod
    def from_snapshot(cls, snapshot: AccountSnapshot) -> Account:
        return cls(id=snapshot.id, limit=snapshot.limit, balance=snapshot.balance)


# ---------------------------------------------------------------------------
# Transaction Models
# ---------------------------------------------------------------------------


class TransactionRequest(BaseModel):
    """Request to credit or debit an account.

    The direction is left as a plain string so an unknown token reaches
    the ledger and is rejected as an invalid direction rather than a
    malformed body.
    """

    amount: int = Field(..., gt=0, strict=True, description="Positive integer magnitude")
    direction: str = Field(..., description="'c' for credit, 'd' for debit")
    description: str = Field(..., min_length=1)


class BalanceResponse(BaseModel):
    """Account standing right after an accepted transaction."""

    limit: int
    balance: int

    @classmethod
    def from_snapshot(cls, snapshot: AccountSnapshot) -> BalanceResponse:
        return cls(limit=snapshot.limit, balance=snapshot.balance)


class TransactionRecord(BaseModel):
    """A recorded transaction as shown on a statement."""

    amount: int
    direction: Literal["c", "d"]
    description: str
    timestamp: datetime

    @classmethod
    def from_transaction(cls, transaction: Transaction) -> TransactionRecord:
        return cls(
            amount=transaction.amount,
            direction=transaction.direction.value,
            description=transaction.description,
            timestamp=transaction.timestamp,
        )


class StatementResponse(BaseModel):
    """Account standing plus its recent transactions, newest first."""

    account: Account
    recent_transactions: list[TransactionRecord] = Field(default_factory=list)
    taken_at: datetime

    @classmethod
    def from_view(cls, view: AccountView) -> StatementResponse:
        return cls(
            account=Account.from_snapshot(view.account),
            recent_transactions=[
                TransactionRecord.from_transaction(t) for t in view.recent_transactions
            ],
            taken_at=view.taken_at,
        )


# ---------------------------------------------------------------------------
# Error Models
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
    reason: str | None = None
    correlation_id: str | None = None
