"""Core ledger service - maps HTTP-facing calls onto the Ledger Store."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status

from ..store.errors import (
    AccountNotFound,
    InvalidAmount,
    InvalidDirection,
    LimitExceeded,
    TransactionError,
)
from ..store.ledger import LedgerStore
from .config import LedgerConfig
from .logging import get_logger
from .metrics import LedgerMetrics
from .models import (
    Account,
    BalanceResponse,
    StatementResponse,
    TransactionRequest,
)

logger = get_logger(__name__)

ERROR_STATUS: dict[type[TransactionError], int] = {
    AccountNotFound: status.HTTP_404_NOT_FOUND,
    InvalidDirection: status.HTTP_400_BAD_REQUEST,
    InvalidAmount: status.HTTP_400_BAD_REQUEST,
    LimitExceeded: 422,
}


class LedgerHTTPError(HTTPException):
    """HTTPException carrying a stable rejection reason code."""

    def __init__(self, status_code: int, detail: str, reason: str):
        super().__init__(status_code=status_code, detail=detail)
        self.reason = reason

    @classmethod
    def from_error(cls, error: TransactionError) -> LedgerHTTPError:
        code = ERROR_STATUS.get(type(error), status.HTTP_400_BAD_REQUEST)
        return cls(code, str(error), error.reason)


class LedgerService:
    """Ledger business operations behind the HTTP API.

    Provides:
    - Account listing
    - Credit/debit application with limit enforcement
    - Account statements
    - Transaction outcome metrics and structured logs
    """

    def __init__(
        self,
        config: LedgerConfig,
        *,
        store: LedgerStore | None = None,
        metrics: LedgerMetrics | None = None,
    ) -> None:
        self.config = config
        self._store = store if store is not None else LedgerStore(
            config.seed_accounts,
            history_limit=config.history_limit,
        )
        self._metrics = metrics if metrics is not None else LedgerMetrics()

    @property
    def store(self) -> LedgerStore:
        return self._store

    @property
    def metrics(self) -> LedgerMetrics:
        return self._metrics

    def list_accounts(self) -> list[Account]:
        return [Account.from_snapshot(s) for s in self._store.list_accounts()]

    def apply_transaction(self, account_id: int, request: TransactionRequest) -> BalanceResponse:
        """Apply a credit or debit.

        Raises:
            LedgerHTTPError: 404 unknown account, 400 bad direction,
                422 limit exceeded or description too long
        """
        if len(request.description) > self.config.description_max_length:
            raise LedgerHTTPError(
                422,
                f"Description must be at most {self.config.description_max_length} characters",
                "invalid_description",
            )

        try:
            snapshot = self._store.apply_transaction(
                account_id,
                request.direction,
                request.amount,
                request.description,
            )
        except TransactionError as e:
            label = request.direction if request.direction in ("c", "d") else "unknown"
            self._metrics.record_transaction(label, e.reason)
            logger.info(
                "transaction_rejected",
                account_id=account_id,
                direction=request.direction,
                amount=request.amount,
                reason=e.reason,
            )
            raise LedgerHTTPError.from_error(e) from e

        self._metrics.record_transaction(request.direction, "accepted")
        logger.info(
            "transaction_applied",
            account_id=account_id,
            direction=request.direction,
            amount=request.amount,
            balance=snapshot.balance,
        )
        return BalanceResponse.from_snapshot(snapshot)

    def statement(self, account_id: int) -> StatementResponse:
        """Get an account's balance with its recent transactions.

        Raises:
            LedgerHTTPError: 404 if the account does not exist
        """
        try:
            view = self._store.get_account_view(account_id)
        except TransactionError as e:
            raise LedgerHTTPError.from_error(e) from e
        return StatementResponse.from_view(view)

    def health(self) -> dict[str, Any]:
        return {"status": "healthy", **self._store.stats()}
