"""FastAPI router for the ledger service.

Endpoints are plain sync functions, so FastAPI runs them on its worker
thread pool and the store sees genuinely concurrent callers.
"""

from typing import TYPE_CHECKING

from fastapi import APIRouter, Path, status

from .models import (
    Account,
    BalanceResponse,
    ErrorResponse,
    StatementResponse,
    TransactionRequest,
)

if TYPE_CHECKING:
    from .core import LedgerService


def build_router(service: "LedgerService") -> APIRouter:
    """Build the ledger API router.

    Args:
        service: The LedgerService instance

    Returns:
        Configured APIRouter
    """
    router = APIRouter(prefix="/accounts", tags=["accounts"])

    @router.get("", response_model=list[Account])
    def list_accounts() -> list[Account]:
        """List all seeded accounts."""
        return service.list_accounts()

    @router.post(
        "/{account_id}/transactions",
        response_model=BalanceResponse,
        responses={
            status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
            status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
            422: {"model": ErrorResponse},
        },
    )
    def create_transaction(
        request: TransactionRequest,
        account_id: int = Path(...),
    ) -> BalanceResponse:
        """Credit or debit an account.

        Returns the account's limit and balance after the transaction.
        """
        return service.apply_transaction(account_id, request)

    @router.get(
        "/{account_id}/statement",
        response_model=StatementResponse,
        responses={status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}},
    )
    def statement(account_id: int = Path(...)) -> StatementResponse:
        """Get the account's balance and most recent transactions."""
        return service.statement(account_id)

    return router
