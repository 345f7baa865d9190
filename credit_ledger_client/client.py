"""Credit ledger client implementation with async/sync interfaces."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import httpx

logger = logging.getLogger(__name__)

CREDIT = "c"
DEBIT = "d"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class LedgerClientError(Exception):
    """Base exception for ledger client errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reason: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class LedgerConnectionError(LedgerClientError):
    """Connection to the ledger failed."""


class LedgerNotFoundError(LedgerClientError):
    """Account not found."""


class LedgerInputError(LedgerClientError):
    """Request was rejected as malformed (bad direction, amount, description)."""


class LedgerRejectedError(LedgerClientError):
    """Debit rejected because it would exceed the account's limit."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class LedgerClientConfig:
    """Configuration for LedgerClient."""

    base_url: str
    timeout: float = 30.0
    max_retries: int = 3
    retry_backoff: float = 1.0
    connection_pool_size: int = 10

    @classmethod
    def from_env(cls) -> LedgerClientConfig:
        """Load configuration from environment variables."""
        return cls(
            base_url=os.environ.get("LEDGER_URL", "http://localhost:9999"),
            timeout=float(os.environ.get("LEDGER_TIMEOUT", "30.0")),
            max_retries=int(os.environ.get("LEDGER_MAX_RETRIES", "3")),
        )


# ---------------------------------------------------------------------------
# Response Models (mirrors server models)
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Account:
    """An account's limit and balance."""

    id: int
    limit: int
    balance: int


@dataclass(slots=True)
class Balance:
    """Account standing after a transaction."""

    limit: int
    balance: int


@dataclass(slots=True)
class StatementEntry:
    """A transaction listed on a statement."""

    amount: int
    direction: str
    description: str
    timestamp: datetime

    @property
    def signed_amount(self) -> int:
        return self.amount if self.direction == CREDIT else -self.amount


@dataclass(slots=True)
class Statement:
    """Account standing plus recent transactions, newest first."""

    account: Account
    recent_transactions: list[StatementEntry] = field(default_factory=list)
    taken_at: datetime | None = None


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _parse_statement(data: dict[str, Any]) -> Statement:
    taken_at = data.get("taken_at")
    return Statement(
        account=Account(**data["account"]),
        recent_transactions=[
            StatementEntry(
                amount=t["amount"],
                direction=t["direction"],
                description=t["description"],
                timestamp=_parse_datetime(t["timestamp"]),
            )
            for t in data.get("recent_transactions", [])
        ],
        taken_at=_parse_datetime(taken_at) if taken_at else None,
    )


def _raise_for_response(response: httpx.Response) -> None:
    """Translate error responses into client exceptions."""
    if response.status_code < 400:
        return

    try:
        body = response.json()
    except ValueError:
        body = {}
    detail = body.get("detail") if isinstance(body, dict) else None
    reason = body.get("reason") if isinstance(body, dict) else None
    message = detail if isinstance(detail, str) else response.text

    code = response.status_code
    if code == 404:
        raise LedgerNotFoundError(message or "Account not found", code, reason)
    if code == 422 and reason == "limit_exceeded":
        raise LedgerRejectedError(message, code, reason)
    if code in (400, 422):
        raise LedgerInputError(message, code, reason)
    raise LedgerClientError(f"HTTP {code}: {message}", code, reason)


def _transaction_payload(direction: str, amount: int, description: str) -> dict[str, Any]:
    return {"amount": amount, "direction": direction, "description": description}


def _headers(correlation_id: str | None) -> dict[str, str]:
    return {"X-Correlation-ID": correlation_id} if correlation_id else {}


# ---------------------------------------------------------------------------
# Async Client
# ---------------------------------------------------------------------------


class LedgerClient:
    """Async client for the credit ledger.

    Example:
        >>> async with LedgerClient("http://localhost:9999") as client:
        ...     balance = await client.debit(1, 500, "groceries")
        ...     statement = await client.get_statement(1)
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_backoff: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._config = LedgerClientConfig(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            max_retries=max_retries,
            retry_backoff=retry_backoff,
        )
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> LedgerClient:
        await self._ensure_client()
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url,
                timeout=self._config.timeout,
                limits=httpx.Limits(
                    max_connections=self._config.connection_pool_size,
                    max_keepalive_connections=5,
                ),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        correlation_id: str | None = None,
    ) -> Any:
        """Make request, retrying only connection failures.

        Ledger rejections are never retried: resending the same debit
        would be rejected the same way.
        """
        client = await self._ensure_client()

        last_error: LedgerClientError | None = None
        for attempt in range(self._config.max_retries):
            try:
                response = await client.request(
                    method, path, json=json, headers=_headers(correlation_id)
                )
            except httpx.ConnectError as e:
                last_error = LedgerConnectionError(f"Connection failed: {e}")
            except httpx.TimeoutException as e:
                last_error = LedgerConnectionError(f"Request timed out: {e}")
            else:
                _raise_for_response(response)
                return response.json()

            if attempt < self._config.max_retries - 1:
                delay = self._config.retry_backoff * (2 ** attempt)
                logger.debug(f"Retry {attempt + 1}/{self._config.max_retries} after {delay}s")
                await asyncio.sleep(delay)

        raise last_error or LedgerConnectionError("Request failed after retries")

    # -----------------------------------------------------------------------
    # Ledger API
    # -----------------------------------------------------------------------

    async def list_accounts(self, *, correlation_id: str | None = None) -> list[Account]:
        """List all accounts with their limits and balances."""
        data = await self._request("GET", "/accounts", correlation_id=correlation_id)
        return [Account(**a) for a in data]

    async def apply_transaction(
        self,
        account_id: int,
        direction: str,
        amount: int,
        description: str,
        *,
        correlation_id: str | None = None,
    ) -> Balance:
        """Credit ("c") or debit ("d") an account.

        Returns:
            Balance with the account's limit and post-transaction balance.

        Raises:
            LedgerNotFoundError: unknown account
            LedgerRejectedError: debit would exceed the limit
            LedgerInputError: invalid direction, amount or description
        """
        data = await self._request(
            "POST",
            f"/accounts/{account_id}/transactions",
            json=_transaction_payload(direction, amount, description),
            correlation_id=correlation_id,
        )
        return Balance(limit=data["limit"], balance=data["balance"])

    async def credit(self, account_id: int, amount: int, description: str, **kwargs) -> Balance:
        return await self.apply_transaction(account_id, CREDIT, amount, description, **kwargs)

    async def debit(self, account_id: int, amount: int, description: str, **kwargs) -> Balance:
        return await self.apply_transaction(account_id, DEBIT, amount, description, **kwargs)

    async def get_statement(
        self,
        account_id: int,
        *,
        correlation_id: str | None = None,
    ) -> Statement:
        """Get an account's balance and recent transactions."""
        data = await self._request(
            "GET", f"/accounts/{account_id}/statement", correlation_id=correlation_id
        )
        return _parse_statement(data)

    # -----------------------------------------------------------------------
    # Health API
    # -----------------------------------------------------------------------

    async def health(self) -> dict[str, Any]:
        """Get service health status."""
        return await self._request("GET", "/healthz")

    async def ready(self) -> bool:
        """Check if service is ready."""
        try:
            data = await self._request("GET", "/ready")
            return data.get("ready", False)
        except LedgerClientError:
            return False


# ---------------------------------------------------------------------------
# Sync Client
# ---------------------------------------------------------------------------


class LedgerClientSync:
    """Synchronous ledger client.

    Example:
        >>> with LedgerClientSync("http://localhost:9999") as client:
        ...     client.credit(1, 500, "deposit")
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        max_retries: int = 3,
        retry_backoff: float = 1.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._config = LedgerClientConfig(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            max_retries=max_retries,
            retry_backoff=retry_backoff,
        )
        self._client = httpx.Client(
            base_url=self._config.base_url,
            timeout=self._config.timeout,
            transport=transport,
        )

    def __enter__(self) -> LedgerClientSync:
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def close(self) -> None:
        """Close the client."""
        self._client.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        correlation_id: str | None = None,
    ) -> Any:
        last_error: LedgerClientError | None = None
        for attempt in range(self._config.max_retries):
            try:
                response = self._client.request(
                    method, path, json=json, headers=_headers(correlation_id)
                )
            except httpx.ConnectError as e:
                last_error = LedgerConnectionError(f"Connection failed: {e}")
            except httpx.TimeoutException as e:
                last_error = LedgerConnectionError(f"Request timed out: {e}")
            else:
                _raise_for_response(response)
                return response.json()

            if attempt < self._config.max_retries - 1:
                time.sleep(self._config.retry_backoff * (2 ** attempt))

        raise last_error or LedgerConnectionError("Request failed after retries")

    def list_accounts(self, *, correlation_id: str | None = None) -> list[Account]:
        """List all accounts."""
        data = self._request("GET", "/accounts", correlation_id=correlation_id)
        return [Account(**a) for a in data]

    def apply_transaction(
        self,
        account_id: int,
        direction: str,
        amount: int,
        description: str,
        *,
        correlation_id: str | None = None,
    ) -> Balance:
        """Credit ("c") or debit ("d") an account."""
        data = self._request(
            "POST",
            f"/accounts/{account_id}/transactions",
            json=_transaction_payload(direction, amount, description),
            correlation_id=correlation_id,
        )
        return Balance(limit=data["limit"], balance=data["balance"])

    def credit(self, account_id: int, amount: int, description: str, **kwargs) -> Balance:
        return self.apply_transaction(account_id, CREDIT, amount, description, **kwargs)

    def debit(self, account_id: int, amount: int, description: str, **kwargs) -> Balance:
        return self.apply_transaction(account_id, DEBIT, amount, description, **kwargs)

    def get_statement(self, account_id: int, *, correlation_id: str | None = None) -> Statement:
        """Get an account's balance and recent transactions."""
        data = self._request(
            "GET", f"/accounts/{account_id}/statement", correlation_id=correlation_id
        )
        return _parse_statement(data)

    def health(self) -> dict[str, Any]:
        """Get service health status."""
        return self._request("GET", "/healthz")

    def ready(self) -> bool:
        """Check if service is ready."""
        try:
            return self._request("GET", "/ready").get("ready", False)
        except LedgerClientError:
            return False
