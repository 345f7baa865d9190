"""Tests for the ledger client SDK."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import httpx
import pytest

from credit_ledger_client.client import (
    Account,
    Balance,
    LedgerClient,
    LedgerClientConfig,
    LedgerClientError,
    LedgerClientSync,
    LedgerConnectionError,
    LedgerInputError,
    LedgerNotFoundError,
    LedgerRejectedError,
    StatementEntry,
)

pytestmark = pytest.mark.unit

STATEMENT_BODY = {
    "account": {"id": 1, "limit": 1000, "balance": -500},
    "recent_transactions": [
        {"amount": 500, "direction": "c", "description": "salary", "timestamp": "2024-01-01T00:00:03Z"},
        {"amount": 1000, "direction": "d", "description": "rent", "timestamp": "2024-01-01T00:00:01+00:00"},
    ],
    "taken_at": "2024-01-01T00:00:04Z",
}


def error_body(status_code: int, reason: str | None, detail: str = "rejected"):
    return httpx.Response(status_code, json={"detail": detail, "reason": reason, "correlation_id": "c"})


class Recorder:
    """MockTransport handler that records requests and replays a response."""

    def __init__(self, response: httpx.Response | Exception):
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


# ---------------------------------------------------------------------------
# Model / Exception Tests
# ---------------------------------------------------------------------------


class TestModels:
    """Tests for client data models."""

    def test_statement_entry_signed_amount(self):
        ts = datetime.now(timezone.utc)
        assert StatementEntry(10, "c", "x", ts).signed_amount == 10
        assert StatementEntry(10, "d", "x", ts).signed_amount == -10

    def test_default_config(self):
        config = LedgerClientConfig(base_url="http://localhost:9999")
        assert config.timeout == 30.0
        assert config.max_retries == 3
        assert config.retry_backoff == 1.0

    def test_config_from_env(self, monkeypatch):
        monkeypatch.setenv("LEDGER_URL", "http://ledger:8080")
        monkeypatch.setenv("LEDGER_MAX_RETRIES", "5")
        config = LedgerClientConfig.from_env()
        assert config.base_url == "http://ledger:8080"
        assert config.max_retries == 5


class TestExceptions:
    """Tests for client exceptions."""

    def test_error_stores_status_and_reason(self):
        err = LedgerRejectedError("no", 422, "limit_exceeded")
        assert isinstance(err, LedgerClientError)
        assert err.status_code == 422
        assert err.reason == "limit_exceeded"

    def test_connection_error_has_no_status(self):
        err = LedgerConnectionError("down")
        assert err.status_code is None


# ---------------------------------------------------------------------------
# Sync Client Tests
# ---------------------------------------------------------------------------


class TestSyncClient:
    """Tests for LedgerClientSync against a mock transport."""

    def make_client(self, handler, **kwargs) -> LedgerClientSync:
        return LedgerClientSync(
            "http://ledger.test", transport=httpx.MockTransport(handler), **kwargs
        )

    def test_debit_sends_payload(self):
        recorder = Recorder(httpx.Response(200, json={"limit": 1000, "balance": -100}))
        with self.make_client(recorder) as client:
            balance = client.debit(1, 100, "rent", correlation_id="corr-1")

        assert balance == Balance(limit=1000, balance=-100)
        [request] = recorder.requests
        assert request.method == "POST"
        assert request.url.path == "/accounts/1/transactions"
        assert json.loads(request.content) == {"amount": 100, "direction": "d", "description": "rent"}
        assert request.headers["X-Correlation-ID"] == "corr-1"

    def test_list_accounts(self):
        recorder = Recorder(httpx.Response(200, json=[{"id": 1, "limit": 10, "balance": 0}]))
        with self.make_client(recorder) as client:
            assert client.list_accounts() == [Account(id=1, limit=10, balance=0)]

    def test_get_statement_parses_timestamps(self):
        recorder = Recorder(httpx.Response(200, json=STATEMENT_BODY))
        with self.make_client(recorder) as client:
            statement = client.get_statement(1)

        assert statement.account == Account(id=1, limit=1000, balance=-500)
        assert [t.amount for t in statement.recent_transactions] == [500, 1000]
        assert statement.recent_transactions[0].timestamp.tzinfo is not None
        assert statement.taken_at == datetime(2024, 1, 1, 0, 0, 4, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        "response,expected",
        [
            (error_body(404, "account_not_found"), LedgerNotFoundError),
            (error_body(422, "limit_exceeded"), LedgerRejectedError),
            (error_body(400, "invalid_direction"), LedgerInputError),
            (error_body(422, "invalid_description"), LedgerInputError),
            (httpx.Response(422, json={"detail": [{"msg": "bad"}]}), LedgerInputError),
            (httpx.Response(500, text="boom"), LedgerClientError),
        ],
    )
    def test_error_mapping(self, response, expected):
        recorder = Recorder(response)
        with self.make_client(recorder) as client:
            with pytest.raises(expected):
                client.credit(1, 10, "x")
        # Rejections are never retried
        assert len(recorder.requests) == 1

    def test_connection_errors_retried(self):
        recorder = Recorder(httpx.ConnectError("refused"))
        with self.make_client(recorder, max_retries=3, retry_backoff=0.0) as client:
            with pytest.raises(LedgerConnectionError):
                client.list_accounts()
        assert len(recorder.requests) == 3

    def test_ready_false_on_error(self):
        recorder = Recorder(httpx.Response(503, text="nope"))
        with self.make_client(recorder) as client:
            assert client.ready() is False


# ---------------------------------------------------------------------------
# Async Client Tests
# ---------------------------------------------------------------------------


class TestAsyncClient:
    """Tests for LedgerClient against a mock transport."""

    @pytest.mark.asyncio
    async def test_credit(self):
        recorder = Recorder(httpx.Response(200, json={"limit": 1000, "balance": 50}))
        async with LedgerClient("http://ledger.test", transport=httpx.MockTransport(recorder)) as client:
            balance = await client.credit(2, 50, "deposit")

        assert balance == Balance(limit=1000, balance=50)
        assert json.loads(recorder.requests[0].content)["direction"] == "c"

    @pytest.mark.asyncio
    async def test_statement(self):
        recorder = Recorder(httpx.Response(200, json=STATEMENT_BODY))
        async with LedgerClient("http://ledger.test", transport=httpx.MockTransport(recorder)) as client:
            statement = await client.get_statement(1)
        assert statement.recent_transactions[1].direction == "d"

    @pytest.mark.asyncio
    async def test_limit_rejection(self):
        recorder = Recorder(error_body(422, "limit_exceeded"))
        async with LedgerClient("http://ledger.test", transport=httpx.MockTransport(recorder)) as client:
            with pytest.raises(LedgerRejectedError) as exc_info:
                await client.debit(1, 10**9, "huge")
        assert exc_info.value.status_code == 422
        assert len(recorder.requests) == 1

    @pytest.mark.asyncio
    async def test_timeouts_retried(self):
        recorder = Recorder(httpx.ReadTimeout("slow"))
        client = LedgerClient(
            "http://ledger.test",
            transport=httpx.MockTransport(recorder),
            max_retries=2,
            retry_backoff=0.0,
        )
        try:
            with pytest.raises(LedgerConnectionError):
                await client.health()
        finally:
            await client.close()
        assert len(recorder.requests) == 2
