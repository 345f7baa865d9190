"""API contract conformance tests for the ledger endpoints.

These tests verify status codes and response shapes for every route,
including the error mapping for each ledger rejection.
"""

import uuid
import warnings

import pytest
from fastapi.testclient import TestClient

from credit_ledger.service.app import create_ledger_app
from credit_ledger.service.config import LedgerConfig
from credit_ledger.service.metrics import UNMATCHED_PATH
from credit_ledger.store import AccountSeed

pytestmark = pytest.mark.conformance


@pytest.fixture
def config():
    """Create test configuration."""
    return LedgerConfig(
        seed_accounts=(
            AccountSeed(id=1, limit=1000),
            AccountSeed(id=2, limit=80000),
        ),
        history_limit=10,
        description_max_length=10,
    )


@pytest.fixture
def app(config):
    """Create test application."""
    return create_ledger_app(config)


@pytest.fixture
def client(app):
    """Create test client."""
    return TestClient(app)


def post_transaction(client, account_id, amount, direction, description="test"):
    return client.post(
        f"/accounts/{account_id}/transactions",
        json={"amount": amount, "direction": direction, "description": description},
    )


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_healthz_returns_ok(self, client):
        response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["service"] == "credit-ledger"
        assert data["checks"]["ledger"]["accounts"] == 2
        assert "version" in data

    def test_ready_returns_ready(self, client):
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["ready"] is True

    def test_metrics_exposed(self, client):
        post_transaction(client, 1, 10, "c")
        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert 'ledger_transactions_total{direction="c",outcome="accepted"} 1' in response.text
        assert 'path="/accounts/{account_id}/transactions"' in response.text

    def test_unmatched_paths_share_one_label(self, app, client):
        for _ in range(200):
            assert client.get(f"/nope/{uuid.uuid4()}").status_code == 404

        metrics = app.state.ledger_service.metrics
        key = f"GET:{UNMATCHED_PATH}"
        assert set(metrics.request_count) == {key}
        assert metrics.request_count[key] == 200
        assert set(metrics.request_errors) == {f"{key}:404"}
        assert set(metrics.request_latency) == {key}


class TestListAccounts:
    """Tests for GET /accounts."""

    def test_lists_seeded_accounts(self, client):
        response = client.get("/accounts")

        assert response.status_code == 200
        assert response.json() == [
            {"id": 1, "limit": 1000, "balance": 0},
            {"id": 2, "limit": 80000, "balance": 0},
        ]

    def test_reflects_balances(self, client):
        post_transaction(client, 2, 500, "d")
        accounts = {a["id"]: a for a in client.get("/accounts").json()}
        assert accounts[2]["balance"] == -500


class TestTransactionEndpoint:
    """Tests for POST /accounts/{id}/transactions."""

    def test_credit_returns_limit_and_balance(self, client):
        response = post_transaction(client, 1, 250, "c")

        assert response.status_code == 200
        assert response.json() == {"limit": 1000, "balance": 250}

    def test_debit_to_exact_limit(self, client):
        response = post_transaction(client, 1, 1000, "d")

        assert response.status_code == 200
        assert response.json() == {"limit": 1000, "balance": -1000}

    def test_limit_exceeded_is_422(self, client):
        response = post_transaction(client, 1, 1001, "d")

        assert response.status_code == 422
        data = response.json()
        assert data["reason"] == "limit_exceeded"
        assert data["correlation_id"]
        assert client.get("/accounts/1/statement").json()["account"]["balance"] == 0

    def test_unknown_account_is_404(self, client):
        response = post_transaction(client, 6, 10, "c")

        assert response.status_code == 404
        assert response.json()["reason"] == "account_not_found"

    def test_invalid_direction_is_400(self, client):
        response = post_transaction(client, 1, 10, "x")

        assert response.status_code == 400
        assert response.json()["reason"] == "invalid_direction"

    def test_unknown_account_wins_over_bad_direction(self, client):
        response = post_transaction(client, 6, 10, "x")
        assert response.status_code == 404

    @pytest.mark.parametrize("amount", [0, -5, 1.5, "10", None])
    def test_invalid_amount_rejected(self, client, amount):
        response = post_transaction(client, 1, amount, "c")
        assert response.status_code == 422

    def test_description_too_long(self, client):
        response = post_transaction(client, 1, 10, "c", description="x" * 11)

        assert response.status_code == 422
        assert response.json()["reason"] == "invalid_description"

    def test_unprocessable_rejections_emit_no_deprecation(self, client):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            too_long = post_transaction(client, 1, 10, "c", description="x" * 11)
            over_limit = post_transaction(client, 1, 1001, "d")

        assert too_long.status_code == 422
        assert over_limit.status_code == 422
        assert not [w for w in caught if "HTTP_422" in str(w.message)]

    def test_description_empty(self, client):
        response = post_transaction(client, 1, 10, "c", description="")
        assert response.status_code == 422

    def test_missing_fields(self, client):
        response = client.post("/accounts/1/transactions", json={"amount": 10})
        assert response.status_code == 422

    def test_rejections_leave_no_history(self, client):
        post_transaction(client, 1, 5000, "d")
        post_transaction(client, 1, 10, "x")
        statement = client.get("/accounts/1/statement").json()
        assert statement["recent_transactions"] == []

    def test_correlation_id_propagated(self, client):
        response = client.post(
            "/accounts/1/transactions",
            json={"amount": 1, "direction": "c", "description": "x"},
            headers={"X-Correlation-ID": "corr-123"},
        )
        assert response.headers["X-Correlation-ID"] == "corr-123"
        assert response.headers["X-Request-ID"]


class TestStatementEndpoint:
    """Tests for GET /accounts/{id}/statement."""

    def test_unknown_account_is_404(self, client):
        response = client.get("/accounts/99/statement")

        assert response.status_code == 404
        assert response.json()["reason"] == "account_not_found"

    def test_empty_statement(self, client):
        response = client.get("/accounts/2/statement")

        assert response.status_code == 200
        data = response.json()
        assert data["account"] == {"id": 2, "limit": 80000, "balance": 0}
        assert data["recent_transactions"] == []
        assert "taken_at" in data

    def test_reference_scenario(self, client):
        assert post_transaction(client, 1, 1000, "d", "rent").json()["balance"] == -1000

        rejected = post_transaction(client, 1, 1, "d", "coffee")
        assert rejected.status_code == 422

        assert post_transaction(client, 1, 500, "c", "salary").json()["balance"] == -500

        data = client.get("/accounts/1/statement").json()
        assert data["account"] == {"id": 1, "limit": 1000, "balance": -500}
        assert [
            (t["direction"], t["amount"], t["description"]) for t in data["recent_transactions"]
        ] == [("c", 500, "salary"), ("d", 1000, "rent")]

    def test_statement_bounded_to_history_limit(self, client):
        for amount in range(1, 13):
            post_transaction(client, 2, amount, "c")

        data = client.get("/accounts/2/statement").json()
        assert [t["amount"] for t in data["recent_transactions"]] == list(range(12, 2, -1))
        assert data["account"]["balance"] == sum(range(1, 13))

    def test_non_integer_account_id(self, client):
        response = client.get("/accounts/abc/statement")
        assert response.status_code == 422
