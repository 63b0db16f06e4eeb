"""Tests for the HTTP surface: routing, identity header and error format.

Dependencies that reach the database are overridden so no engine is used.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from app.api.deps import get_db, get_ledger_service
from app.core.exceptions import InsufficientBalanceError, PersistenceError
from app.main import app
from app.services.ledger_service import LedgerService
from tests.ledger_db import make_settings


async def no_db():
    yield None


@pytest.fixture
def ledger_stub() -> MagicMock:
    return MagicMock()


@pytest.fixture
def client(ledger_stub: MagicMock):
    app.dependency_overrides[get_db] = no_db
    app.dependency_overrides[get_ledger_service] = lambda: ledger_stub
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class TestIdentityHeader:

    def test_missing_consumer_header_is_unauthorized(self, client: TestClient) -> None:
        response = client.get("/api/v1/wallet")

        assert response.status_code == 401

    def test_wallet_status_without_wallet(self, client: TestClient, ledger_stub: MagicMock) -> None:
        ledger_stub.get_wallet = AsyncMock(return_value=None)

        response = client.get("/api/v1/wallet", headers={"X-Consumer-Id": "c1"})

        assert response.status_code == 200
        assert response.json() == {"hasWallet": False}
        assert ledger_stub.get_wallet.await_args.args[1] == "c1"


class TestErrorResponses:

    def test_persistence_failure_maps_to_503(self, client: TestClient, ledger_stub: MagicMock) -> None:
        ledger_stub.list_transactions = AsyncMock(side_effect=PersistenceError("list_transactions"))

        response = client.get("/api/v1/wallet/transactions", headers={"X-Consumer-Id": "c1"})

        assert response.status_code == 503
        assert response.json() == {
            "error": {
                "type": "PersistenceError",
                "message": "Ledger storage failure during list_transactions",
                "status_code": 503,
            }
        }

    def test_insufficient_balance_maps_to_400(
        self, client: TestClient, ledger_stub: MagicMock
    ) -> None:
        ledger_stub.withdraw = AsyncMock(
            side_effect=InsufficientBalanceError("w1", "usdc", "10.00", "2.25")
        )

        response = client.post(
            "/api/v1/wallet/withdraw",
            headers={"X-Consumer-Id": "c1"},
            json={
                "amount": "10.00",
                "currency": "usdc",
                "method": "wallet",
                "walletAddress": "0x" + "0" * 40,
            },
        )

        assert response.status_code == 400
        assert response.json()["error"]["type"] == "InsufficientBalanceError"

    def test_data_purchase_without_payment_is_402(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/data-purchase",
            json={"consumerId": "c1", "sources": ["netflix", "spotify"], "quantity": 11},
        )

        assert response.status_code == 402
        assert response.headers["X-Payment-Required"] == "true"
        body = response.json()
        assert body["type"] == "x402-payment-required"
        assert body["amount"] == "$22.28"
        assert body["payTo"].startswith("0x")
        assert body["metadata"]["quantity"] == "11"

    def test_data_purchase_unknown_source_is_422(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/data-purchase",
            json={"consumerId": "c1", "sources": ["myspace"], "quantity": 1},
        )

        assert response.status_code == 422
        assert response.json()["error"]["type"] == "ValidationError"

    def test_malformed_withdraw_body_uses_error_envelope(self, client: TestClient) -> None:
        response = client.post(
            "/api/v1/wallet/withdraw",
            json={"currency": "usdc", "method": "wallet"},
            headers={"X-Consumer-Id": "c1"},
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["type"] == "ValidationError"
        assert error["status_code"] == 422
        assert "amount" in error["message"]

    def test_oversized_withdraw_amount_is_422(self) -> None:
        # Amount parsing happens before the ledger touches the session
        app.dependency_overrides[get_db] = no_db
        app.dependency_overrides[get_ledger_service] = lambda: LedgerService(settings=make_settings())
        try:
            response = TestClient(app).post(
                "/api/v1/wallet/withdraw",
                headers={"X-Consumer-Id": "c1"},
                json={
                    "amount": "1e30",
                    "currency": "usdc",
                    "method": "wallet",
                    "walletAddress": "0x" + "0" * 40,
                },
            )
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 422
        assert response.json()["error"]["type"] == "ValidationError"
