"""
Tests for NFT Lock Status API endpoints.
"""

import asyncio
import time
from typing import Any, Sequence

import pytest
from fastapi.testclient import TestClient

from nftlock_api.config import Settings
from nftlock_api.errors import UpstreamCallError, UpstreamUnavailable
from nftlock_api.main import create_app

CONTRACT_ADDRESS = "0xd9145CCE52D386f254917e481eB44e9943F39138"
RPC_URL = "http://secret-node.internal:8545/api-key-123"


class MockCaller:
    """Contract caller double counting outbound calls."""

    def __init__(self, result: Any = True, error: Exception | None = None, delay: float = 0.0):
        self.result = result
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, list[Any]]] = []

    async def call(self, method: str, args: Sequence[Any]) -> Any:
        self.calls.append((method, list(args)))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result

    async def check_connectivity(self) -> bool:
        return self.error is None


def make_settings(**overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "_env_file": None,
        "evm_rpc_url": RPC_URL,
        "contract_address": CONTRACT_ADDRESS,
        "retry_backoff_seconds": 0.0,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def caller():
    """Create a caller returning True."""
    return MockCaller(result=True)


@pytest.fixture
def client(caller):
    """Create test client backed by the mock caller."""
    with TestClient(create_app(make_settings(), caller=caller)) as test_client:
        yield test_client


class TestHealthCheck:
    """Tests for /health endpoint."""

    def test_health_check_returns_status(self, client):
        """Health check should return status."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["evm_rpc"] is True
        assert data["network"] == "sepolia"
        assert data["contract_address"] == CONTRACT_ADDRESS
        assert "version" in data

    def test_health_degraded_without_contract(self):
        """Without a contract there is nothing to reach."""
        app = create_app(make_settings(contract_address=None))
        with TestClient(app) as test_client:
            response = test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "degraded"


class TestIsTokenLocked:
    """Tests for GET /api/isTokenLocked/{token_id}."""

    def test_locked_token(self, client, caller):
        """Token 1 locked -> {"isLocked": true}."""
        response = client.get("/api/isTokenLocked/1")
        assert response.status_code == 200
        assert response.json() == {"isLocked": True}
        assert caller.calls == [("isTokenLocked", [1])]

    def test_unlocked_token(self):
        """The remote flag is passed through unchanged."""
        caller = MockCaller(result=False)
        with TestClient(create_app(make_settings(), caller=caller)) as test_client:
            response = test_client.get("/api/isTokenLocked/42")
        assert response.status_code == 200
        assert response.json() == {"isLocked": False}

    @pytest.mark.parametrize("token_id", ["abc", "-1", "1.5", "0x01", "1e3"])
    def test_malformed_token_id(self, client, caller, token_id):
        """Malformed ids are rejected with 400 and no outbound call."""
        response = client.get(f"/api/isTokenLocked/{token_id}")
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert caller.calls == []

    def test_token_id_beyond_uint256(self, client, caller):
        response = client.get(f"/api/isTokenLocked/{2**256}")
        assert response.status_code == 400
        assert caller.calls == []

    def test_timeout_returns_504_after_deadline(self):
        """A call that never resolves yields 504 once the deadline passes."""
        caller = MockCaller(delay=30)
        app = create_app(make_settings(call_timeout_seconds=0.3), caller=caller)

        with TestClient(app) as test_client:
            started = time.monotonic()
            response = test_client.get("/api/isTokenLocked/1")
            elapsed = time.monotonic() - started

        assert response.status_code == 504
        assert response.json()["error"] == "upstream_timeout"
        assert 0.29 <= elapsed < 10

    def test_unavailable_returns_502(self):
        """Unreachable RPC is reported distinctly from a timeout."""
        caller = MockCaller(error=UpstreamUnavailable("EVM RPC endpoint unreachable"))
        with TestClient(create_app(make_settings(), caller=caller)) as test_client:
            response = test_client.get("/api/isTokenLocked/1")

        assert response.status_code == 502
        assert response.json()["error"] == "upstream_unavailable"
        # One retry
        assert len(caller.calls) == 2

    def test_call_error_returns_502(self):
        caller = MockCaller(error=UpstreamCallError("Contract call failed: execution reverted"))
        with TestClient(create_app(make_settings(), caller=caller)) as test_client:
            response = test_client.get("/api/isTokenLocked/1")

        assert response.status_code == 502
        data = response.json()
        assert data["error"] == "upstream_call_error"
        assert "execution reverted" in data["detail"]
        assert len(caller.calls) == 1

    @pytest.mark.parametrize(
        "error",
        [UpstreamUnavailable("EVM RPC endpoint unreachable"), RuntimeError(RPC_URL)],
    )
    def test_error_body_does_not_leak_rpc_url(self, error):
        caller = MockCaller(error=error)
        with TestClient(create_app(make_settings(), caller=caller)) as test_client:
            response = test_client.get("/api/isTokenLocked/1")

        assert response.status_code == 502
        assert "secret-node" not in response.text
        assert "api-key-123" not in response.text

    def test_contract_not_configured(self):
        """Without CONTRACT_ADDRESS the endpoint is unavailable."""
        app = create_app(make_settings(contract_address=None))
        with TestClient(app) as test_client:
            response = test_client.get("/api/isTokenLocked/1")
        assert response.status_code == 503
        assert response.json()["error"] == "not_configured"
        assert "CONTRACT_ADDRESS" in response.json()["detail"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
