"""Tests for the startup RPC health probe."""
import aiohttp
import orjson
import pytest

from spread_probe.network.rpc import RpcConnection
from spread_probe.utils.error_handler import StartupConnectivityFailure


class FakeResponse:
    def __init__(self, status, payload):
        self.status = status
        self._body = orjson.dumps(payload)

    async def read(self):
        return self._body

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    closed = False

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.posts = []

    def post(self, url, **kwargs):
        self.posts.append((url, orjson.loads(kwargs["data"])))
        if self.error is not None:
            raise self.error
        return self.response


class TestRpcConnection:

    @pytest.mark.asyncio
    async def test_get_version(self):
        session = FakeSession(FakeResponse(200, {"jsonrpc": "2.0", "id": 1,
                                                 "result": {"solana-core": "1.18.22", "feature-set": 1}}))
        rpc = RpcConnection("https://rpc.example", session=session)

        assert await rpc.get_version() == "1.18.22"
        url, payload = session.posts[0]
        assert url == "https://rpc.example"
        assert payload["method"] == "getVersion"
        assert payload["jsonrpc"] == "2.0"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response, error", [
        (FakeResponse(503, {}), None),
        (FakeResponse(200, {"error": {"code": -32601, "message": "Method not found"}}), None),
        (FakeResponse(200, {"result": {}}), None),
        (None, aiohttp.ClientConnectionError("refused")),
    ])
    async def test_failures_raise_startup_connectivity_failure(self, response, error):
        rpc = RpcConnection("https://rpc.example", session=FakeSession(response, error))

        with pytest.raises(StartupConnectivityFailure):
            await rpc.get_version()

    @pytest.mark.asyncio
    async def test_check_health_only_warns(self, log_messages):
        rpc = RpcConnection("https://rpc.example",
                            session=FakeSession(error=aiohttp.ClientConnectionError("refused")))

        assert await rpc.check_health() is False
        assert any("RPC connection issue" in m for m in log_messages)

    @pytest.mark.asyncio
    async def test_check_health_success(self, log_messages):
        session = FakeSession(FakeResponse(200, {"result": {"solana-core": "2.0.1"}}))
        rpc = RpcConnection("https://rpc.example", session=session)

        assert await rpc.check_health() is True
        assert "Connected to Solana (v2.0.1)" in log_messages
