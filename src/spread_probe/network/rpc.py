import asyncio
from typing import Optional

import aiohttp
import orjson
from loguru import logger

from spread_probe.utils.error_handler import StartupConnectivityFailure


class RpcConnection:
    """
    Minimal Solana JSON-RPC connection used for the startup health probe.
    Quote requests do not depend on it.
    """
    def __init__(self, rpc_url: str, timeout_ms: int = 10000,
                 session: Optional[aiohttp.ClientSession] = None):
        self.rpc_url = rpc_url
        self.timeout_ms = timeout_ms
        self._session = session
        self._owns_session = session is None
        self._request_id = 0

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def call(self, method: str, params: Optional[list] = None):
        """Performs one JSON-RPC call and returns its `result`."""
        self._request_id += 1
        payload = {"jsonrpc": "2.0", "id": self._request_id, "method": method}
        if params:
            payload["params"] = params

        session = self._get_session()
        async with session.post(
            self.rpc_url,
            data=orjson.dumps(payload),
            headers={'Content-Type': 'application/json'},
            timeout=aiohttp.ClientTimeout(total=self.timeout_ms / 1000),
        ) as response:
            if response.status != 200:
                raise StartupConnectivityFailure(f"{method} returned HTTP {response.status}")
            body = orjson.loads(await response.read())

        if not isinstance(body, dict):
            raise StartupConnectivityFailure(f"{method} returned a non-object response")
        if body.get('error'):
            raise StartupConnectivityFailure(f"{method} failed: {body['error']}")
        return body.get('result')

    async def get_version(self) -> str:
        """
        Returns the node's `solana-core` version.

        Raises:
            StartupConnectivityFailure: the node could not be reached or answered badly.
        """
        try:
            result = await self.call("getVersion")
        except StartupConnectivityFailure:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, orjson.JSONDecodeError) as e:
            raise StartupConnectivityFailure(f"{type(e).__name__}: {e}") from e

        if not isinstance(result, dict) or 'solana-core' not in result:
            raise StartupConnectivityFailure("getVersion response has no solana-core field")
        return str(result['solana-core'])

    async def check_health(self) -> bool:
        """
        Logs the outcome of a getVersion probe. A failure is a warning only.
        """
        try:
            version = await self.get_version()
        except StartupConnectivityFailure as e:
            logger.warning(f"RPC connection issue: {e}")
            return False
        logger.success(f"Connected to Solana (v{version})")
        return True

    async def close(self):
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
            logger.debug("RPC session closed.")
