import asyncio
from typing import Optional

import aiohttp
import orjson
from loguru import logger

from spread_probe.models.quote import Quote
from spread_probe.utils.error_handler import QuoteServiceError, QuoteSourceUnreachable, RouteUnavailable

# Statuses the aggregator uses for "no route between these mints"
NO_ROUTE_STATUSES = (400, 404)


class JupiterQuoteSource:
    """
    Fetches swap quotes from the Jupiter aggregator's HTTP quote endpoint.

    One aiohttp session is kept for the lifetime of the source. Each call
    issues a fresh request; nothing is cached.
    """

    def __init__(self, base_url: str, slippage_bps: int = 50, timeout_ms: int = 10000,
                 user_agent: str = "Mozilla/5.0 (RWA-Bot/1.0)",
                 session: Optional[aiohttp.ClientSession] = None):
        self.base_url = base_url.rstrip('/')
        self.slippage_bps = slippage_bps
        self.timeout_ms = timeout_ms
        self._headers = {
            'Accept': 'application/json',
            'User-Agent': user_agent,
        }
        self._session = session
        self._owns_session = session is None

    @classmethod
    def from_settings(cls, settings, session: Optional[aiohttp.ClientSession] = None) -> 'JupiterQuoteSource':
        return cls(
            base_url=settings.quote_api_url,
            slippage_bps=settings.slippage_bps,
            timeout_ms=settings.quote_timeout_ms,
            user_agent=settings.user_agent,
            session=session,
        )

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout_ms / 1000)
            )
            self._owns_session = True
        return self._session

    async def get_quote(self, input_mint: str, output_mint: str, amount: int) -> Quote:
        """
        Quotes converting `amount` base units of `input_mint` into `output_mint`.

        Raises:
            RouteUnavailable: no route, or a body that does not hold a usable quote.
            QuoteSourceUnreachable: DNS, connection or timeout failure.
            QuoteServiceError: any other non-success HTTP status.
        """
        url = f"{self.base_url}/quote"
        params = {
            'inputMint': input_mint,
            'outputMint': output_mint,
            'amount': str(amount),
            'slippageBps': str(self.slippage_bps),
        }
        session = self._get_session()
        try:
            async with session.get(url, params=params, headers=self._headers,
                                   timeout=aiohttp.ClientTimeout(total=self.timeout_ms / 1000)) as response:
                status = response.status
                body = await response.read()
        except asyncio.TimeoutError as e:
            raise QuoteSourceUnreachable(f"request timed out after {self.timeout_ms}ms") from e
        except aiohttp.ClientConnectorError as e:
            raise QuoteSourceUnreachable(f"cannot connect to {self.base_url}: {e}") from e
        except aiohttp.ClientError as e:
            raise QuoteSourceUnreachable(f"{type(e).__name__}: {e}") from e

        logger.trace(f"GET {url} {input_mint}->{output_mint} amount={amount}: HTTP {status}")

        if status in NO_ROUTE_STATUSES:
            raise RouteUnavailable(self._error_message(body) or f"HTTP {status}")
        if status >= 300:
            raise QuoteServiceError(status, self._error_message(body))

        try:
            data = orjson.loads(body)
        except orjson.JSONDecodeError as e:
            raise RouteUnavailable(f"malformed response body: {e}") from e

        return Quote.from_response(data, input_mint, output_mint, amount)

    @staticmethod
    def _error_message(body: bytes) -> str:
        """Extracts the service's error text from a response body, if any."""
        if not body:
            return ""
        try:
            data = orjson.loads(body)
        except orjson.JSONDecodeError:
            return body[:200].decode('utf-8', errors='replace')
        if isinstance(data, dict):
            return str(data.get('error') or data.get('errorCode') or data.get('message') or "")
        return ""

    async def close(self):
        """Closes the HTTP session if this source created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
            logger.debug("Quote source session closed.")
