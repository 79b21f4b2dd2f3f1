from __future__ import annotations
import time
from typing import TYPE_CHECKING, Protocol

from loguru import logger

from spread_probe.arbitrage.spread import compute_probe_result
from spread_probe.model import Asset, RoundTrip
from spread_probe.models.quote import Quote
from spread_probe.utils.error_handler import NoBuyRoute, NoSellRoute, RouteUnavailable

if TYPE_CHECKING:
    from spread_probe.config.settings import ProbeSettings


class QuoteSource(Protocol):
    async def get_quote(self, input_mint: str, output_mint: str, amount: int) -> Quote:
        ...


class SpreadEvaluator:
    """
    Prices a stablecoin -> asset -> stablecoin round trip with two
    independent quotes and classifies it against the spread threshold.
    """
    def __init__(self, quote_source: QuoteSource, stablecoin: Asset, trade_amount: int,
                 min_spread_pct: float = 0.6):
        if trade_amount <= 0:
            raise ValueError(f"trade_amount must be positive, got {trade_amount}")
        self.quote_source = quote_source
        self.stablecoin = stablecoin
        self.trade_amount = trade_amount
        self.min_spread_pct = min_spread_pct

    @classmethod
    def from_settings(cls, quote_source: QuoteSource, settings: ProbeSettings) -> SpreadEvaluator:
        return cls(
            quote_source,
            stablecoin=settings.stablecoin,
            trade_amount=settings.trade_amount,
            min_spread_pct=settings.min_spread_pct,
        )

    async def evaluate(self, asset: Asset) -> RoundTrip:
        """
        Runs both legs for `asset`.

        Raises:
            NoBuyRoute: the buy leg has no route or returned zero.
            NoSellRoute: the sell leg has no route or returned zero.
            QuoteSourceUnreachable / QuoteServiceError: passed through as-is.
        """
        start = time.perf_counter()

        try:
            buy_quote = await self.quote_source.get_quote(
                self.stablecoin.mint, asset.mint, self.trade_amount
            )
        except NoBuyRoute:
            raise
        except RouteUnavailable as e:
            raise NoBuyRoute(asset.symbol, str(e)) from e
        if buy_quote is None or buy_quote.output_amount <= 0:
            raise NoBuyRoute(asset.symbol, "route returned zero output")

        bought_amount = buy_quote.output_amount
        logger.debug(f"[{asset.symbol}] buy leg: {self.trade_amount} {self.stablecoin.symbol} units "
                     f"-> {bought_amount} via {buy_quote.route_label}")

        try:
            sell_quote = await self.quote_source.get_quote(
                asset.mint, self.stablecoin.mint, bought_amount
            )
        except NoSellRoute:
            raise
        except RouteUnavailable as e:
            raise NoSellRoute(asset.symbol, str(e)) from e
        if sell_quote is None or sell_quote.output_amount <= 0:
            raise NoSellRoute(asset.symbol, "route returned zero output")

        logger.debug(f"[{asset.symbol}] sell leg: {bought_amount} -> {sell_quote.output_amount} "
                     f"{self.stablecoin.symbol} units via {sell_quote.route_label}")

        result = compute_probe_result(
            self.trade_amount,
            bought_amount,
            sell_quote.output_amount,
            self.stablecoin.decimals,
            self.min_spread_pct,
        )
        elapsed_ms = (time.perf_counter() - start) * 1000
        return RoundTrip(asset=asset, buy_quote=buy_quote, sell_quote=sell_quote,
                         result=result, elapsed_ms=elapsed_ms)
