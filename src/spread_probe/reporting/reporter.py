from typing import Optional

from loguru import logger

from spread_probe.arbitrage.stats import SessionStats
from spread_probe.model import Asset, RoundTrip

RULE = "=" * 50


class Reporter:
    """
    Writes the human-readable console lines: per-check details, the
    opportunity banner and the session summary. Reads SessionStats, never
    writes it.
    """
    def __init__(self, stablecoin: Asset, min_spread_pct: float):
        self.stablecoin = stablecoin
        self.min_spread_pct = min_spread_pct

    def startup(self, settings):
        logger.info(RULE)
        logger.info("RWA DEX Arbitrage Probe --- SIMULATION MODE ---")
        logger.info(f"Min spread: {settings.min_spread_pct}%")
        logger.info(f"Trade amount: {self.stablecoin.from_base_units(settings.trade_amount):g} "
                    f"{self.stablecoin.symbol}")
        logger.info(f"Poll interval: {settings.poll_interval:g}s")
        logger.info(f"Monitoring {len(settings.assets)} tokens: "
                    f"{', '.join(a.symbol for a in settings.assets)}")
        logger.info(f"Quote API: {settings.quote_api_url}")
        logger.info(RULE)

    def checking(self, asset: Asset):
        logger.info(f"Checking {asset.symbol} arbitrage...")

    def round_trip(self, trip: RoundTrip):
        """Per-check lines, then the banner or the no-opportunity line."""
        result = trip.result
        logger.info(f"  Buy Route: {trip.buy_quote.route_label}")
        logger.info(f"  Sell Route: {trip.sell_quote.route_label}")
        logger.info(f"  Buy Price: ${result.buy_price:.4f}")
        logger.info(f"  Sell Price: ${result.sell_price:.4f}")
        logger.info(f"  Spread: {result.spread_pct:.3f}%")
        logger.info(f"  Net Profit: ${result.net_profit:.4f}")
        logger.info(f"  Check Time: {trip.elapsed_ms:.0f}ms")

        if result.is_opportunity:
            self.opportunity(trip)
        else:
            logger.info(f"  No opportunity (spread {result.spread_pct:.3f}% < {self.min_spread_pct}% "
                        f"or no net profit)")

    def opportunity(self, trip: RoundTrip):
        result = trip.result
        logger.success("ARBITRAGE OPPORTUNITY!")
        logger.success(f"  Token: {trip.asset.symbol}")
        logger.success(f"  Strategy: Buy {trip.buy_quote.route_label} -> Sell {trip.sell_quote.route_label}")
        logger.success(f"  Spread: {result.spread_pct:.3f}%")
        logger.success(f"  NET PROFIT: ${result.net_profit:.2f}")
        logger.warning("  SIMULATION MODE, no trade executed")

    def summary(self, stats: SessionStats, now: Optional[float] = None):
        runtime = stats.runtime_seconds(now)
        minutes, seconds = divmod(runtime, 60)

        logger.info(RULE)
        logger.info("SESSION STATISTICS")
        logger.info(RULE)
        logger.info(f"Runtime: {minutes}m {seconds}s")
        logger.info(f"Total Checks: {stats.total_checks}")
        logger.info(f"Opportunities: {stats.opportunities_found}")
        logger.info(f"Errors: {stats.errors}")
        logger.info(f"Success Rate: {stats.success_rate:.1f}%")

        last = stats.last_opportunity
        if last is not None:
            logger.info("Last Opportunity:")
            logger.info(f"  Token: {last.symbol}")
            logger.info(f"  Spread: {last.spread_pct:.2f}%")
            logger.info(f"  Profit: ${last.net_profit:.4f}")
            logger.info(f"  Time: {last.timestamp.isoformat()}")

        projected = stats.projected_daily_profit(now)
        if projected is not None:
            logger.info(f"Projected Daily (estimate, informational only): ${projected:.2f}")
        logger.info(RULE)
