import asyncio
from typing import List, Optional

from loguru import logger

from spread_probe.arbitrage.evaluator import QuoteSource, SpreadEvaluator
from spread_probe.arbitrage.stats import SessionStats
from spread_probe.config.settings import ProbeSettings, get_config
from spread_probe.data.quote_source import JupiterQuoteSource
from spread_probe.model import Asset, RoundTrip
from spread_probe.network.rpc import RpcConnection
from spread_probe.reporting.reporter import Reporter
from spread_probe.utils.error_handler import ErrorHandler, FatalLoopError


class ProbeBot:
    """
    The main class for the spread probe.

    Owns the SessionStats (single writer), drives one evaluation cycle per
    tick over every configured asset in order, and sleeps the poll interval
    between cycles. `stop()` is the cancellation token: it ends the loop at
    the next asset boundary and wakes the inter-cycle sleep.
    """
    def __init__(self, settings: ProbeSettings, quote_source: QuoteSource,
                 rpc: Optional[RpcConnection] = None,
                 reporter: Optional[Reporter] = None,
                 stats: Optional[SessionStats] = None,
                 error_handler: Optional[ErrorHandler] = None):
        self.settings = settings
        self.quote_source = quote_source
        self.rpc = rpc
        self.reporter = reporter or Reporter(settings.stablecoin, settings.min_spread_pct)
        self.stats = stats or SessionStats()
        self.error_handler = error_handler or ErrorHandler()
        self.evaluator = SpreadEvaluator.from_settings(quote_source, settings)

        self.running = False
        self._closed = False
        self._stop_event = asyncio.Event()
        self._cycle_count = 0
        self._last_summary_checks = 0

    @classmethod
    async def create(cls, settings: Optional[ProbeSettings] = None) -> 'ProbeBot':
        """
        Creates the bot with its network collaborators from configuration.
        """
        settings = settings or ProbeSettings.from_config(get_config())
        quote_source = JupiterQuoteSource.from_settings(settings)
        rpc = RpcConnection(settings.rpc_url, timeout_ms=settings.rpc_timeout_ms)
        return cls(settings, quote_source, rpc=rpc)

    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    async def check_asset(self, asset: Asset) -> Optional[RoundTrip]:
        """
        Runs one asset check. Every failure is converted into an error count
        and a log line here and never propagates further.
        """
        self.reporter.checking(asset)
        try:
            trip = await self.evaluator.evaluate(asset)
        except Exception as e:
            self.stats.record_error()
            self.error_handler.record_error(asset.symbol, e)
            return None

        self.stats.record_check(trip)
        self.error_handler.reset_error(asset.symbol)
        self.reporter.round_trip(trip)
        return trip

    async def run_cycle(self) -> List[RoundTrip]:
        """Checks every configured asset once, strictly one after another."""
        trips = []
        for asset in self.settings.assets:
            if self._stop_event.is_set():
                break
            trip = await self.check_asset(asset)
            if trip is not None:
                trips.append(trip)

        checks = self.stats.total_checks
        if checks > 0 and checks % self.settings.stats_every_checks == 0 and checks != self._last_summary_checks:
            self._last_summary_checks = checks
            self.reporter.summary(self.stats)
        return trips

    async def run(self, max_cycles: Optional[int] = None):
        """
        Starts the monitoring loop.

        Raises:
            FatalLoopError: an exception escaped the per-asset handling.
        """
        self.running = True
        self.reporter.startup(self.settings)

        if self.rpc is not None:
            await self.rpc.check_health()

        logger.info("Starting monitoring loop...")
        try:
            while not self._stop_event.is_set():
                await self.run_cycle()
                self._cycle_count += 1
                if max_cycles is not None and self._cycle_count >= max_cycles:
                    logger.info(f"Completed {self._cycle_count} cycle(s), stopping.")
                    break
                await self._sleep(self.settings.poll_interval)
        except asyncio.CancelledError:
            logger.info("Main loop received cancellation signal.")
        except Exception as e:
            raise FatalLoopError(f"{type(e).__name__}: {e}") from e
        finally:
            self.running = False

        logger.info("Bot run loop finished.")

    async def _sleep(self, seconds: float):
        """Waits for the poll interval, returning early once stopped."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

    def stop(self):
        """Requests the loop to stop. Safe to call from a signal handler."""
        if not self._stop_event.is_set():
            logger.warning("Stop requested, finishing the current check...")
            self._stop_event.set()

    async def shutdown(self):
        """
        Flushes the session summary and closes network sessions.
        """
        if self._closed:
            return
        self._closed = True
        self.stop()
        logger.info("Shutting down...")

        self.reporter.summary(self.stats)

        close = getattr(self.quote_source, 'close', None)
        if close is not None:
            await close()
        if self.rpc is not None:
            await self.rpc.close()

        logger.info("Shutdown complete.")
