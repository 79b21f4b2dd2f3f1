import time
from dataclasses import dataclass, field
from typing import Optional

from spread_probe.model import Opportunity, RoundTrip


@dataclass
class SessionStats:
    """
    Process-lifetime counters. Owned and written by the bot only.
    """
    total_checks: int = 0
    opportunities_found: int = 0
    errors: int = 0
    last_opportunity: Optional[Opportunity] = None
    total_opportunity_profit: float = 0.0
    started_at: float = field(default_factory=time.monotonic)

    def record_check(self, round_trip: RoundTrip) -> Optional[Opportunity]:
        """
        Counts one evaluated check. Returns the new Opportunity when the
        round trip qualified, None otherwise.
        """
        self.total_checks += 1
        result = round_trip.result
        if not result.is_opportunity:
            return None

        self.opportunities_found += 1
        self.total_opportunity_profit += result.net_profit
        self.last_opportunity = Opportunity(
            symbol=round_trip.asset.symbol,
            mint=round_trip.asset.mint,
            spread_pct=result.spread_pct,
            net_profit=result.net_profit,
        )
        return self.last_opportunity

    def record_error(self):
        self.errors += 1

    def runtime_seconds(self, now: Optional[float] = None) -> int:
        now = time.monotonic() if now is None else now
        return max(0, int(now - self.started_at))

    @property
    def success_rate(self) -> float:
        """Share of checks that were opportunities, in percent."""
        if self.total_checks == 0:
            return 0.0
        return self.opportunities_found / self.total_checks * 100

    @property
    def average_profit(self) -> float:
        if self.opportunities_found == 0:
            return 0.0
        return self.total_opportunity_profit / self.opportunities_found

    def projected_daily_profit(self, now: Optional[float] = None) -> Optional[float]:
        """
        Naive linear estimate: observed opportunities per hour times 24 times
        the mean opportunity profit. Informational only.
        """
        runtime = self.runtime_seconds(now)
        if self.opportunities_found == 0 or runtime <= 0:
            return None
        per_hour = self.opportunities_found / runtime * 3600
        return per_hour * 24 * self.average_profit
