from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from spread_probe.models.quote import Quote


@dataclass(frozen=True)
class Asset:
    """
    A token identified by its mint address, with the decimal precision
    used to scale human-readable amounts to integer base units.
    """
    symbol: str
    mint: str
    decimals: int
    name: Optional[str] = None

    def from_base_units(self, amount: int) -> float:
        return amount / 10 ** self.decimals


@dataclass(frozen=True)
class ProbeResult:
    """
    The derived prices of one stablecoin -> asset -> stablecoin round trip.
    """
    trade_amount: int
    bought_amount: int
    returned_amount: int
    buy_price: float
    sell_price: float
    spread_pct: float
    net_profit: float
    is_opportunity: bool


@dataclass(frozen=True)
class RoundTrip:
    """Everything one asset check produced, handed to the reporter."""
    asset: Asset
    buy_quote: Quote
    sell_quote: Quote
    result: ProbeResult
    elapsed_ms: float = 0.0


@dataclass
class Opportunity:
    """
    Represents a qualifying round trip, kept as the latest opportunity.
    """
    symbol: str
    mint: str
    spread_pct: float
    net_profit: float
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
