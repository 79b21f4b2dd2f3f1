import math
from dataclasses import dataclass
from typing import Any

from spread_probe.utils.error_handler import RouteUnavailable

UNKNOWN_ROUTE = "Unknown"


def _parse_base_units(value: Any) -> int:
    """Accepts an int or an integer string. Floats and bools are rejected."""
    if isinstance(value, bool):
        raise ValueError(f"not an integer amount: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValueError(f"not an integer amount: {value!r}")


@dataclass(frozen=True)
class Quote:
    """A point-in-time conversion quote. Never mutated or cached."""
    input_mint: str
    output_mint: str
    input_amount: int
    output_amount: int
    price_impact_pct: float = 0.0
    route_label: str = UNKNOWN_ROUTE

    @classmethod
    def from_response(cls, data: Any, input_mint: str, output_mint: str, input_amount: int) -> 'Quote':
        """
        Creates a Quote from a decoded quote-service response.

        `outAmount` is required and must be an integer or an integer string.
        `priceImpactPct` defaults to 0 and the route label defaults to
        "Unknown". Anything malformed raises RouteUnavailable so no partial
        data leaves the boundary.
        """
        if not isinstance(data, dict):
            raise RouteUnavailable(f"unexpected response type {type(data).__name__}")
        if data.get('outAmount') is None:
            raise RouteUnavailable(data.get('error') or "response has no outAmount")

        try:
            output_amount = _parse_base_units(data['outAmount'])
        except ValueError as e:
            raise RouteUnavailable(f"malformed outAmount: {e}") from e
        if output_amount < 0:
            raise RouteUnavailable(f"negative outAmount {output_amount}")

        raw_impact = data.get('priceImpactPct')
        try:
            price_impact = float(raw_impact) if raw_impact not in (None, "") else 0.0
        except (TypeError, ValueError) as e:
            raise RouteUnavailable(f"malformed priceImpactPct {raw_impact!r}") from e
        if not math.isfinite(price_impact):
            raise RouteUnavailable(f"non-finite priceImpactPct {raw_impact!r}")

        route_label = UNKNOWN_ROUTE
        route_plan = data.get('routePlan')
        if isinstance(route_plan, list) and route_plan:
            swap_info = route_plan[0].get('swapInfo') if isinstance(route_plan[0], dict) else None
            if isinstance(swap_info, dict) and swap_info.get('label'):
                route_label = str(swap_info['label'])

        return cls(
            input_mint=input_mint,
            output_mint=output_mint,
            input_amount=input_amount,
            output_amount=output_amount,
            price_impact_pct=price_impact,
            route_label=route_label,
        )
