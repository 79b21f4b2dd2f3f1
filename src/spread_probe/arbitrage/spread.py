from spread_probe.model import ProbeResult


def compute_probe_result(trade_amount: int, bought_amount: int, returned_amount: int,
                         stable_decimals: int, min_spread_pct: float) -> ProbeResult:
    """
    Derives prices, spread and profit of a stablecoin round trip.

    Args:
        trade_amount: P, stablecoin base units spent on the buy leg.
        bought_amount: A, asset base units the buy leg returns.
        returned_amount: B, stablecoin base units the sell leg returns for A.
        stable_decimals: Decimal precision of the stablecoin.
        min_spread_pct: Threshold in percent (e.g., 0.6 for 0.6%).

    Returns:
        A ProbeResult. It is an opportunity only when the spread reaches the
        threshold and the absolute profit is strictly positive.
    """
    if trade_amount <= 0:
        raise ValueError(f"trade_amount must be positive, got {trade_amount}")
    if bought_amount <= 0 or returned_amount <= 0:
        raise ValueError("both legs must return a positive amount")

    buy_price = trade_amount / bought_amount
    sell_price = returned_amount / bought_amount
    spread_pct = ((sell_price - buy_price) / buy_price) * 100
    # Integers until here, only the profit is scaled to whole stablecoin units
    net_profit = (returned_amount - trade_amount) / 10 ** stable_decimals

    return ProbeResult(
        trade_amount=trade_amount,
        bought_amount=bought_amount,
        returned_amount=returned_amount,
        buy_price=buy_price,
        sell_price=sell_price,
        spread_pct=spread_pct,
        net_profit=net_profit,
        is_opportunity=spread_pct >= min_spread_pct and net_profit > 0,
    )
