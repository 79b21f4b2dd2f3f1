"""Tests for the two-leg spread evaluator."""
import pytest

from conftest import OUSG, USDC, FakeQuoteSource, round_trip_legs
from spread_probe.arbitrage.evaluator import SpreadEvaluator
from spread_probe.utils.error_handler import (
    NoBuyRoute,
    NoSellRoute,
    QuoteServiceError,
    QuoteSourceUnreachable,
    RouteUnavailable,
)

P = 100_000_000


def make_evaluator(legs, min_spread_pct=0.6):
    source = FakeQuoteSource(legs)
    return SpreadEvaluator(source, stablecoin=USDC, trade_amount=P, min_spread_pct=min_spread_pct), source


class TestSpreadEvaluator:
    """Leg ordering, amount hand-off and failure mapping."""

    @pytest.mark.asyncio
    async def test_end_to_end_opportunity(self):
        evaluator, _ = make_evaluator(round_trip_legs(OUSG, 100_000_000, 101_000_000))

        trip = await evaluator.evaluate(OUSG)

        assert trip.asset == OUSG
        assert trip.result.buy_price == pytest.approx(1.0)
        assert trip.result.sell_price == pytest.approx(1.01)
        assert trip.result.spread_pct == pytest.approx(1.0)
        assert trip.result.net_profit == pytest.approx(1.0)
        assert trip.result.is_opportunity is True
        assert trip.buy_quote.route_label == "Raydium"
        assert trip.elapsed_ms >= 0

    @pytest.mark.asyncio
    async def test_sell_leg_receives_exact_bought_amount(self):
        evaluator, source = make_evaluator(round_trip_legs(OUSG, 99_123_457, 100_100_000))

        await evaluator.evaluate(OUSG)

        assert source.calls == [
            (USDC.mint, OUSG.mint, P),
            (OUSG.mint, USDC.mint, 99_123_457),
        ]

    @pytest.mark.asyncio
    async def test_zero_buy_output_is_no_buy_route(self):
        evaluator, source = make_evaluator(round_trip_legs(OUSG, 0, 101_000_000))

        with pytest.raises(NoBuyRoute) as exc_info:
            await evaluator.evaluate(OUSG)

        assert exc_info.value.symbol == "OUSG"
        # Sell leg never requested
        assert len(source.calls) == 1

    @pytest.mark.asyncio
    async def test_zero_sell_output_is_no_sell_route(self):
        evaluator, _ = make_evaluator(round_trip_legs(OUSG, 100_000_000, 0))

        with pytest.raises(NoSellRoute):
            await evaluator.evaluate(OUSG)

    @pytest.mark.asyncio
    async def test_route_unavailable_mapped_per_leg(self):
        evaluator, _ = make_evaluator(round_trip_legs(OUSG, RouteUnavailable("no route"), 1))
        with pytest.raises(NoBuyRoute):
            await evaluator.evaluate(OUSG)

        evaluator, _ = make_evaluator(round_trip_legs(OUSG, 1, RouteUnavailable("no route")))
        with pytest.raises(NoSellRoute) as exc_info:
            await evaluator.evaluate(OUSG)
        assert "no route" in exc_info.value.reason

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [QuoteSourceUnreachable("dns"), QuoteServiceError(500)])
    async def test_infrastructure_errors_pass_through(self, error):
        evaluator, _ = make_evaluator(round_trip_legs(OUSG, error, 1))

        with pytest.raises(type(error)):
            await evaluator.evaluate(OUSG)

    @pytest.mark.asyncio
    async def test_negative_spread_not_opportunity(self):
        evaluator, _ = make_evaluator(round_trip_legs(OUSG, 100_000_000, 99_000_000))

        trip = await evaluator.evaluate(OUSG)

        assert trip.result.spread_pct < 0
        assert trip.result.is_opportunity is False

    @pytest.mark.asyncio
    async def test_same_quotes_give_same_result(self):
        evaluator, _ = make_evaluator(round_trip_legs(OUSG, 98_000_000, 100_900_000))

        first = await evaluator.evaluate(OUSG)
        second = await evaluator.evaluate(OUSG)

        assert first.result == second.result

    def test_rejects_non_positive_trade_amount(self):
        with pytest.raises(ValueError):
            SpreadEvaluator(FakeQuoteSource(), stablecoin=USDC, trade_amount=0)

    def test_from_settings(self, settings):
        evaluator = SpreadEvaluator.from_settings(FakeQuoteSource(), settings)

        assert evaluator.trade_amount == settings.trade_amount
        assert evaluator.min_spread_pct == settings.min_spread_pct
        assert evaluator.stablecoin == settings.stablecoin
