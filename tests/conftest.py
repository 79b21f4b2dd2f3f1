"""Shared fixtures for the spread probe test suite."""
import pytest
from loguru import logger

from spread_probe.config.settings import ProbeSettings
from spread_probe.model import Asset
from spread_probe.models.quote import Quote

USDC = Asset(symbol="USDC", mint="usdc-mint", decimals=6)
OUSG = Asset(symbol="OUSG", mint="ousg-mint", decimals=6, name="Ondo US Treasuries")
USYC = Asset(symbol="USYC", mint="usyc-mint", decimals=6, name="Hashnote USYC")


class FakeQuoteSource:
    """
    In-memory quote source. `legs` maps (input_mint, output_mint) to either
    an output amount, an exception instance, or a callable taking the input
    amount and returning one of those.
    """
    def __init__(self, legs=None, route_label="Raydium"):
        self.legs = dict(legs or {})
        self.route_label = route_label
        self.calls = []
        self.closed = False

    async def get_quote(self, input_mint, output_mint, amount):
        self.calls.append((input_mint, output_mint, amount))
        outcome = self.legs[(input_mint, output_mint)]
        if callable(outcome):
            outcome = outcome(amount)
        if isinstance(outcome, BaseException):
            raise outcome
        return Quote(
            input_mint=input_mint,
            output_mint=output_mint,
            input_amount=amount,
            output_amount=outcome,
            route_label=self.route_label,
        )

    async def close(self):
        self.closed = True


def round_trip_legs(asset, bought, returned):
    """Legs for a USDC -> asset -> USDC round trip."""
    return {
        (USDC.mint, asset.mint): bought,
        (asset.mint, USDC.mint): returned,
    }


@pytest.fixture
def usdc():
    return USDC


@pytest.fixture
def ousg():
    return OUSG


@pytest.fixture
def usyc():
    return USYC


@pytest.fixture
def settings():
    """Settings with both assets and a very short poll interval."""
    return ProbeSettings(
        stablecoin=USDC,
        assets=(OUSG, USYC),
        min_spread_pct=0.6,
        trade_amount=100_000_000,
        poll_interval_ms=10,
        stats_every_checks=10,
    )


@pytest.fixture
def log_messages():
    """Captures loguru messages emitted during a test."""
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="TRACE")
    yield messages
    logger.remove(handler_id)
