"""Tests for error classification and per-component accounting."""
import pytest

from spread_probe.utils.error_handler import (
    ErrorHandler,
    ErrorSeverity,
    FatalLoopError,
    NoBuyRoute,
    NoSellRoute,
    QuoteError,
    QuoteServiceError,
    QuoteSourceUnreachable,
    RouteUnavailable,
)


class TestErrorTaxonomy:

    def test_hierarchy(self):
        assert issubclass(NoBuyRoute, RouteUnavailable)
        assert issubclass(NoSellRoute, RouteUnavailable)
        assert issubclass(RouteUnavailable, QuoteError)
        assert issubclass(QuoteSourceUnreachable, QuoteError)
        assert issubclass(QuoteServiceError, QuoteError)

    @pytest.mark.parametrize("error, severity", [
        (NoBuyRoute("OUSG"), ErrorSeverity.LOW),
        (RouteUnavailable("x"), ErrorSeverity.LOW),
        (QuoteSourceUnreachable("dns"), ErrorSeverity.MEDIUM),
        (QuoteServiceError(502), ErrorSeverity.MEDIUM),
        (RuntimeError("boom"), ErrorSeverity.HIGH),
        (FatalLoopError("bad"), ErrorSeverity.FATAL),
    ])
    def test_classify(self, error, severity):
        assert ErrorHandler.classify(error) is severity

    def test_describe_distinguishes_categories(self):
        assert "low liquidity" in ErrorHandler.describe(NoSellRoute("USYC"))
        assert "Could not get sell quote for USYC" in ErrorHandler.describe(NoSellRoute("USYC"))
        assert ErrorHandler.describe(QuoteSourceUnreachable("dns")).startswith("Quote source unreachable")
        assert ErrorHandler.describe(QuoteServiceError(500)).startswith("Quote service error")
        assert ErrorHandler.describe(KeyError("x")).startswith("Error:")


class TestErrorHandler:

    def test_counts_per_component(self, log_messages):
        handler = ErrorHandler()
        handler.record_error("OUSG", NoBuyRoute("OUSG"))
        handler.record_error("OUSG", QuoteSourceUnreachable("timeout"))
        handler.record_error("USYC", RuntimeError("boom"))

        assert handler.get_error_count("OUSG") == 2
        assert handler.get_error_count("USYC") == 1
        assert handler.get_error_count() == 3
        assert any(m.startswith("[OUSG] Quote source unreachable") for m in log_messages)

    def test_reset_after_recovery(self, log_messages):
        handler = ErrorHandler()
        handler.record_error("OUSG", NoBuyRoute("OUSG"))

        handler.reset_error("OUSG")

        assert handler.get_error_count("OUSG") == 0
        assert any("has recovered" in m for m in log_messages)

    def test_reset_without_errors_is_silent(self, log_messages):
        ErrorHandler().reset_error("OUSG")
        assert not any("has recovered" in m for m in log_messages)
