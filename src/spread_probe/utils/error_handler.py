from enum import Enum
from collections import defaultdict
from typing import Optional

from loguru import logger


class ErrorSeverity(Enum):
    """Defines the severity levels for errors."""
    LOW = 1      # Liquidity gap, the asset is simply skipped this cycle.
    MEDIUM = 2   # Infrastructure trouble talking to the quote service.
    HIGH = 3     # Unexpected failure inside a single asset check.
    FATAL = 4    # Cannot continue, the application must stop.


class QuoteError(Exception):
    """Base class for every failure that aborts a single asset check."""


class RouteUnavailable(QuoteError):
    """The quote service could not price the requested conversion."""


class NoBuyRoute(RouteUnavailable):
    """The stablecoin -> asset leg could not be priced."""

    def __init__(self, symbol: str, reason: str = "no route"):
        self.symbol = symbol
        self.reason = reason
        super().__init__(f"Could not get buy quote for {symbol}: {reason}")


class NoSellRoute(RouteUnavailable):
    """The asset -> stablecoin leg could not be priced."""

    def __init__(self, symbol: str, reason: str = "no route"):
        self.symbol = symbol
        self.reason = reason
        super().__init__(f"Could not get sell quote for {symbol}: {reason}")


class QuoteSourceUnreachable(QuoteError):
    """Network, DNS or timeout failure while talking to the quote service."""


class QuoteServiceError(QuoteError):
    """The quote service answered with an unexpected HTTP status."""

    def __init__(self, status: int, message: str = ""):
        self.status = status
        super().__init__(f"HTTP {status}: {message}" if message else f"HTTP {status}")


class StartupConnectivityFailure(Exception):
    """The startup network health probe failed. Never fatal."""


class FatalLoopError(Exception):
    """An exception escaped the per-cycle error handling."""


class ConfigError(ValueError):
    """A configuration value is missing or out of range."""


class ErrorHandler:
    """
    Centralised per-check error accounting.

    Classifies an exception, keeps a count per component (asset symbol)
    and writes one specific console line so an operator can tell
    liquidity gaps from infrastructure problems at a glance.
    """
    def __init__(self):
        self._error_counts: defaultdict[str, int] = defaultdict(int)

    @staticmethod
    def classify(error: BaseException) -> ErrorSeverity:
        """Maps an exception onto an ErrorSeverity."""
        if isinstance(error, RouteUnavailable):
            return ErrorSeverity.LOW
        if isinstance(error, (QuoteSourceUnreachable, QuoteServiceError)):
            return ErrorSeverity.MEDIUM
        if isinstance(error, FatalLoopError):
            return ErrorSeverity.FATAL
        return ErrorSeverity.HIGH

    @staticmethod
    def describe(error: BaseException) -> str:
        """Returns the operator-facing line for an error."""
        if isinstance(error, (NoBuyRoute, NoSellRoute)):
            return f"{error} (no route found, low liquidity)"
        if isinstance(error, RouteUnavailable):
            return f"No route found (low liquidity): {error}"
        if isinstance(error, QuoteSourceUnreachable):
            return f"Quote source unreachable: {error}"
        if isinstance(error, QuoteServiceError):
            return f"Quote service error: {error}"
        return f"Error: {error}"

    def record_error(self, component_id: str, error: BaseException) -> ErrorSeverity:
        """Records and logs an error for a component."""
        self._error_counts[component_id] += 1
        severity = self.classify(error)
        message = f"[{component_id}] {self.describe(error)}"
        if severity is ErrorSeverity.HIGH:
            logger.opt(exception=error).error(message)
        else:
            logger.warning(message)
        return severity

    def get_error_count(self, component_id: Optional[str] = None) -> int:
        """Errors for one component, or across all components."""
        if component_id is None:
            return sum(self._error_counts.values())
        return self._error_counts.get(component_id, 0)

    def reset_error(self, component_id: str):
        """Resets the error count for a component after a successful check."""
        if self._error_counts.get(component_id, 0) > 0:
            logger.info(f"Component {component_id} has recovered after "
                        f"{self._error_counts[component_id]} error(s).")
            self._error_counts[component_id] = 0
