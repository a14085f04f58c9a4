"""
Exception types raised by the analytics package.

"No data" situations (empty ledgers, constant series, oversized portfolio
requests) never raise; they degrade to zero-valued or empty results.
"""

__all__ = ["AnalyticsError", "CombinationLimitError", "LedgerError"]


class AnalyticsError(Exception):
    """Base class for all analytics failures."""


class CombinationLimitError(AnalyticsError):
    """Raised when a portfolio search would enumerate too many subsets."""

    def __init__(self, n_strategies: int, size: int, count: int, limit: int):
        self.n_strategies = n_strategies
        self.size = size
        self.count = count
        self.limit = limit
        super().__init__(
            f"Portfolio search over C({n_strategies}, {size}) = {count} combinations "
            f"exceeds the configured limit of {limit}."
        )


class LedgerError(AnalyticsError):
    """Illegal trade lifecycle transition or unknown trade id."""
