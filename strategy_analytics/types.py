"""
Shared data structures for the application.
"""
import math
from datetime import date, datetime, timezone
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer

__all__ = [
    "Trade",
    "TradeStatus",
    "Template",
    "ProfitFactor",
    "Recommendation",
    "CorrelationMatrix",
    "TemplateCorrelation",
    "PortfolioRecommendation",
    "StrategyPerformance",
    "StockPerformance",
    "OverallPerformance",
    "PeriodReport",
    "ComparisonStats",
    "StrategyComparisonReport",
]

TradeStatus = Literal["open", "closed", "cancelled"]
Recommendation = Literal["excellent", "good", "neutral", "avoid"]


class Trade(BaseModel):
    """
    Represents a single recorded position with an optional close.

    A closed trade is expected to carry both exit fields, but the model does
    not enforce it: the return extractor skips such records instead of
    failing.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., description="Unique trade identifier.")
    ticker: str = Field(..., description="The traded symbol.")
    template_id: str = Field(..., alias="templateId", description="Strategy id the trade was taken under.")
    template_name: str = Field(..., alias="templateName", description="Display name of the strategy.")
    entry_price: float = Field(..., gt=0, alias="entryPrice")
    entry_date: datetime = Field(..., alias="entryDate")
    exit_price: Optional[float] = Field(None, gt=0, alias="exitPrice")
    exit_date: Optional[datetime] = Field(None, alias="exitDate")
    quantity: float = Field(1, gt=0)
    notes: Optional[str] = None
    status: TradeStatus = "open"

    @field_validator("entry_date", "exit_date")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        """Naive timestamps are taken as UTC so every trade date is comparable."""
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Template(BaseModel):
    """A catalog entry for a named trading strategy."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""


class ProfitFactor(BaseModel):
    """
    Ratio of total gains to total losses with an explicit infinite variant.

    Serializes to a plain float, or to the string ``"inf"`` when there were
    gains and no losses.
    """

    model_config = ConfigDict(frozen=True)

    value: float = 0.0
    infinite: bool = False

    @classmethod
    def from_totals(cls, total_gain: float, total_loss: float) -> "ProfitFactor":
        if total_loss > 0:
            return cls(value=total_gain / total_loss)
        if total_gain > 0:
            return cls(infinite=True)
        return cls()

    @model_serializer
    def _serialize(self) -> Union[float, str]:
        return "inf" if self.infinite else self.value

    def __float__(self) -> float:
        return math.inf if self.infinite else self.value

    def __str__(self) -> str:
        return "∞" if self.infinite else f"{self.value:.2f}"


class CorrelationMatrix(BaseModel):
    model_config = ConfigDict(frozen=True)

    strategies: List[str]
    matrix: List[List[float]]
    descriptions: Dict[str, str]


class TemplateCorrelation(BaseModel):
    """One unordered pair of strategies and how well they combine."""

    model_config = ConfigDict(frozen=True)

    strategy_a: str
    strategy_b: str
    correlation: float
    diversification_benefit: float
    combined_win_rate: float
    combined_avg_return: float
    recommendation: Recommendation


class PortfolioRecommendation(BaseModel):
    model_config = ConfigDict(frozen=True)

    strategies: List[str]
    expected_win_rate: float
    expected_avg_return: float
    diversification_score: float
    risk_reduction: float
    rationale: str


class StrategyPerformance(BaseModel):
    """Win/loss rollup of every trade recorded under one strategy."""

    model_config = ConfigDict(frozen=True)

    template_id: str
    template_name: str
    total_trades: int
    winning_trades: int
    losing_trades: int
    open_trades: int
    win_rate: float
    avg_gain: float
    avg_loss: float
    profit_factor: ProfitFactor
    total_return: float
    best_trade: float
    worst_trade: float


class StockPerformance(BaseModel):
    model_config = ConfigDict(frozen=True)

    ticker: str
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    total_return: float


class OverallPerformance(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_trades: int
    closed_trades: int
    open_trades: int
    total_wins: int
    total_losses: int
    win_rate: float
    avg_return: float
    best_strategy: Optional[StrategyPerformance]
    worst_strategy: Optional[StrategyPerformance]


class PeriodReport(BaseModel):
    """Trade metrics for one calendar bucket."""

    model_config = ConfigDict(frozen=True)

    period: str
    start_date: date
    end_date: date
    total_trades: int
    closed_trades: int
    open_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    avg_return: float
    total_return: float
    best_trade: float
    worst_trade: float


class ComparisonStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_trades: int
    total_wins: int
    total_losses: int
    win_rate: float
    avg_return: float
    best_period: Optional[PeriodReport]
    worst_period: Optional[PeriodReport]


class StrategyComparisonReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    generated_at: datetime
    granularity: str
    period_reports: List[PeriodReport]
    overall: ComparisonStats
