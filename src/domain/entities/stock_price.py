"""
Domain entities for daily closing prices and the statistics derived from them.
Zero external dependencies: pure Python dataclasses only.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class PricePoint:
    """One trading day's closing price."""

    date: date
    close: float


@dataclass(frozen=True)
class PriceWindowStats:
    """Return, drawdown and volatility over one trailing window.

    All numeric fields are rounded to 2 decimals.
    """

    start_price: float
    end_price: float
    percent_change: float
    max_drawdown_percent: float
    annualized_volatility_percent: float
    sample_count: int


@dataclass(frozen=True)
class PriceAnalytics:
    """The standard 1y/3y/5y windows. ``None`` means "not disclosed"."""

    one_year: Optional[PriceWindowStats]
    three_year: Optional[PriceWindowStats]
    five_year: Optional[PriceWindowStats]
