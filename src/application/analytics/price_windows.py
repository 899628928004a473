"""
Trailing-window price statistics: return, maximum drawdown, annualized volatility.

Pure functions with no I/O. Windowing is relative to *reference_date*, which
callers (and tests) pass explicitly; it defaults to today.
"""

import math
from datetime import date, timedelta
from typing import Iterable, Optional

from src.domain.entities.stock_price import PriceAnalytics, PricePoint, PriceWindowStats

TRADING_DAYS_PER_YEAR = 252

ONE_YEAR_DAYS = 365
THREE_YEAR_DAYS = 1095
FIVE_YEAR_DAYS = 1825


def _in_window(
    series: Iterable[PricePoint], window_days: int, reference_date: date
) -> list[PricePoint]:
    cutoff = reference_date - timedelta(days=window_days)
    subset = [p for p in series if cutoff <= p.date <= reference_date]
    # Provider order is not trusted: newest-first on some endpoints.
    subset.sort(key=lambda p: p.date)
    return subset


def max_drawdown_percent(closes: list[float]) -> float:
    """Most negative peak-to-trough decline, in percent (0 if never below a peak)."""
    worst = 0.0
    peak: Optional[float] = None
    for close in closes:
        if peak is None or close > peak:
            peak = close
        if peak <= 0:
            continue
        drawdown = (close - peak) / peak * 100
        if drawdown < worst:
            worst = drawdown
    return worst


def annualized_volatility_percent(closes: list[float]) -> float:
    """Population std-dev of daily simple returns, scaled by sqrt(252), in percent.

    Returns 0 with fewer than two closes.
    """
    returns = [
        (current - previous) / previous
        for previous, current in zip(closes, closes[1:])
        if previous > 0
    ]
    if not returns:
        return 0.0
    mean = sum(returns) / len(returns)
    variance = sum((r - mean) ** 2 for r in returns) / len(returns)
    return math.sqrt(variance) * math.sqrt(TRADING_DAYS_PER_YEAR) * 100


def compute_window_stats(
    series: Iterable[PricePoint],
    window_days: int,
    reference_date: Optional[date] = None,
) -> Optional[PriceWindowStats]:
    """Statistics for the points dated within *window_days* of *reference_date*.

    Args:
        series:         Daily closes in any order; points outside the window
                        are ignored.
        window_days:    Window length in calendar days (365 for one year).
        reference_date: End of the window. Defaults to today.

    Returns:
        PriceWindowStats rounded to 2 decimals, or None when no point falls in
        the window. None means "not disclosed", not an error.
    """
    reference_date = reference_date or date.today()
    subset = _in_window(series, window_days, reference_date)
    if not subset:
        return None

    closes = [p.close for p in subset]
    start_price = closes[0]
    end_price = closes[-1]
    percent_change = (
        (end_price - start_price) / start_price * 100 if start_price else 0.0
    )

    return PriceWindowStats(
        start_price=round(start_price, 2),
        end_price=round(end_price, 2),
        percent_change=round(percent_change, 2),
        max_drawdown_percent=round(max_drawdown_percent(closes), 2),
        annualized_volatility_percent=round(annualized_volatility_percent(closes), 2),
        sample_count=len(subset),
    )


def compute_price_analytics(
    series: Iterable[PricePoint], reference_date: Optional[date] = None
) -> PriceAnalytics:
    """Apply the standard 1y/3y/5y windows to *series*."""
    points = list(series)
    reference_date = reference_date or date.today()
    return PriceAnalytics(
        one_year=compute_window_stats(points, ONE_YEAR_DAYS, reference_date),
        three_year=compute_window_stats(points, THREE_YEAR_DAYS, reference_date),
        five_year=compute_window_stats(points, FIVE_YEAR_DAYS, reference_date),
    )
