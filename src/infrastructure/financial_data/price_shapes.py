"""
Response-shape matchers and endpoint candidates for historical prices.

The provider has served daily prices as a bare JSON array (stable API), as
``{"historical": [...]}`` (legacy v3) and, on some plans, as ``{"data": [...]}``.
Each matcher is a pure function ``raw -> list[PricePoint] | None`` that returns
None when the payload is not its shape. Candidates are tried in priority order.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Optional, Sequence

from src.domain.entities.stock_price import PricePoint

ShapeMatcher = Callable[[Any], Optional[list[PricePoint]]]


def _parse_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or len(value) < 10:
        return None
    try:
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    except ValueError:
        return None


def _parse_close(row: dict) -> Optional[float]:
    for key in ("close", "adjClose", "price"):
        value = row.get(key)
        if value is None:
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            continue
    return None


def rows_to_points(rows: Sequence[Any]) -> list[PricePoint]:
    """Convert provider rows, skipping any without a usable date or close."""
    points: list[PricePoint] = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        day = _parse_date(row.get("date"))
        close = _parse_close(row)
        if day is None or close is None:
            continue
        points.append(PricePoint(date=day, close=close))
    return points


def match_bare_array(raw: Any) -> Optional[list[PricePoint]]:
    if not isinstance(raw, list):
        return None
    return rows_to_points(raw)


def match_historical_object(raw: Any) -> Optional[list[PricePoint]]:
    if not isinstance(raw, dict) or not isinstance(raw.get("historical"), list):
        return None
    return rows_to_points(raw["historical"])


def match_data_object(raw: Any) -> Optional[list[PricePoint]]:
    if not isinstance(raw, dict) or not isinstance(raw.get("data"), list):
        return None
    return rows_to_points(raw["data"])


DEFAULT_MATCHERS: tuple[ShapeMatcher, ...] = (
    match_bare_array,
    match_historical_object,
    match_data_object,
)


def extract_price_points(
    raw: Any, matchers: Sequence[ShapeMatcher] = DEFAULT_MATCHERS
) -> list[PricePoint]:
    """Run *matchers* in order and return the first non-empty series, else []."""
    for matcher in matchers:
        points = matcher(raw)
        if points:
            return points
    return []


@dataclass(frozen=True)
class PriceEndpoint:
    """One historical-price endpoint the adapter knows how to call.

    path:   Path template; ``{symbol}`` is substituted.
    legacy: Resolve *path* against the legacy v3 base URL instead of the stable one.
    symbol_param: Send the symbol as the ``symbol`` query parameter.
    """

    name: str
    path: str
    legacy: bool = False
    symbol_param: bool = True
    matchers: tuple[ShapeMatcher, ...] = DEFAULT_MATCHERS


DEFAULT_PRICE_ENDPOINTS: tuple[PriceEndpoint, ...] = (
    PriceEndpoint(name="eod-full", path="/historical-price-eod/full"),
    PriceEndpoint(name="eod-light", path="/historical-price-eod/light"),
    PriceEndpoint(
        name="v3-historical-price-full",
        path="/historical-price-full/{symbol}",
        legacy=True,
        symbol_param=False,
    ),
)
