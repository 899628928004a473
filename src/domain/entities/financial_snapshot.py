"""
Domain entities for the aggregated financial-data bundle of one company.
Zero external dependencies: pure Python dataclasses only.

Provider payloads (profile, quote, statements, ratios) are kept as plain
dicts because their field names drift across provider API versions.
"""

from dataclasses import dataclass, field

from src.domain.entities.stock_price import PricePoint


def default_quote(symbol: str) -> dict:
    """Placeholder quote used when the quote fetch fails."""
    return {"symbol": symbol, "price": 0}


@dataclass(frozen=True)
class FinancialSnapshot:
    """Everything fetched for *symbol* in one request.

    Each field is independently optional: a failed slice holds its empty
    default, never ``None``.
    """

    symbol: str
    profile: dict = field(default_factory=dict)
    quote: dict = field(default_factory=dict)
    price_series: list[PricePoint] = field(default_factory=list)
    income_statements: list[dict] = field(default_factory=list)
    balance_sheets: list[dict] = field(default_factory=list)
    cash_flows: list[dict] = field(default_factory=list)
    ratios: list[dict] = field(default_factory=list)
    key_metrics: list[dict] = field(default_factory=list)
