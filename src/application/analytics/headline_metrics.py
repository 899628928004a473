"""
Headline valuation, profitability and balance-sheet figures for the memo.

The provider renames fields between API versions (``peRatio`` became
``priceToEarningsRatio``, TTM endpoints add a ``TTM`` suffix...), so each
figure is resolved from an ordered alias chain; the first non-null value wins.
"""

from typing import Any, Optional, Sequence

from src.domain.entities.financial_snapshot import FinancialSnapshot

# (source, field) pairs tried in order. Sources: quote, metrics, ratios.
_ALIASES: dict[str, Sequence[tuple[str, str]]] = {
    "market_cap": (("quote", "marketCap"), ("metrics", "marketCap"), ("profile", "marketCap"), ("profile", "mktCap")),
    "pe_ratio": (
        ("metrics", "peRatioTTM"),
        ("metrics", "peRatio"),
        ("metrics", "priceEarningsRatio"),
        ("metrics", "priceToEarningsRatio"),
        ("ratios", "priceToEarningsRatio"),
        ("ratios", "priceEarningsRatio"),
        ("quote", "pe"),
        ("quote", "peRatio"),
    ),
    "eps": (
        ("metrics", "netIncomePerShareTTM"),
        ("metrics", "netIncomePerShare"),
        ("metrics", "eps"),
        ("metrics", "earningsPerShare"),
        ("quote", "eps"),
        ("quote", "earningsPerShare"),
    ),
    "pb_ratio": (
        ("metrics", "priceToBookRatioTTM"),
        ("metrics", "priceToBookRatio"),
        ("metrics", "pbRatioTTM"),
        ("metrics", "pbRatio"),
        ("ratios", "priceToBookRatio"),
        ("ratios", "priceBookValueRatio"),
    ),
    "ps_ratio": (
        ("metrics", "priceToSalesRatioTTM"),
        ("metrics", "priceToSalesRatio"),
        ("metrics", "psRatioTTM"),
        ("ratios", "priceToSalesRatio"),
    ),
    "ev_to_ebitda": (
        ("metrics", "enterpriseValueOverEBITDATTM"),
        ("metrics", "enterpriseValueOverEBITDA"),
        ("metrics", "evToEBITDA"),
        ("metrics", "evToEbitda"),
    ),
    "dividend_yield": (
        ("metrics", "dividendYieldTTM"),
        ("metrics", "dividendYield"),
        ("ratios", "dividendYield"),
    ),
    "fcf_yield": (
        ("metrics", "freeCashFlowYieldTTM"),
        ("metrics", "freeCashFlowYield"),
        ("metrics", "fcfYield"),
    ),
    "roe": (
        ("ratios", "returnOnEquityTTM"),
        ("ratios", "returnOnEquity"),
        ("metrics", "returnOnEquity"),
        ("metrics", "roe"),
    ),
    "roa": (
        ("ratios", "returnOnAssetsTTM"),
        ("ratios", "returnOnAssets"),
        ("metrics", "returnOnAssets"),
        ("metrics", "roa"),
    ),
    "gross_margin": (("ratios", "grossProfitMarginTTM"), ("ratios", "grossProfitMargin")),
    "operating_margin": (("ratios", "operatingProfitMarginTTM"), ("ratios", "operatingProfitMargin")),
    "net_margin": (("ratios", "netProfitMarginTTM"), ("ratios", "netProfitMargin")),
    "current_ratio": (("ratios", "currentRatioTTM"), ("ratios", "currentRatio"), ("metrics", "currentRatio")),
    "debt_to_equity": (
        ("ratios", "debtEquityRatioTTM"),
        ("ratios", "debtEquityRatio"),
        ("ratios", "debtToEquityRatio"),
        ("ratios", "debtToEquity"),
    ),
    "interest_coverage": (
        ("ratios", "interestCoverageTTM"),
        ("ratios", "interestCoverage"),
        ("ratios", "interestCoverageRatio"),
    ),
    "quick_ratio": (("ratios", "quickRatioTTM"), ("ratios", "quickRatio")),
    "year_high": (("quote", "yearHigh"),),
    "year_low": (("quote", "yearLow"),),
    "price": (("quote", "price"), ("profile", "price")),
}


def _as_number(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def extract_headline_metrics(snapshot: FinancialSnapshot) -> dict[str, Optional[float]]:
    """Resolve every headline figure from the latest statement rows.

    Missing figures map to None. A zero quote price (the failed-fetch
    placeholder) is reported as None.
    """
    sources = {
        "quote": snapshot.quote or {},
        "profile": snapshot.profile or {},
        "metrics": snapshot.key_metrics[0] if snapshot.key_metrics else {},
        "ratios": snapshot.ratios[0] if snapshot.ratios else {},
    }

    metrics: dict[str, Optional[float]] = {}
    for name, chain in _ALIASES.items():
        value = None
        for source, key in chain:
            value = _as_number(sources[source].get(key))
            if value is not None:
                break
        metrics[name] = value

    if not metrics["price"]:
        metrics["price"] = None
    return metrics
