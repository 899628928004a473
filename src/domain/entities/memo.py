"""
Domain entities for company lookup and the assembled research memo.
Zero external dependencies: pure Python dataclasses only.
"""

from dataclasses import dataclass, field
from typing import Optional

from src.domain.entities.financial_snapshot import FinancialSnapshot
from src.domain.entities.stock_price import PriceAnalytics

DATA_SOURCE_COMBINED = "FMP + AI Analysis"
DATA_SOURCE_AI_ONLY = "AI Analysis Only"


@dataclass(frozen=True)
class CompanyMatch:
    name: str
    symbol: str
    exchange: str


@dataclass(frozen=True)
class MemoBundle:
    """Narrative from the language model combined with fetched figures.

    company:  ``company`` object of the narrative (name, symbol, sector...).
    research: ``research`` object of the narrative (snapshot bullets, risks...).
    snapshot: Fetched provider data, or None in AI-only mode.
    """

    symbol: str
    company: dict
    research: dict
    data_source: str
    snapshot: Optional[FinancialSnapshot] = None
    analytics: Optional[PriceAnalytics] = None
    headline_metrics: dict = field(default_factory=dict)
