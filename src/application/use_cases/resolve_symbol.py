"""
Use-case: turn a company name into a ticker symbol.
Depends only on Domain ports and entities: no infrastructure imports.

This is a best-effort heuristic, not a guaranteed-correct resolution. Callers
should treat the returned symbol as a guess that the data fetch may not find.
"""

import logging
import re
from typing import Optional

from src.application.symbols import KNOWN_SYMBOLS, STATIC_COMPANIES
from src.domain.entities.memo import CompanyMatch
from src.domain.errors import ProviderError
from src.domain.ports.stock_data_port import IFinancialDataProvider

logger = logging.getLogger(__name__)


def slugify_symbol(company_name: str) -> str:
    """Last-resort guess: the name uppercased with non-alphanumerics removed."""
    return re.sub(r"[^A-Za-z0-9]", "", company_name).upper()


def rank_matches(
    matches: list[CompanyMatch], exchange: Optional[str]
) -> list[CompanyMatch]:
    """Stable re-order putting matches on *exchange* first."""
    if not exchange:
        return list(matches)
    wanted = exchange.strip().upper()
    return sorted(matches, key=lambda m: 0 if m.exchange.upper() == wanted else 1)


def pick_best_match(
    matches: list[CompanyMatch], company_name: str
) -> Optional[CompanyMatch]:
    """Exact case-insensitive name or symbol match, else the first result."""
    if not matches:
        return None
    needle = company_name.strip().lower()
    for match in matches:
        if match.name.lower() == needle or match.symbol.lower() == needle:
            return match
    return matches[0]


class ResolveSymbolUseCase:
    def __init__(self, provider: Optional[IFinancialDataProvider] = None) -> None:
        """
        Args:
            provider: Used for the live search step. When None only the static
                      tables and the slug fallback are used.
        """
        self._provider = provider

    async def execute(self, company_name: str, exchange: Optional[str] = None) -> str:
        """Resolve *company_name* (optionally hinted by *exchange*) to a ticker.

        Raises:
            ValueError: if *company_name* is blank.
        """
        if not company_name or not company_name.strip():
            raise ValueError("company_name must be a non-empty string")

        key = company_name.strip().lower()
        if key in KNOWN_SYMBOLS:
            return KNOWN_SYMBOLS[key]
        for company in STATIC_COMPANIES:
            if company.symbol.lower() == key:
                return company.symbol

        if self._provider is not None:
            try:
                matches = await self._provider.search_companies(company_name.strip())
            except ProviderError as exc:
                logger.warning("symbol search for %r failed: %s", company_name, exc)
                matches = []
            best = pick_best_match(rank_matches(matches, exchange), company_name)
            if best is not None:
                logger.info("resolved %r to %s via search", company_name, best.symbol)
                return best.symbol

        fallback = slugify_symbol(company_name)
        logger.info("no search match for %r; guessing %s", company_name, fallback)
        return fallback
