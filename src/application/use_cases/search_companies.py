"""
Use-case: company autocomplete for the search box.
Depends only on Domain ports and entities: no infrastructure imports.
"""

import logging
from typing import Optional

from src.application.symbols import STATIC_COMPANIES
from src.domain.entities.memo import CompanyMatch
from src.domain.errors import ProviderError
from src.domain.ports.stock_data_port import IFinancialDataProvider

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
LIVE_RESULT_LIMIT = 15
STATIC_RESULT_LIMIT = 10


class SearchCompaniesUseCase:
    def __init__(self, provider: Optional[IFinancialDataProvider] = None) -> None:
        self._provider = provider

    async def execute(self, query: Optional[str]) -> list[CompanyMatch]:
        """Live search when a provider is configured, static list otherwise.

        Queries shorter than two characters return an empty list. A failed
        live search falls back to the static list.
        """
        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            return []

        if self._provider is not None:
            try:
                return (await self._provider.search_companies(query, limit=LIVE_RESULT_LIMIT))[
                    :LIVE_RESULT_LIMIT
                ]
            except ProviderError as exc:
                logger.warning("live company search for %r failed: %s", query, exc)

        needle = query.lower()
        return [
            c
            for c in STATIC_COMPANIES
            if needle in c.name.lower() or needle in c.symbol.lower()
        ][:STATIC_RESULT_LIMIT]
