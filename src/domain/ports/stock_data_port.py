"""
Port (interface) for financial-data providers.
Infrastructure adapters (e.g. FMPFinancialDataProvider) must implement this interface.

Every method is a coroutine. A method either returns data (an empty value
when the provider says the entity does not exist) or raises a
``ProviderError`` subclass once its retry budget is spent.
"""

from abc import ABC, abstractmethod
from typing import Optional

from src.domain.entities.memo import CompanyMatch
from src.domain.entities.stock_price import PricePoint


class IFinancialDataProvider(ABC):
    @abstractmethod
    async def get_profile(self, symbol: str) -> Optional[dict]: ...

    @abstractmethod
    async def get_quote(self, symbol: str) -> Optional[dict]: ...

    @abstractmethod
    async def get_historical_prices(self, symbol: str) -> list[PricePoint]:
        """Daily closes in whatever order the provider delivers them."""
        ...

    @abstractmethod
    async def get_income_statements(self, symbol: str, limit: int = 5) -> list[dict]: ...

    @abstractmethod
    async def get_balance_sheets(self, symbol: str, limit: int = 5) -> list[dict]: ...

    @abstractmethod
    async def get_cash_flows(self, symbol: str, limit: int = 5) -> list[dict]: ...

    @abstractmethod
    async def get_ratios(self, symbol: str, limit: int = 5) -> list[dict]: ...

    @abstractmethod
    async def get_key_metrics(self, symbol: str, limit: int = 5) -> list[dict]: ...

    @abstractmethod
    async def search_companies(self, query: str, limit: int = 15) -> list[CompanyMatch]:
        """Free-text company search, best match first."""
        ...
