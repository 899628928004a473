"""
Infrastructure adapter: Financial Modeling Prep REST API → IFinancialDataProvider.
All FMP-specific details (URLs, apikey query parameter, status handling,
response-shape detection) are confined here.

One instance per request: it owns an httpx.AsyncClient that is closed when the
``async with`` block exits. Nothing is shared across requests.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence

import httpx

from src.domain.entities.memo import CompanyMatch
from src.domain.entities.stock_price import PricePoint
from src.domain.errors import (
    ConfigurationError,
    PermanentProviderError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitedError,
    TransientProviderError,
)
from src.domain.ports.stock_data_port import IFinancialDataProvider
from src.infrastructure.financial_data.price_shapes import (
    DEFAULT_PRICE_ENDPOINTS,
    PriceEndpoint,
    extract_price_points,
)
from src.infrastructure.financial_data.retry import (
    NO_RETRY,
    RetryPolicy,
    is_retryable_provider_error,
    retry_async,
)

logger = logging.getLogger(__name__)


class FMPFinancialDataProvider(IFinancialDataProvider):
    """Fetches profiles, quotes, prices and statements from FMP."""

    BASE_URL = "https://financialmodelingprep.com/stable"
    LEGACY_BASE_URL = "https://financialmodelingprep.com/api/v3"

    def __init__(
        self,
        api_key: str,
        *,
        base_url: Optional[str] = None,
        legacy_base_url: Optional[str] = None,
        retry_policy: RetryPolicy = RetryPolicy(),
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        price_endpoints: Sequence[PriceEndpoint] = DEFAULT_PRICE_ENDPOINTS,
    ) -> None:
        """
        Args:
            api_key:         FMP key, sent as the ``apikey`` query parameter.
            retry_policy:    Attempt budget and backoff for every call.
            timeout:         Per-HTTP-request timeout in seconds.
            client:          Pre-built AsyncClient (tests pass one with a
                             MockTransport). Not closed by this adapter.
            sleep:           Backoff coroutine, replaceable in tests.
            price_endpoints: Historical-price candidates in priority order.
        """
        if not api_key:
            raise ConfigurationError("FMP_API_KEY is not configured")
        self._api_key = api_key
        self._base_url = (base_url or self.BASE_URL).rstrip("/")
        self._legacy_base_url = (legacy_base_url or self.LEGACY_BASE_URL).rstrip("/")
        self._retry_policy = retry_policy
        self._sleep = sleep
        self._price_endpoints = tuple(price_endpoints)
        self.request_timeout = timeout
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "FMPFinancialDataProvider":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # HTTP plumbing
    # ------------------------------------------------------------------

    async def _request_once(self, url: str, params: dict, label: str) -> Any:
        """One GET. Returns parsed JSON, or None on 404."""
        try:
            response = await self._client.get(
                url, params={**params, "apikey": self._api_key}
            )
        except httpx.TimeoutException as exc:
            raise ProviderTimeoutError(f"FMP {label} timed out") from exc
        except httpx.HTTPError as exc:
            raise TransientProviderError(f"FMP {label} transport error: {exc}") from exc

        status = response.status_code
        if status == 404:
            return None
        if status == 429:
            raise RateLimitedError(f"FMP {label} rate limited", status_code=status)
        if 400 <= status < 500:
            raise PermanentProviderError(f"FMP {label} error: {status}", status_code=status)
        if status >= 500:
            raise TransientProviderError(f"FMP {label} error: {status}", status_code=status)

        try:
            data = response.json()
        except ValueError as exc:
            raise TransientProviderError(f"FMP {label} returned malformed JSON") from exc

        if isinstance(data, dict) and "Error Message" in data:
            raise PermanentProviderError(f"FMP {label}: {data['Error Message']}", status_code=status)
        return data

    async def _get_json(
        self,
        path: str,
        params: Optional[dict] = None,
        legacy: bool = False,
        policy: Optional[RetryPolicy] = None,
        is_retryable: Callable[[BaseException], bool] = is_retryable_provider_error,
    ) -> Any:
        base = self._legacy_base_url if legacy else self._base_url
        url = f"{base}{path}"
        params = params or {}
        label = path.lstrip("/")
        return await retry_async(
            lambda: self._request_once(url, params, label),
            policy or self._retry_policy,
            is_retryable=is_retryable,
            sleep=self._sleep,
            description=f"FMP {label}",
        )

    async def _get_first(self, path: str, symbol: str) -> Optional[dict]:
        data = await self._get_json(path, {"symbol": symbol})
        if isinstance(data, list):
            return data[0] if data and isinstance(data[0], dict) else None
        if isinstance(data, dict):
            return data or None
        return None

    async def _get_rows(self, path: str, symbol: str, limit: int) -> list[dict]:
        data = await self._get_json(path, {"symbol": symbol, "limit": limit})
        if not isinstance(data, list):
            return []
        return [row for row in data if isinstance(row, dict)]

    # ------------------------------------------------------------------
    # IFinancialDataProvider interface
    # ------------------------------------------------------------------

    async def get_profile(self, symbol: str) -> Optional[dict]:
        return await self._get_first("/profile", symbol)

    async def get_quote(self, symbol: str) -> Optional[dict]:
        return await self._get_first("/quote", symbol)

    async def get_income_statements(self, symbol: str, limit: int = 5) -> list[dict]:
        return await self._get_rows("/income-statement", symbol, limit)

    async def get_balance_sheets(self, symbol: str, limit: int = 5) -> list[dict]:
        return await self._get_rows("/balance-sheet-statement", symbol, limit)

    async def get_cash_flows(self, symbol: str, limit: int = 5) -> list[dict]:
        return await self._get_rows("/cash-flow-statement", symbol, limit)

    async def get_ratios(self, symbol: str, limit: int = 5) -> list[dict]:
        return await self._get_rows("/ratios", symbol, limit)

    async def get_key_metrics(self, symbol: str, limit: int = 5) -> list[dict]:
        return await self._get_rows("/key-metrics", symbol, limit)

    async def get_historical_prices(self, symbol: str) -> list[PricePoint]:
        """Try each known endpoint shape until one yields a non-empty series.

        A candidate that times out is not retried; the next one is tried
        instead, so one hung endpoint cannot use up the whole slice budget.
        Returns [] when the candidates answered but none had usable rows.
        Raises the last ProviderError only when no candidate answered at all.
        """
        last_error: Optional[ProviderError] = None
        answered = False
        for endpoint in self._price_endpoints:
            path = endpoint.path.format(symbol=symbol)
            params = {"symbol": symbol} if endpoint.symbol_param else {}
            try:
                raw = await self._get_json(
                    path, params, legacy=endpoint.legacy, is_retryable=_retry_unless_timed_out
                )
            except ProviderError as exc:
                logger.warning("price endpoint %s failed for %s: %s", endpoint.name, symbol, exc)
                last_error = exc
                continue

            answered = True
            points = extract_price_points(raw, endpoint.matchers)
            if points:
                logger.info("price endpoint %s returned %d points for %s", endpoint.name, len(points), symbol)
                return points
            logger.info("price endpoint %s had no usable rows for %s", endpoint.name, symbol)

        if not answered and last_error is not None:
            raise last_error
        return []

    async def search_companies(self, query: str, limit: int = 15) -> list[CompanyMatch]:
        """Search by company name, then by symbol; results deduplicated by symbol.

        Single attempt per endpoint; both callers have their own fallback
        (static company list, ticker slug) when search fails.
        """
        matches: list[CompanyMatch] = []
        seen: set[str] = set()
        for path in ("/search-name", "/search-symbol"):
            data = await self._get_json(path, {"query": query, "limit": limit}, policy=NO_RETRY)
            if not isinstance(data, list):
                continue
            for item in data:
                if not isinstance(item, dict) or not item.get("symbol"):
                    continue
                symbol = str(item["symbol"])
                if symbol in seen:
                    continue
                seen.add(symbol)
                exchange = (
                    item.get("exchangeShortName")
                    or item.get("exchange")
                    or item.get("stockExchange")
                    or "Unknown"
                )
                matches.append(
                    CompanyMatch(name=str(item.get("name") or symbol), symbol=symbol, exchange=str(exchange))
                )
            if len(matches) >= limit:
                break
        return matches[:limit]


def _retry_unless_timed_out(exc: BaseException) -> bool:
    return is_retryable_provider_error(exc) and not isinstance(exc, ProviderTimeoutError)
