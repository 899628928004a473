"""
Use-case: fetch every data slice for one symbol concurrently.
Depends only on Domain ports and entities: no infrastructure imports.

Each of the eight sub-fetches runs as its own task with its own timeout. A
failed slice (provider error, timeout, cancellation at the overall deadline)
is replaced by its empty default; it never aborts the others.
"""

import asyncio
import logging
import re
from typing import Any, Awaitable, Callable

from src.domain.entities.financial_snapshot import FinancialSnapshot, default_quote
from src.domain.errors import (
    InvalidSymbolError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitedError,
    TransientProviderError,
)
from src.domain.ports.stock_data_port import IFinancialDataProvider

logger = logging.getLogger(__name__)

_SYMBOL_PATTERN = re.compile(r"^[A-Za-z0-9.\-^=]{1,20}$")

# Slot name → provider method name, in snapshot field order.
_SLICES: tuple[tuple[str, str], ...] = (
    ("profile", "get_profile"),
    ("quote", "get_quote"),
    ("price_series", "get_historical_prices"),
    ("income_statements", "get_income_statements"),
    ("balance_sheets", "get_balance_sheets"),
    ("cash_flows", "get_cash_flows"),
    ("ratios", "get_ratios"),
    ("key_metrics", "get_key_metrics"),
)


class _Failed:
    """Terminal state of a sub-fetch that fell back to its default."""

    def __init__(self, error: BaseException) -> None:
        self.error = error


def normalize_symbol(symbol: str) -> str:
    """Trim and uppercase *symbol*.

    Raises:
        InvalidSymbolError: if the symbol is blank or has characters no
            exchange ticker uses.
    """
    if not symbol or not symbol.strip():
        raise InvalidSymbolError("symbol must be a non-empty string")
    cleaned = symbol.strip().upper()
    if not _SYMBOL_PATTERN.match(cleaned):
        raise InvalidSymbolError(f"invalid ticker symbol: {symbol!r}")
    return cleaned


class FetchFinancialSnapshotUseCase:
    def __init__(
        self,
        provider: IFinancialDataProvider,
        per_call_timeout: float = 10.0,
        overall_deadline: float = 30.0,
    ) -> None:
        """
        Args:
            provider:         IFinancialDataProvider implementation.
            per_call_timeout: Seconds one sub-fetch (retries included) may take.
            overall_deadline: Seconds the whole fan-out may take.
        """
        self._provider = provider
        self._per_call_timeout = per_call_timeout
        self._overall_deadline = overall_deadline

    async def _run_slice(
        self, name: str, call: Callable[[], Awaitable[Any]], symbol: str
    ) -> Any:
        try:
            return await asyncio.wait_for(call(), timeout=self._per_call_timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("%s for %s timed out after %.1fs", name, symbol, self._per_call_timeout)
            return _Failed(exc)
        except ProviderError as exc:
            logger.warning("%s for %s failed: %s", name, symbol, exc)
            return _Failed(exc)
        except Exception as exc:
            logger.exception("%s for %s raised unexpectedly", name, symbol)
            return _Failed(exc)

    async def execute(self, symbol: str) -> FinancialSnapshot:
        """Fetch profile, quote, prices, statements, ratios and key metrics.

        Raises:
            InvalidSymbolError: if *symbol* is blank or malformed.
            ProviderUnavailableError: if every sub-fetch failed with a
                transport-level error, i.e. the provider is unreachable.
        """
        symbol = normalize_symbol(symbol)
        tasks = [
            asyncio.ensure_future(
                self._run_slice(slot, _bind(getattr(self._provider, method), symbol), symbol)
            )
            for slot, method in _SLICES
        ]
        try:
            _, pending = await asyncio.wait(tasks, timeout=self._overall_deadline)
        finally:
            unfinished = [task for task in tasks if not task.done()]
            for task in unfinished:
                task.cancel()
            if unfinished:
                await asyncio.gather(*unfinished, return_exceptions=True)
        if pending:
            logger.warning(
                "overall deadline of %.1fs hit for %s; %d slices defaulted",
                self._overall_deadline,
                symbol,
                len(pending),
            )

        results: dict[str, Any] = {}
        for (slot, _), task in zip(_SLICES, tasks):
            if task in pending or task.cancelled():
                results[slot] = _Failed(asyncio.TimeoutError())
            else:
                results[slot] = task.result()

        failures = {slot: r for slot, r in results.items() if isinstance(r, _Failed)}
        if len(failures) == len(_SLICES) and all(
            _is_unreachable(f.error) for f in failures.values()
        ):
            raise ProviderUnavailableError(
                f"financial-data provider unreachable for {symbol}"
            )

        snapshot = FinancialSnapshot(
            symbol=symbol,
            profile=_value_or(results["profile"], {}),
            quote=_value_or(results["quote"], default_quote(symbol)),
            price_series=_value_or(results["price_series"], []),
            income_statements=_value_or(results["income_statements"], []),
            balance_sheets=_value_or(results["balance_sheets"], []),
            cash_flows=_value_or(results["cash_flows"], []),
            ratios=_value_or(results["ratios"], []),
            key_metrics=_value_or(results["key_metrics"], []),
        )
        logger.info(
            "snapshot for %s: %d prices, %d income, %d balance, %d cash flow; %d slices defaulted",
            symbol,
            len(snapshot.price_series),
            len(snapshot.income_statements),
            len(snapshot.balance_sheets),
            len(snapshot.cash_flows),
            len(failures),
        )
        return snapshot


def _bind(method: Callable[[str], Awaitable[Any]], symbol: str) -> Callable[[], Awaitable[Any]]:
    return lambda: method(symbol)


def _value_or(result: Any, default: Any) -> Any:
    if isinstance(result, _Failed) or not result:
        return default
    return result


def _is_unreachable(error: BaseException) -> bool:
    if isinstance(error, RateLimitedError):
        return False
    return isinstance(error, (TransientProviderError, asyncio.TimeoutError))
