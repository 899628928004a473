import asyncio

import pytest

from src.application.use_cases.fetch_financial_snapshot import (
    FetchFinancialSnapshotUseCase,
    normalize_symbol,
)
from src.domain.errors import (
    InvalidSymbolError,
    PermanentProviderError,
    ProviderUnavailableError,
    RateLimitedError,
    TransientProviderError,
)

from tests.fakes import FakeProvider

ALL_METHODS = (
    "get_profile",
    "get_quote",
    "get_historical_prices",
    "get_income_statements",
    "get_balance_sheets",
    "get_cash_flows",
    "get_ratios",
    "get_key_metrics",
)


@pytest.mark.asyncio
async def test_all_slices_populated(fake_provider):
    snapshot = await FetchFinancialSnapshotUseCase(fake_provider).execute(" aapl ")

    assert snapshot.symbol == "AAPL"
    assert snapshot.profile["companyName"] == "Apple Inc."
    assert snapshot.quote["price"] == 190.5
    assert len(snapshot.price_series) == 4
    assert snapshot.income_statements and snapshot.balance_sheets and snapshot.cash_flows
    assert snapshot.ratios and snapshot.key_metrics
    assert all(fake_provider.calls[m] == 1 for m in ALL_METHODS)


@pytest.mark.asyncio
async def test_one_failed_slice_defaults_without_affecting_others():
    provider = FakeProvider(overrides={"get_income_statements": PermanentProviderError("403", status_code=403)})

    snapshot = await FetchFinancialSnapshotUseCase(provider).execute("AAPL")

    assert snapshot.income_statements == []
    assert snapshot.balance_sheets and snapshot.ratios and snapshot.price_series


@pytest.mark.asyncio
async def test_missing_quote_becomes_zero_price_placeholder():
    provider = FakeProvider(overrides={"get_quote": RateLimitedError("429", status_code=429)})

    snapshot = await FetchFinancialSnapshotUseCase(provider).execute("MSFT")

    assert snapshot.quote == {"symbol": "MSFT", "price": 0}


@pytest.mark.asyncio
async def test_none_results_are_replaced_by_defaults():
    provider = FakeProvider(overrides={"get_profile": None, "get_quote": None, "get_ratios": []})

    snapshot = await FetchFinancialSnapshotUseCase(provider).execute("AAPL")

    assert snapshot.profile == {}
    assert snapshot.quote == {"symbol": "AAPL", "price": 0}
    assert snapshot.ratios == []


@pytest.mark.asyncio
async def test_slow_slice_hits_per_call_timeout():
    provider = FakeProvider(delays={"get_ratios": 5})

    snapshot = await FetchFinancialSnapshotUseCase(provider, per_call_timeout=0.05).execute("AAPL")

    assert snapshot.ratios == []
    assert snapshot.key_metrics


@pytest.mark.asyncio
async def test_overall_deadline_cancels_stragglers():
    provider = FakeProvider(delays={"get_key_metrics": 5})

    snapshot = await FetchFinancialSnapshotUseCase(
        provider, per_call_timeout=10, overall_deadline=0.1
    ).execute("AAPL")

    assert snapshot.key_metrics == []
    assert snapshot.profile["companyName"] == "Apple Inc."


@pytest.mark.asyncio
async def test_unexpected_error_in_one_slice_defaults_it():
    provider = FakeProvider(overrides={"get_ratios": KeyError("ratios")})

    snapshot = await FetchFinancialSnapshotUseCase(provider).execute("AAPL")

    assert snapshot.ratios == []
    assert snapshot.profile["companyName"] == "Apple Inc."
    assert snapshot.quote["price"] == 190.5
    assert snapshot.key_metrics and snapshot.price_series


@pytest.mark.asyncio
async def test_cancelling_execute_cancels_in_flight_sub_fetches():
    cancelled = []
    all_started = asyncio.Event()

    class HangingProvider(FakeProvider):
        async def _answer(self, name, default):
            self.calls[name] += 1
            if sum(self.calls.values()) == len(ALL_METHODS):
                all_started.set()
            try:
                await asyncio.sleep(30)
            except asyncio.CancelledError:
                cancelled.append(name)
                raise
            return default

    use_case = FetchFinancialSnapshotUseCase(HangingProvider(), per_call_timeout=60, overall_deadline=60)
    outer = asyncio.ensure_future(use_case.execute("AAPL"))
    await asyncio.wait_for(all_started.wait(), timeout=1)

    outer.cancel()
    with pytest.raises(asyncio.CancelledError):
        await outer

    assert sorted(cancelled) == sorted(ALL_METHODS)


@pytest.mark.asyncio
async def test_sub_fetches_run_concurrently():
    started = []
    all_started = asyncio.Event()

    class BarrierProvider(FakeProvider):
        async def _answer(self, name, default):
            started.append(name)
            if len(started) == len(ALL_METHODS):
                all_started.set()
            # Sequential execution would never release this barrier.
            await asyncio.wait_for(all_started.wait(), timeout=1)
            return await super()._answer(name, default)

    snapshot = await FetchFinancialSnapshotUseCase(BarrierProvider(), per_call_timeout=2).execute("AAPL")

    assert sorted(started) == sorted(ALL_METHODS)
    assert snapshot.key_metrics and snapshot.profile


@pytest.mark.asyncio
async def test_unreachable_provider_raises():
    provider = FakeProvider(overrides={m: TransientProviderError("connection refused") for m in ALL_METHODS})

    with pytest.raises(ProviderUnavailableError):
        await FetchFinancialSnapshotUseCase(provider).execute("AAPL")


@pytest.mark.asyncio
async def test_all_slices_rate_limited_still_returns_defaults():
    provider = FakeProvider(overrides={m: RateLimitedError("429", status_code=429) for m in ALL_METHODS})

    snapshot = await FetchFinancialSnapshotUseCase(provider).execute("AAPL")

    assert snapshot.profile == {}
    assert snapshot.quote == {"symbol": "AAPL", "price": 0}
    assert snapshot.price_series == []


@pytest.mark.asyncio
async def test_invalid_symbol_is_rejected_before_any_call(fake_provider):
    with pytest.raises(InvalidSymbolError):
        await FetchFinancialSnapshotUseCase(fake_provider).execute("   ")
    with pytest.raises(InvalidSymbolError):
        await FetchFinancialSnapshotUseCase(fake_provider).execute("AA PL; DROP")

    assert sum(fake_provider.calls.values()) == 0


@pytest.mark.parametrize("raw,expected", [("aapl", "AAPL"), (" tcs.ns ", "TCS.NS"), ("^gspc", "^GSPC"), ("BRK-B", "BRK-B")])
def test_normalize_symbol(raw, expected):
    assert normalize_symbol(raw) == expected


def test_invalid_symbol_is_also_a_value_error():
    with pytest.raises(ValueError):
        normalize_symbol("not a ticker!")
