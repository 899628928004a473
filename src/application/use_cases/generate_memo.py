"""
Use-case: assemble a research memo for one company.
Depends only on Domain ports and entities: no infrastructure imports.

Data-fetch problems degrade the memo to "AI Analysis Only"; language-model
and parse failures propagate because there is no partial memo worth returning.
"""

import logging
from datetime import date
from typing import Optional

from src.application.analytics.headline_metrics import extract_headline_metrics
from src.application.analytics.price_windows import compute_price_analytics
from src.application.memo.narrative_parser import parse_narrative
from src.application.memo.prompts import build_memo_messages
from src.application.use_cases.fetch_financial_snapshot import FetchFinancialSnapshotUseCase
from src.application.use_cases.resolve_symbol import ResolveSymbolUseCase
from src.domain.entities.financial_snapshot import FinancialSnapshot
from src.domain.entities.memo import DATA_SOURCE_AI_ONLY, DATA_SOURCE_COMBINED, MemoBundle
from src.domain.errors import InvalidSymbolError, ProviderUnavailableError
from src.domain.ports.llm_port import ILanguageModel
from src.domain.ports.observability_port import IObservabilityHandler
from src.domain.ports.stock_data_port import IFinancialDataProvider

logger = logging.getLogger(__name__)


class GenerateMemoUseCase:
    def __init__(
        self,
        llm: ILanguageModel,
        provider: Optional[IFinancialDataProvider] = None,
        observability: Optional[IObservabilityHandler] = None,
        per_call_timeout: float = 10.0,
        overall_deadline: float = 30.0,
    ) -> None:
        """
        Args:
            llm:           ILanguageModel implementation producing the narrative.
            provider:      Financial-data provider. None runs in AI-only mode.
            observability: Optional tracing handler for the completion call.
        """
        self._llm = llm
        self._provider = provider
        self._observability = observability
        self._resolver = ResolveSymbolUseCase(provider)
        self._fetcher = (
            FetchFinancialSnapshotUseCase(provider, per_call_timeout, overall_deadline)
            if provider is not None
            else None
        )

    async def _fetch_snapshot(self, symbol: str) -> Optional[FinancialSnapshot]:
        if self._fetcher is None:
            logger.info("no financial-data provider configured; AI-only mode")
            return None
        try:
            return await self._fetcher.execute(symbol)
        except (InvalidSymbolError, ProviderUnavailableError) as exc:
            logger.warning("financial data unavailable for %s, continuing AI-only: %s", symbol, exc)
            return None

    async def execute(
        self,
        company_name: str,
        exchange: Optional[str] = None,
        reference_date: Optional[date] = None,
    ) -> MemoBundle:
        """Resolve, fetch, analyse and narrate *company_name*.

        Args:
            company_name:   Free-text company name or ticker.
            exchange:       Optional exchange hint (e.g. 'NASDAQ', 'NSE').
            reference_date: End date of the price windows. Defaults to today.

        Raises:
            ValueError: if *company_name* is blank.
            NarrativeParseError: if the model reply is not a JSON object.
            Any exception propagated from ILanguageModel.
        """
        if not company_name or not company_name.strip():
            raise ValueError("Company name is required")
        company_name = company_name.strip()
        exchange = (exchange or "").strip()

        symbol = await self._resolver.execute(company_name, exchange or None)
        snapshot = await self._fetch_snapshot(symbol)

        analytics = None
        headline_metrics: dict = {}
        if snapshot is not None:
            analytics = compute_price_analytics(snapshot.price_series, reference_date)
            headline_metrics = extract_headline_metrics(snapshot)

        messages = build_memo_messages(company_name, exchange or "Unknown", snapshot, analytics)
        callbacks = None
        metadata = None
        if self._observability is not None:
            callbacks = [self._observability.as_callback()]
            metadata = self._observability.run_metadata(company_name, symbol)

        try:
            reply = await self._llm.complete(messages, callbacks=callbacks, metadata=metadata)
        finally:
            if self._observability is not None:
                self._observability.flush()

        narrative = parse_narrative(reply)
        company = narrative.get("company")
        research = narrative.get("research")
        return MemoBundle(
            symbol=symbol,
            company=company if isinstance(company, dict) else {"name": company_name, "exchange": exchange},
            research=research if isinstance(research, dict) else {},
            data_source=DATA_SOURCE_COMBINED if snapshot is not None else DATA_SOURCE_AI_ONLY,
            snapshot=snapshot,
            analytics=analytics,
            headline_metrics=headline_metrics,
        )
