"""
FastAPI entry point.

This module is the Composition Root: it reads Settings per request, builds the
infrastructure adapters for that request and passes them to the application
layer. No adapter outlives the request that created it.

Run locally:
    uvicorn src.infrastructure.entrypoints.fastapi_app:app --reload --port 8000
"""

import dataclasses
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.infrastructure.config import Settings, bootstrap_environment

bootstrap_environment()

from src.application.memo.renderer import render_html, render_plain_text  # noqa: E402
from src.application.use_cases.generate_memo import GenerateMemoUseCase  # noqa: E402
from src.application.use_cases.search_companies import SearchCompaniesUseCase  # noqa: E402
from src.domain.errors import ConfigurationError, NarrativeGenerationError  # noqa: E402
from src.domain.ports.llm_port import ILanguageModel  # noqa: E402
from src.domain.ports.observability_port import IObservabilityHandler  # noqa: E402
from src.domain.ports.stock_data_port import IFinancialDataProvider  # noqa: E402
from src.infrastructure.financial_data.fmp_adapter import FMPFinancialDataProvider  # noqa: E402
from src.infrastructure.llm.chat_completion_adapter import ChatCompletionAdapter  # noqa: E402

logging.basicConfig(
    level=Settings.from_env().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Per-request wiring (overridable via app.dependency_overrides in tests)
# ---------------------------------------------------------------------------

def get_settings() -> Settings:
    return Settings.from_env()


@asynccontextmanager
async def open_fmp_provider(settings: Settings) -> AsyncIterator[Optional[IFinancialDataProvider]]:
    """Yield a request-scoped FMP adapter, or None when FMP_API_KEY is unset."""
    if not settings.fmp_api_key:
        yield None
        return
    async with FMPFinancialDataProvider(
        settings.fmp_api_key,
        base_url=settings.fmp_base_url,
        legacy_base_url=settings.fmp_legacy_base_url,
        timeout=settings.request_timeout_seconds,
    ) as provider:
        yield provider


def build_language_model(settings: Settings) -> ILanguageModel:
    return ChatCompletionAdapter(
        api_key=settings.require_llm_key(),
        base_url=settings.llm_base_url,
        model=settings.llm_model,
    )


def build_observability(settings: Settings) -> Optional[IObservabilityHandler]:
    if not settings.langfuse_enabled:
        return None
    from src.infrastructure.observability.langfuse_adapter import LangfuseObservabilityHandler
    return LangfuseObservabilityHandler()


def get_provider_opener() -> Callable:
    return open_fmp_provider


def get_llm_factory() -> Callable[[Settings], ILanguageModel]:
    return build_language_model


def get_observability_factory() -> Callable[[Settings], Optional[IObservabilityHandler]]:
    return build_observability


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(title="StockMemo API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


class MemoRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    company_name: Optional[str] = Field(default=None, alias="companyName")
    exchange: Optional[str] = None


def _error(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body = {"error": error}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 405:
        return _error(405, "Method not allowed")
    return _error(exc.status_code, str(exc.detail))


async def _read_memo_request(request: Request) -> MemoRequest:
    if request.method == "GET":
        return MemoRequest.model_validate(dict(request.query_params))
    try:
        payload = await request.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}
    return MemoRequest.model_validate(payload)


@app.api_route("/api/generate-memo", methods=["GET", "POST"])
async def generate_memo(
    request: Request,
    output_format: str = Query("json", alias="format"),
    settings: Settings = Depends(get_settings),
    provider_opener: Callable = Depends(get_provider_opener),
    llm_factory: Callable = Depends(get_llm_factory),
    observability_factory: Callable = Depends(get_observability_factory),
):
    """Generate a memo. Returns JSON by default, or the rendered memo with ?format=html|text."""
    try:
        body = await _read_memo_request(request)
    except ValidationError as exc:
        return _error(400, "Invalid request body", str(exc))

    if not body.company_name or not body.company_name.strip():
        return _error(400, "Company name is required")

    try:
        llm = llm_factory(settings)
    except ConfigurationError as exc:
        return _error(500, str(exc))

    try:
        async with provider_opener(settings) as provider:
            use_case = GenerateMemoUseCase(
                llm,
                provider=provider,
                observability=observability_factory(settings),
                per_call_timeout=settings.fetch_timeout_seconds,
                overall_deadline=settings.fetch_deadline_seconds,
            )
            bundle = await use_case.execute(body.company_name, body.exchange)
    except ConfigurationError as exc:
        return _error(500, str(exc))
    except NarrativeGenerationError as exc:
        logger.error("memo generation failed for %r: %s", body.company_name, exc)
        return _error(500, "Failed to generate memo", str(exc))

    if output_format == "html":
        return HTMLResponse(render_html(bundle))
    if output_format == "text":
        return PlainTextResponse(render_plain_text(bundle))
    return {
        "success": True,
        "data": jsonable_encoder(dataclasses.asdict(bundle)),
        "dataSource": bundle.data_source,
    }


@app.get("/api/search-companies")
async def search_companies(
    q: Optional[str] = None,
    settings: Settings = Depends(get_settings),
    provider_opener: Callable = Depends(get_provider_opener),
):
    """Company autocomplete: live provider search with a static fallback."""
    async with provider_opener(settings) as provider:
        companies = await SearchCompaniesUseCase(provider).execute(q)
    return {"companies": [dataclasses.asdict(c) for c in companies]}


@app.get("/health")
async def health():
    return {"status": "ok"}
