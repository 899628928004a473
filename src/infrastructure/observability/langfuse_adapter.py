"""
Infrastructure adapter: Langfuse → IObservabilityHandler.

Langfuse is imported lazily inside the methods so the module can be loaded
even when LANGFUSE_* environment variables are not set (e.g. during testing).
The composition root only builds this handler when LANGFUSE_PUBLIC_KEY is set.
"""

from typing import Any, Optional

from src.domain.ports.observability_port import IObservabilityHandler


class LangfuseObservabilityHandler(IObservabilityHandler):
    """Traces each memo completion through the Langfuse LangChain CallbackHandler."""

    TAGS = ["stock-memo"]

    def __init__(self) -> None:
        from langfuse.langchain import CallbackHandler
        self._handler = CallbackHandler()

    def as_callback(self) -> Any:
        return self._handler

    def run_metadata(self, company_name: str, symbol: Optional[str]) -> dict:
        return {
            "langfuse_tags": self.TAGS + ([symbol] if symbol else []),
            "company_name": company_name,
            "symbol": symbol,
        }

    def flush(self) -> None:
        from langfuse import get_client
        get_client().flush()
