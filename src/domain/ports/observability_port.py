"""
Port (interface) for tracing language-model calls.
Infrastructure adapters (e.g. LangfuseObservabilityHandler) must implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class IObservabilityHandler(ABC):
    @abstractmethod
    def as_callback(self) -> Any:
        """Return the LangChain callback handler that records the memo call."""
        ...

    @abstractmethod
    def run_metadata(self, company_name: str, symbol: Optional[str]) -> dict:
        """Metadata attached to the traced run (tags, company, symbol)."""
        ...

    @abstractmethod
    def flush(self) -> None:
        """Send buffered traces before the request finishes."""
        ...
