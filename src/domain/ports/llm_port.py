"""
Port (interface) for language model providers.
Infrastructure adapters (e.g. ChatCompletionAdapter) must implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class ILanguageModel(ABC):
    @abstractmethod
    async def complete(
        self,
        messages: list[Any],
        callbacks: Optional[list[Any]] = None,
        metadata: Optional[dict] = None,
    ) -> str:
        """Run one chat completion and return the raw text of the reply."""
        ...
