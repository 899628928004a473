"""
Domain exceptions.

Provider errors are recovered inside the fetch orchestration and turned into
empty defaults. Configuration and narrative errors propagate to the caller.
"""

from typing import Optional


class StockMemoError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(StockMemoError):
    """A required credential or setting is missing."""


class InvalidSymbolError(StockMemoError, ValueError):
    """The ticker symbol is blank or structurally invalid."""


class ProviderError(StockMemoError):
    """A financial-data provider call did not produce usable data."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RateLimitedError(ProviderError):
    """HTTP 429. Retryable."""


class TransientProviderError(ProviderError):
    """5xx, timeout, transport failure or malformed body. Retryable."""


class ProviderTimeoutError(TransientProviderError):
    """A single HTTP request exceeded its timeout."""


class PermanentProviderError(ProviderError):
    """4xx other than 404/429. Never retried."""


class ProviderUnavailableError(StockMemoError):
    """Every sub-fetch failed at the transport level."""


class NarrativeGenerationError(StockMemoError):
    """The language-model step failed."""


class NarrativeParseError(NarrativeGenerationError):
    """The language-model output was not a JSON object."""

    def __init__(self, message: str, raw_response: str) -> None:
        super().__init__(message)
        self.raw_response = raw_response
