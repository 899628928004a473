"""
Runtime settings read from the environment (and a local .env file).

Settings is a plain value passed to each request's collaborators; nothing
holds an API key in module-level state.
"""

import logging
import os
from typing import Mapping, Optional

from dotenv import load_dotenv
from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.domain.errors import ConfigurationError
from src.infrastructure.financial_data.retry import RetryPolicy

logger = logging.getLogger(__name__)

SECRET_KEYS = ("FMP_API_KEY", "LLM_API_KEY", "GROQ_API_KEY", "LANGFUSE_PUBLIC_KEY", "LANGFUSE_SECRET_KEY", "LANGFUSE_HOST")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
        populate_by_name=True,
    )

    fmp_api_key: Optional[str] = None
    fmp_base_url: Optional[str] = None
    fmp_legacy_base_url: Optional[str] = None
    llm_api_key: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("llm_api_key", "groq_api_key")
    )
    llm_base_url: Optional[str] = None
    llm_model: Optional[str] = None
    fetch_timeout_seconds: float = 10.0
    fetch_deadline_seconds: float = 30.0
    # Per HTTP request; derived from fetch_timeout_seconds when unset.
    fmp_request_timeout_seconds: Optional[float] = None
    langfuse_enabled: bool = Field(
        default=False, validation_alias=AliasChoices("langfuse_enabled", "langfuse_public_key")
    )
    log_level: str = "INFO"

    @field_validator("langfuse_enabled", mode="before")
    @classmethod
    def _public_key_enables_langfuse(cls, value: object) -> bool:
        if isinstance(value, str):
            return bool(value.strip())
        return bool(value)

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from *env* (default: ``os.environ``).

        Missing optional keys fall back to defaults; the LLM key is checked
        lazily by require_llm_key() so the service can start without it.

        Raises:
            ConfigurationError: if a value has the wrong type, e.g. a
                non-numeric timeout.
        """
        try:
            if env is None:
                return cls()
            values = {key.lower(): value for key, value in env.items() if value != ""}
            return cls.model_validate(values)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid settings: {exc}") from exc

    @property
    def request_timeout_seconds(self) -> float:
        """Timeout for one FMP HTTP request.

        Defaults to a share of fetch_timeout_seconds small enough that every
        retry attempt of one sub-fetch fits inside its budget.
        """
        if self.fmp_request_timeout_seconds:
            return self.fmp_request_timeout_seconds
        return self.fetch_timeout_seconds / (RetryPolicy().max_attempts + 1)

    def require_llm_key(self) -> str:
        if not self.llm_api_key:
            raise ConfigurationError("LLM_API_KEY not configured")
        return self.llm_api_key


def bootstrap_environment() -> None:
    """Load .env, then pull credentials from AWS Secrets Manager if APP_SECRET_ARN is set."""
    load_dotenv()
    secret_arn = os.environ.get("APP_SECRET_ARN")
    if secret_arn:
        from src.infrastructure.secrets.secrets_manager_adapter import SecretsManagerAdapter
        SecretsManagerAdapter().load_into_env(secret_arn, keys=SECRET_KEYS)
