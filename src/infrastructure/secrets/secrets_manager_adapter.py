"""
Infrastructure adapter: AWS Secrets Manager → ISecretStore.

Deployments keep FMP_API_KEY / LLM_API_KEY in one JSON secret. load_into_env()
runs once at startup, before Settings.from_env() reads the environment.
"""

import json
import logging
import os
from typing import Iterable, Optional

import boto3

from src.domain.errors import ConfigurationError
from src.domain.ports.secret_store_port import ISecretStore

logger = logging.getLogger(__name__)


class SecretsManagerAdapter(ISecretStore):
    """Fetches and deserializes secrets from AWS Secrets Manager."""

    def __init__(self, region: str | None = None, client=None) -> None:
        self._client = client or boto3.client(
            "secretsmanager",
            region_name=region or os.environ.get("AWS_DEFAULT_REGION", "us-east-1"),
        )

    def get_secret(self, secret_id: str) -> dict:
        response = self._client.get_secret_value(SecretId=secret_id)
        try:
            secret = json.loads(response["SecretString"])
        except (KeyError, json.JSONDecodeError) as exc:
            raise ConfigurationError(f"Secret {secret_id!r} is not a JSON object") from exc
        if not isinstance(secret, dict):
            raise ConfigurationError(f"Secret {secret_id!r} is not a JSON object")
        return secret

    def load_into_env(
        self, secret_id: str, keys: Optional[Iterable[str]] = None
    ) -> list[str]:
        secrets = self.get_secret(secret_id)
        wanted = set(keys) if keys is not None else None
        loaded = []
        for key, value in secrets.items():
            if wanted is not None and key not in wanted:
                continue
            if os.environ.get(key):
                continue
            os.environ[key] = str(value)
            loaded.append(key)
        # Names only; values are credentials.
        logger.info("loaded %d settings from secret store: %s", len(loaded), ", ".join(sorted(loaded)))
        return loaded
