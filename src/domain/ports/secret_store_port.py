"""
Port (interface) for secret stores holding provider credentials.
Infrastructure adapters (e.g. SecretsManagerAdapter) must implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional


class ISecretStore(ABC):
    @abstractmethod
    def get_secret(self, secret_id: str) -> dict:
        """Fetch a JSON secret and return its key-value pairs."""
        ...

    @abstractmethod
    def load_into_env(
        self, secret_id: str, keys: Optional[Iterable[str]] = None
    ) -> list[str]:
        """Copy secret values into ``os.environ``; return the names that were set.

        Existing environment values win. When *keys* is given only those
        names are copied.
        """
        ...
