"""Secret sources for connection parameters.

A secret source answers one question: what is the value stored under a
logical name? Two implementations exist and one is chosen at startup:

- EnvironmentSecretSource: the process environment (local mode)
- VaultSecretSource: HashiCorp Vault KV v2 over HTTP (managed mode)

Usage:
    source = create_secret_source(settings)
    try:
        host = await source.resolve("REDIS_HOST")
    finally:
        await source.close()
"""

import os
from collections.abc import Mapping
from typing import Protocol

import httpx
import structlog

from sumlog.config import Settings
from sumlog.core.exceptions import ConfigurationError, SecretStoreError

logger = structlog.get_logger(__name__)


class SecretSource(Protocol):
    """Lookup of configuration values by logical name."""

    async def resolve(self, name: str) -> str | None:
        """Return the value stored under ``name``, or None if absent."""
        ...

    async def close(self) -> None:
        """Release any resources held by the source."""
        ...


class EnvironmentSecretSource:
    """Secret source backed by the process environment.

    Empty values count as absent.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ

    async def resolve(self, name: str) -> str | None:
        value = self._environ.get(name)
        return value or None

    async def close(self) -> None:
        return None


class VaultSecretSource:
    """Secret source backed by a HashiCorp Vault KV v2 engine.

    Each logical name is its own secret at ``<mount>/data/<prefix>/<name>``
    holding a single ``value`` field, so every lookup is one HTTP request.

    Usage:
        ```python
        source = VaultSecretSource(
            url="https://vault.internal:8200",
            token="s.xxxxx",
        )
        password = await source.resolve("PGPASSWORD")
        ```
    """

    VALUE_FIELD = "value"

    def __init__(
        self,
        url: str,
        token: str,
        *,
        mount: str = "secret",
        path_prefix: str = "",
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the source.

        Args:
            url: Vault server address
            token: Vault token sent as X-Vault-Token
            mount: KV v2 mount point
            path_prefix: Path under the mount holding the secrets
            timeout: Per-request timeout in seconds
            client: Pre-built HTTP client (tests inject a MockTransport here)
        """
        self.mount = mount.strip("/")
        self.path_prefix = path_prefix.strip("/")
        self._client = client or httpx.AsyncClient(
            base_url=url,
            timeout=timeout,
            headers={"X-Vault-Token": token},
        )

    def secret_path(self, name: str) -> str:
        """API path of the secret holding ``name``."""
        parts = [self.mount, "data"]
        if self.path_prefix:
            parts.append(self.path_prefix)
        parts.append(name)
        return "/v1/" + "/".join(parts)

    async def resolve(self, name: str) -> str | None:
        """Fetch one secret.

        Raises:
            SecretStoreError: On transport failure, an unexpected status
                or a malformed payload
        """
        path = self.secret_path(name)
        try:
            response = await self._client.get(path)
        except httpx.HTTPError as e:
            raise SecretStoreError(name, f"{type(e).__name__}: {e}") from e

        if response.status_code == 404:
            logger.debug("secret_not_found", name=name)
            return None
        if response.status_code != 200:
            raise SecretStoreError(name, f"HTTP {response.status_code}")

        try:
            data = response.json()["data"]["data"]
        except (ValueError, KeyError, TypeError) as e:
            raise SecretStoreError(name, "malformed response") from e

        value = data.get(self.VALUE_FIELD) if isinstance(data, dict) else None
        if value is None or value == "":
            return None
        return str(value)

    async def close(self) -> None:
        await self._client.aclose()


def create_secret_source(settings: Settings) -> SecretSource:
    """Build the secret source for the configured mode.

    Raises:
        ConfigurationError: If managed mode lacks the Vault address or token
    """
    if not settings.is_managed:
        return EnvironmentSecretSource()

    missing = []
    if not settings.vault_url:
        missing.append("VAULT_URL")
    if settings.vault_token is None or not settings.vault_token.get_secret_value():
        missing.append("VAULT_TOKEN")
    if missing:
        raise ConfigurationError(missing=missing)

    return VaultSecretSource(
        url=settings.vault_url,  # type: ignore[arg-type]
        token=settings.vault_token.get_secret_value(),  # type: ignore[union-attr]
        mount=settings.vault_mount,
        path_prefix=settings.vault_path_prefix,
        timeout=settings.vault_timeout,
    )
