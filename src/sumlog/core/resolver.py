"""Connection parameter resolution.

Resolves the database and cache connection parameters once, at startup,
from a SecretSource. Any required value that cannot be obtained aborts
startup with a ConfigurationError naming every missing value.

Logical names:
    PGHOST, PGPORT, PGUSER, PGPASSWORD, PGDATABASE  (database)
    REDIS_HOST, REDIS_PORT, REDIS_PASSWORD          (cache)
    DATABASE_URL                                    (local mode override)
"""

from dataclasses import dataclass

from sqlalchemy.engine import URL

from sumlog.config import Settings
from sumlog.core.exceptions import ConfigurationError
from sumlog.core.logging import get_logger, mask_password
from sumlog.core.secrets import SecretSource, create_secret_source

logger = get_logger(__name__)

DATABASE_NAMES = ("PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE")
CACHE_NAMES = ("REDIS_HOST", "REDIS_PORT", "REDIS_PASSWORD")

# Required in every mode
REQUIRED_CACHE_NAMES = ("REDIS_HOST", "REDIS_PASSWORD")

# Required in managed mode only; local mode falls back to libpq defaults
REQUIRED_DATABASE_NAMES = ("PGHOST", "PGUSER", "PGPASSWORD", "PGDATABASE")

DATABASE_DEFAULTS = {
    "PGHOST": "localhost",
    "PGPORT": "5432",
    "PGUSER": "postgres",
    "PGDATABASE": "postgres",
}
DEFAULT_REDIS_PORT = 6379


@dataclass(frozen=True)
class ConnectionConfig:
    """Fully resolved connection parameters for the database and cache."""

    database_url: str
    redis_host: str
    redis_port: int
    redis_password: str

    @property
    def masked_database_url(self) -> str:
        return mask_password(self.database_url)

    def __repr__(self) -> str:
        return (
            f"<ConnectionConfig(database_url='{self.masked_database_url}', "
            f"redis={self.redis_host}:{self.redis_port})>"
        )


def build_database_url(values: dict[str, str | None]) -> str:
    """Assemble a PostgreSQL asyncpg URL from the PG* values.

    Raises:
        ConfigurationError: If PGPORT is not an integer
    """
    url = URL.create(
        "postgresql+asyncpg",
        username=values.get("PGUSER"),
        password=values.get("PGPASSWORD"),
        host=values.get("PGHOST"),
        port=_parse_port("PGPORT", values.get("PGPORT")),
        database=values.get("PGDATABASE"),
    )
    return url.render_as_string(hide_password=False)


def _parse_port(name: str, value: str | None) -> int | None:
    if value is None:
        return None
    try:
        port = int(value)
    except ValueError:
        raise ConfigurationError(message=f"{name} must be an integer") from None
    if not 1 <= port <= 65535:
        raise ConfigurationError(message=f"{name} must be between 1 and 65535")
    return port


async def resolve_connection_config(
    source: SecretSource, *, managed: bool
) -> ConnectionConfig:
    """Resolve every connection parameter from ``source``.

    Args:
        source: Where values are looked up
        managed: Whether database values are required (managed mode)
            rather than defaulted (local mode)

    Raises:
        ConfigurationError: If a required value is missing or malformed
    """
    values: dict[str, str | None] = {}
    for name in (*DATABASE_NAMES, *CACHE_NAMES):
        values[name] = await source.resolve(name)

    required = REQUIRED_CACHE_NAMES
    if managed:
        required = REQUIRED_DATABASE_NAMES + REQUIRED_CACHE_NAMES
    missing = [name for name in required if values[name] is None]
    if missing:
        raise ConfigurationError(missing=missing)

    database_url = None
    if not managed:
        database_url = await source.resolve("DATABASE_URL")
        for name, default in DATABASE_DEFAULTS.items():
            if values[name] is None:
                values[name] = default
    if database_url is None:
        database_url = build_database_url(values)

    redis_port = _parse_port("REDIS_PORT", values["REDIS_PORT"])

    return ConnectionConfig(
        database_url=database_url,
        redis_host=values["REDIS_HOST"],  # type: ignore[arg-type]
        redis_port=redis_port or DEFAULT_REDIS_PORT,
        redis_password=values["REDIS_PASSWORD"],  # type: ignore[arg-type]
    )


async def load_connection_config(settings: Settings) -> ConnectionConfig:
    """Select the secret source for the configured mode and resolve.

    This runs once per process, at startup. There is no retry.
    """
    source = create_secret_source(settings)
    try:
        config = await resolve_connection_config(source, managed=settings.is_managed)
    finally:
        await source.close()

    logger.info(
        "Connection configuration resolved",
        mode=settings.config_mode.value,
        database_url=config.masked_database_url,
        redis_host=config.redis_host,
        redis_port=config.redis_port,
    )
    return config
