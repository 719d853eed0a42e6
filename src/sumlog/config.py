"""Application configuration using Pydantic Settings.

This module holds the process-level settings (server, logging, timeouts and
where connection parameters come from). The database and cache connection
parameters themselves are resolved separately at startup, see
``sumlog.core.resolver``.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log format options."""

    JSON = "json"
    CONSOLE = "console"


class ConfigMode(str, Enum):
    """Where connection parameters are read from."""

    LOCAL = "local"
    MANAGED = "managed"


class Settings(BaseSettings):
    """Application settings with environment variable validation.

    All settings can be overridden via environment variables.
    Sensitive values should be provided via environment variables or .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Application
    # ========================================
    app_env: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    app_name: str = Field(
        default="SumLog",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_format: LogFormat = Field(
        default=LogFormat.CONSOLE,
        description="Log output format (json for production, console for dev)",
    )

    # ========================================
    # Server
    # ========================================
    host: str = Field(
        default="0.0.0.0",
        description="Server host",
    )
    port: int = Field(
        default=3000,
        ge=1,
        le=65535,
        description="Server port",
    )

    # ========================================
    # Connection parameter source
    # ========================================
    config_mode: ConfigMode = Field(
        default=ConfigMode.LOCAL,
        description="local reads the environment, managed reads the secret store",
    )
    vault_url: str | None = Field(
        default=None,
        description="Vault server address (managed mode)",
    )
    vault_token: SecretStr | None = Field(
        default=None,
        description="Vault token (managed mode)",
    )
    vault_mount: str = Field(
        default="secret",
        description="KV v2 secrets engine mount point",
    )
    vault_path_prefix: str = Field(
        default="sumlog",
        description="Path under the mount where connection secrets live",
    )
    vault_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Timeout in seconds for each secret lookup",
    )

    # ========================================
    # Database
    # ========================================
    database_pool_min: int = Field(
        default=2,
        ge=1,
        description="Minimum database connection pool size",
    )
    database_pool_max: int = Field(
        default=10,
        ge=1,
        description="Maximum database connection pool size",
    )
    database_timeout: float = Field(
        default=5.0,
        gt=0,
        description="Timeout in seconds for each history log operation",
    )

    # ========================================
    # Cache
    # ========================================
    cache_timeout: float = Field(
        default=2.0,
        gt=0,
        description="Timeout in seconds for each cache operation",
    )

    # ========================================
    # History
    # ========================================
    history_limit: int = Field(
        default=5,
        ge=1,
        description="Number of records returned by GET /hist_log",
    )

    # ========================================
    # Derived Properties
    # ========================================
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == Environment.PRODUCTION

    @property
    def use_json_logs(self) -> bool:
        """Check if JSON logging should be used."""
        return self.log_format == LogFormat.JSON or self.is_production

    @property
    def is_managed(self) -> bool:
        return self.config_mode == ConfigMode.MANAGED


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    This function is cached to avoid re-reading environment variables
    on every access. Use dependency injection in FastAPI routes.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
