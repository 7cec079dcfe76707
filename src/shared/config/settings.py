"""Configuration management with Pydantic Settings.

Environment variables are loaded from:
1. Environment variables (highest priority)
2. .env file (development)
3. Defaults (lowest priority)

Settings are constructed once by the process entry point and passed to
the components that need them. Instances are frozen.
"""

from enum import Enum

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONTROL_PLANE_NAMESPACE = "kube-federation-system"
DEFAULT_SINGLE_CALL_TIMEOUT_SECONDS = 10.0


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Logging format."""

    JSON = "json"
    TEXT = "text"


class DatabaseSettings(BaseSettings):
    """PostgreSQL database configuration."""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_", frozen=True)

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    user: str = Field(default="fedcluster", description="Database user")
    password: str = Field(default="", description="Database password")
    database: str = Field(default="fedcluster", description="Database name")
    url_override: str | None = Field(
        default=None,
        alias="DATABASE_URL",
        description="Full async database URL, takes precedence over host/port",
    )

    @property
    def url(self) -> str:
        """Build database URL (sync driver)."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"

    @property
    def async_url(self) -> str:
        """Build async database URL (asyncpg driver)."""
        if self.url_override:
            return self.url_override
        return f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


class RedisSettings(BaseSettings):
    """Redis configuration."""

    model_config = SettingsConfigDict(env_prefix="REDIS_", frozen=True)

    host: str = Field(default="localhost", description="Redis host")
    port: int = Field(default=6379, description="Redis port")
    password: str | None = Field(default=None, description="Redis password")

    @property
    def url(self) -> str:
        """Build Redis URL."""
        if self.password:
            return f"redis://:{self.password}@{self.host}:{self.port}"
        return f"redis://{self.host}:{self.port}"


class Settings(BaseSettings):
    """Main application settings.

    All settings can be overridden via environment variables.
    For nested settings, use the appropriate prefix (e.g., POSTGRES_HOST).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Application metadata
    app_name: str = Field(default="fedcluster-registry", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        alias="ENV",
        description="Deployment environment",
    )

    # Logging configuration
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_format: LogFormat = Field(default=LogFormat.JSON, description="Logging format")

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Server bind host")
    port: int = Field(default=8080, description="Server bind port")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION


class ClusterRegistrySettings(Settings):
    """Settings specific to the Cluster Registry service.

    Covers how the control plane is reached (kubeconfig, namespace) and
    how member clusters are probed (timeouts, intervals, scope).
    """

    # Control plane access
    kubeconfig: str | None = Field(
        default=None,
        description="Path to kubeconfig for the control plane; in-cluster config is tried first",
    )
    kube_context: str | None = Field(
        default=None,
        description="kubeconfig context to use; defaults to current-context",
    )
    control_plane_namespace: str = Field(
        default=DEFAULT_CONTROL_PLANE_NAMESPACE,
        min_length=1,
        description="Namespace holding member cluster secrets",
    )

    # Probing
    single_call_timeout_seconds: float = Field(
        default=DEFAULT_SINGLE_CALL_TIMEOUT_SECONDS,
        description="Upper bound for a single call against a member cluster",
    )
    probe_interval_seconds: float = Field(
        default=30.0,
        description="Interval between passes for one cluster",
    )
    resync_interval_seconds: float = Field(
        default=60.0,
        description="Interval between registry enumerations",
    )
    failure_threshold: int = Field(
        default=1,
        ge=1,
        description="Consecutive failed probes before a Ready cluster is marked offline",
    )

    # Scope
    limited_scope: bool = Field(
        default=False,
        description="Only reconcile registrations in the control plane namespace",
    )
    shard_count: int = Field(default=1, ge=1, description="Number of registry shards")
    shard_index: int = Field(default=0, ge=0, description="Shard owned by this instance")

    @field_validator(
        "single_call_timeout_seconds",
        "probe_interval_seconds",
        "resync_interval_seconds",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Durations must be strictly positive."""
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @model_validator(mode="after")
    def validate_shard(self) -> "ClusterRegistrySettings":
        if self.shard_index >= self.shard_count:
            raise ValueError(
                f"shard_index {self.shard_index} must be lower than shard_count {self.shard_count}"
            )
        return self
