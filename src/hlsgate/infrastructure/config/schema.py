"""Pydantic configuration models with validation."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]
StorageBackend = Literal["auto", "blob", "local"]

# Upstream CDNs reject obvious bot user agents.
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


def _normalize_path(value: Any) -> Path:
    """
    Normalize a path-like value without causing filesystem side-effects.

    This function MUST NOT create directories or files.
    """
    if isinstance(value, Path):
        return value.expanduser()
    if isinstance(value, str):
        return Path(value).expanduser()
    raise TypeError(f"Expected path-like value, got: {type(value)!r}")


class StorageConfig(BaseModel):
    """Backing store for cached playlists.

    ``auto`` selects the blob store when a read/write token is configured
    and the local directory otherwise.
    """

    backend: StorageBackend = Field(
        default="auto",
        description="Store backend: 'auto', 'blob' (Vercel Blob) or 'local'.",
    )
    namespace: str = Field(
        default="playlists/",
        description="Pathname prefix under which playlists are stored.",
    )
    playlists_dir: Path = Field(
        default=Path("./playlists"),
        description="Directory for the local backend.",
    )
    blob_api_url: str = Field(
        default="https://blob.vercel-storage.com",
        description="Vercel Blob API base URL.",
    )
    blob_read_write_token: str | None = Field(
        default=None,
        description="Vercel Blob read/write token (BLOB_READ_WRITE_TOKEN).",
    )

    @field_validator("playlists_dir", mode="before")
    @classmethod
    def _validate_dir(cls, v: Any) -> Path:
        return _normalize_path(v)

    @field_validator("namespace")
    @classmethod
    def _validate_namespace(cls, v: str) -> str:
        v = v.strip("/")
        if not v:
            raise ValueError("storage.namespace must not be empty")
        return f"{v}/"

    @model_validator(mode="after")
    def _check_token(self) -> "StorageConfig":
        if self.backend == "blob" and not self.blob_read_write_token:
            raise ValueError("storage.backend=blob requires BLOB_READ_WRITE_TOKEN")
        return self

    @property
    def use_blob(self) -> bool:
        if self.backend == "blob":
            return True
        return self.backend == "auto" and bool(self.blob_read_write_token)


class RetentionConfig(BaseModel):
    """Periodic sweep of expired playlists."""

    enabled: bool = Field(default=True, description="Run the retention sweep.")
    interval_days: float = Field(
        default=15.0,
        description="Days between sweeps.",
    )
    retention_hours: float = Field(
        default=24.0,
        description="Entries older than this are deleted by the sweep.",
    )
    list_limit: int = Field(
        default=1000,
        description="Page size when listing the store during a sweep.",
    )

    @field_validator("interval_days", "retention_hours")
    @classmethod
    def _validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("retention durations must be > 0")
        return v

    @field_validator("list_limit")
    @classmethod
    def _validate_limit(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("retention.list_limit must be > 0")
        return v


class ProviderConfig(BaseModel):
    """Content-resolution provider API."""

    base_url: str | None = Field(
        default=None,
        description="Provider API base URL. Unset = scraping unavailable.",
    )
    timeout_seconds: float = Field(
        default=60.0,
        description="Timeout for a single provider run (seconds).",
    )

    @field_validator("timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("provider.timeout_seconds must be > 0")
        return v


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/storage/retention/provider).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="hlsgate", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP client (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Timeout in seconds for upstream manifest/segment fetches.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether HTTP client follows redirects.",
    )
    http_user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    storage: StorageConfig = Field(default_factory=StorageConfig)
    retention: RetentionConfig = Field(default_factory=RetentionConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """
        Dump configuration in the sectioned shape used by config.yaml/docs.

        The blob token is never dumped.
        """
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "storage": {
                "backend": self.storage.backend,
                "namespace": self.storage.namespace,
                "playlists_dir": str(self.storage.playlists_dir),
                "blob_api_url": self.storage.blob_api_url,
            },
            "retention": self.retention.model_dump(),
            "provider": self.provider.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    Intended usage:
    - load.py creates EnvOverrides() to read HLSGATE_* variables,
      converts to dict of set values, merges into YAML/defaults,
      then validates AppConfig.

    Supported env var examples (flat, explicit):
    - HLSGATE_LOG_LEVEL
    - HLSGATE_STORAGE_BACKEND
    - HLSGATE_PLAYLISTS_DIR
    - HLSGATE_RETENTION_HOURS
    - HLSGATE_PROVIDER_BASE_URL
    - BLOB_READ_WRITE_TOKEN (unprefixed, as issued by Vercel)
    """

    model_config = SettingsConfigDict(
        env_prefix="HLSGATE_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    storage_backend: Optional[StorageBackend] = None
    storage_namespace: Optional[str] = None
    playlists_dir: Optional[Path] = None
    blob_api_url: Optional[str] = None
    blob_read_write_token: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "BLOB_READ_WRITE_TOKEN", "HLSGATE_BLOB_READ_WRITE_TOKEN"
        ),
    )

    retention_enabled: Optional[bool] = None
    retention_interval_days: Optional[float] = None
    retention_hours: Optional[float] = None

    provider_base_url: Optional[str] = None
    provider_timeout_seconds: Optional[float] = None

    @field_validator("playlists_dir", mode="before")
    @classmethod
    def _validate_paths(cls, v: Any) -> Any:
        if v is None:
            return None
        return _normalize_path(v)

    def to_update_dict(self) -> dict[str, Any]:
        """
        Return only values that were actually provided (non-None), for merging.
        """
        return self.model_dump(exclude_none=True)
