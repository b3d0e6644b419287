"""Configuration models for govsync."""

from __future__ import annotations

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from govsync.integrations.temporal import TemporalConfig
from govsync.scheduling.errors import ConfigurationError
from govsync.scheduling.identity import DEFAULT_NAMESPACE, derive_identities
from govsync.scheduling.models import DesiredSchedule, SyncRequest
from govsync.scheduling.policy import validate_cron, validate_timezone


class DatabaseConfig(BaseModel):
    """Database connection settings. ``url`` falls back to GOVSYNC_DATABASE_URL."""

    url: str | None = None
    pool_size: int = Field(default=5, ge=1)
    max_overflow: int = Field(default=5, ge=0)
    pool_timeout: float = Field(default=30.0, gt=0)
    echo: bool = False


class ScheduleEntryConfig(BaseModel):
    """One governance charter schedule."""

    charter: str
    cron: str
    timezone: str = "UTC"
    entrypoint: str

    @field_validator("charter", "entrypoint")
    @classmethod
    def not_blank(cls, v: str) -> str:
        value = v.strip()
        if not value:
            raise ValueError("must be non-empty")
        return value

    @field_validator("cron")
    @classmethod
    def cron_is_valid(cls, v: str) -> str:
        try:
            return validate_cron(v)
        except ConfigurationError as exc:
            raise ValueError(str(exc)) from exc

    @field_validator("timezone")
    @classmethod
    def timezone_is_valid(cls, v: str) -> str:
        try:
            return validate_timezone(v)
        except ConfigurationError as exc:
            raise ValueError(str(exc)) from exc

    def to_desired(self) -> DesiredSchedule:
        return DesiredSchedule(
            key=self.charter,
            recurrence=self.cron,
            entrypoint=self.entrypoint,
            timezone=self.timezone,
        )


class GovernanceConfig(BaseModel):
    """Governance schedule declarations and the system principal that runs them."""

    enabled: bool = True
    principal_id: str = Field(default="govsync-system", min_length=1)
    graph_id: str = Field(default="sandbox:openclaw", min_length=1)
    model: str = Field(default="deepseek-v3.2", min_length=1)
    namespace_prefix: str = Field(default=DEFAULT_NAMESPACE, min_length=1)
    action_timeout_seconds: float = Field(default=30.0, gt=0)
    schedules: list[ScheduleEntryConfig] = Field(default_factory=list)

    def to_desired(self) -> SyncRequest:
        """Freeze this section into the request value threaded through one pass.

        Raises:
            ConfigurationError: two charters normalize to the same identity.
        """
        desired = tuple(entry.to_desired() for entry in self.schedules)
        derive_identities(desired, self.namespace_prefix)
        return SyncRequest(
            principal_id=self.principal_id,
            graph_id=self.graph_id,
            schedules=desired,
            model=self.model,
            namespace_prefix=self.namespace_prefix,
            enabled=self.enabled,
        )


class RuntimeConfig(BaseModel):
    """Worker-side settings for triggered runs."""

    app_base_url: str = "http://localhost:3000"
    api_token: SecretStr = SecretStr("")
    execute_timeout_seconds: float = Field(default=300.0, gt=0)

    @field_validator("app_base_url")
    @classmethod
    def url_has_scheme(cls, v: str) -> str:
        value = v.strip().rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ValueError("app_base_url must start with http:// or https://")
        return value


class GovSyncConfig(BaseSettings):
    """Root configuration model for govsync."""

    temporal: TemporalConfig = Field(default_factory=TemporalConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    governance: GovernanceConfig = Field(default_factory=GovernanceConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)

    model_config = SettingsConfigDict(
        env_prefix="GOVSYNC_",
        env_nested_delimiter="__",
        extra="ignore",
    )
