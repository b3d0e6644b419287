"""Configuration loading and models."""

from govsync.config.loader import ConfigLoadError, YAMLConfigLoader, collect_env_overrides, load_config
from govsync.config.models import (
    DatabaseConfig,
    GovernanceConfig,
    GovSyncConfig,
    RuntimeConfig,
    ScheduleEntryConfig,
)

__all__ = [
    "ConfigLoadError",
    "DatabaseConfig",
    "GovSyncConfig",
    "GovernanceConfig",
    "RuntimeConfig",
    "ScheduleEntryConfig",
    "YAMLConfigLoader",
    "collect_env_overrides",
    "load_config",
]
