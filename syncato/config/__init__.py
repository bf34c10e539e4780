"""Configuration loading for syncato."""

from syncato.config.loader import load_config, parse_config, substitute_env_vars
from syncato.config.models import (
    LoggingConfig,
    ProviderType,
    StorageProviderConfig,
    SyncatoConfig,
)

__all__ = [
    "load_config",
    "parse_config",
    "substitute_env_vars",
    "LoggingConfig",
    "ProviderType",
    "StorageProviderConfig",
    "SyncatoConfig",
]
