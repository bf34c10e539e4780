"""Typed configuration models using Pydantic for validation.

The storage layer only consumes two resolved directories (data root and
scratch root) plus the list of storages to register; everything else here
serves the surrounding daemon (home creation on login, logging).
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

__all__ = [
    "ProviderType",
    "StorageProviderConfig",
    "LoggingConfig",
    "SyncatoConfig",
]


class ProviderType(str, Enum):
    local = "local"
    fsspec = "fsspec"


def _absolute_dir(value: str) -> str:
    expanded = Path(value).expanduser()
    if not expanded.is_absolute():
        raise ValueError(f"directory must be an absolute path, got {value!r}")
    return str(expanded)


class StorageProviderConfig(BaseModel):
    """One storage to register in the multiplexer."""

    model_config = ConfigDict(extra="forbid")

    scheme: str
    type: ProviderType = ProviderType.local
    # local: optional per-storage override of the global roots
    root_data_dir: Optional[str] = None
    root_tmp_dir: Optional[str] = None
    # fsspec: filesystem protocol, root prefix and storage options
    protocol: Optional[str] = None
    root: str = "/"
    options: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("scheme")
    @classmethod
    def _validate_scheme(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("scheme must not be empty")
        if "://" in value or ":" in value or "/" in value:
            raise ValueError(f"scheme must be a bare name like 'local', got {value!r}")
        return value

    @field_validator("root_data_dir", "root_tmp_dir")
    @classmethod
    def _validate_dirs(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _absolute_dir(value)

    @model_validator(mode="after")
    def _validate_type_options(self) -> "StorageProviderConfig":
        if self.type == ProviderType.fsspec and not self.protocol:
            raise ValueError(f"storage '{self.scheme}': fsspec storages require 'protocol'")
        if self.type == ProviderType.local and self.protocol:
            raise ValueError(f"storage '{self.scheme}': 'protocol' only applies to fsspec storages")
        return self


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: str = "INFO"
    format: str = "human"
    file: Optional[str] = None
    include_context: bool = False

    @field_validator("format")
    @classmethod
    def _validate_format(cls, value: str) -> str:
        value = value.lower()
        if value not in ("human", "json", "simple"):
            raise ValueError("logging.format must be one of: human, json, simple")
        return value


def _default_storages() -> List[StorageProviderConfig]:
    return [StorageProviderConfig(scheme="local")]


class SyncatoConfig(BaseModel):
    """Root configuration of the storage daemon."""

    model_config = ConfigDict(extra="forbid")

    root_data_dir: str
    root_tmp_dir: str
    create_user_home_on_login: bool = True
    create_user_home_in_storages: List[str] = Field(default_factory=lambda: ["local"])
    storages: List[StorageProviderConfig] = Field(default_factory=_default_storages)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("root_data_dir", "root_tmp_dir")
    @classmethod
    def _validate_roots(cls, value: str) -> str:
        return _absolute_dir(value)

    @model_validator(mode="after")
    def _validate_storages(self) -> "SyncatoConfig":
        seen = set()
        for storage in self.storages:
            if storage.scheme in seen:
                raise ValueError(f"storage scheme '{storage.scheme}' configured more than once")
            seen.add(storage.scheme)
        missing = [s for s in self.create_user_home_in_storages if s not in seen]
        if missing:
            raise ValueError(
                "create_user_home_in_storages names unknown storages: " + ", ".join(missing)
            )
        return self

    def storage(self, scheme: str) -> Optional[StorageProviderConfig]:
        for storage in self.storages:
            if storage.scheme == scheme:
                return storage
        return None
