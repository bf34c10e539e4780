"""Load the syncato YAML configuration file into typed models."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from pydantic import ValidationError

from syncato.config.models import SyncatoConfig
from syncato.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)

__all__ = ["load_config", "parse_config", "substitute_env_vars"]

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


def substitute_env_vars(value: Any, key: str = "") -> Any:
    """Recursively replace ``${VAR}`` and ``${VAR:default}`` references.

    Args:
        value: Config value (str, dict, list, or primitive)
        key: Dotted path of ``value`` inside the document, used in errors

    Raises:
        ConfigValidationError: If a referenced variable is unset and has no default
    """
    if isinstance(value, str):

        def replacer(match: re.Match) -> str:
            var_name, default_value = match.group(1), match.group(2)
            env_value = os.environ.get(var_name)
            if env_value is not None:
                return env_value
            if default_value is not None:
                return default_value
            raise ConfigValidationError(
                f"Environment variable '{var_name}' is not set and no default provided",
                key=key or None,
            )

        return _ENV_VAR_PATTERN.sub(replacer, value)

    if isinstance(value, dict):
        return {k: substitute_env_vars(v, f"{key}.{k}" if key else str(k)) for k, v in value.items()}

    if isinstance(value, list):
        return [substitute_env_vars(item, f"{key}[{i}]") for i, item in enumerate(value)]

    return value


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigValidationError(f"Config file not found: {path}", config_path=str(path))

    try:
        with open(path, "r", encoding="utf-8") as handle:
            cfg = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ConfigValidationError(f"Invalid YAML in config file: {exc}", config_path=str(path)) from exc

    if not isinstance(cfg, dict):
        raise ConfigValidationError("Config must be a YAML dictionary/object", config_path=str(path))

    return cfg


def parse_config(
    raw: Dict[str, Any],
    *,
    config_path: Optional[str] = None,
    enable_env_substitution: bool = True,
) -> SyncatoConfig:
    """Validate an already-parsed config mapping.

    Args:
        raw: Config mapping (as read from YAML)
        config_path: Source file, reported in errors
        enable_env_substitution: Substitute ${VAR} and ${VAR:default} first
    """
    if enable_env_substitution:
        try:
            raw = substitute_env_vars(raw)
        except ConfigValidationError as exc:
            if config_path:
                exc.details.setdefault("config_path", config_path)
            raise

    try:
        return SyncatoConfig.model_validate(raw)
    except ValidationError as exc:
        first = exc.errors()[0]
        key = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ConfigValidationError(
            f"Invalid configuration: {first.get('msg', exc)}",
            config_path=config_path,
            key=key,
        ) from exc


def load_config(path: Union[str, Path], *, enable_env_substitution: bool = True) -> SyncatoConfig:
    """Load and validate a syncato config file.

    Args:
        path: Path to config YAML file
        enable_env_substitution: Substitute ${VAR} and ${VAR:default} with environment variables

    Raises:
        ConfigValidationError: If the file is missing, unreadable or invalid
    """
    config_path = Path(path)
    logger.info("Loading config from %s", config_path)
    raw = _read_yaml(config_path)
    cfg = parse_config(
        raw,
        config_path=str(config_path),
        enable_env_substitution=enable_env_substitution,
    )
    logger.debug(
        "Config loaded: %d storage(s) [%s]",
        len(cfg.storages),
        ", ".join(s.scheme for s in cfg.storages),
    )
    return cfg
