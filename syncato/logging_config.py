"""Logging configuration for syncato.

Modules log through ``logging.getLogger(__name__)``; nothing is configured
on import. A service calls ``setup_logging()`` (or
``configure_from_settings()`` with the ``logging`` section of its config)
once at start-up. Request handlers wrap their logger with
``get_request_logger()`` so every record carries the request id and host,
in both the JSON and the human-readable output.
"""

import json
import logging
import logging.handlers
import os
import socket
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from syncato.exceptions import StorageError, SyncatoError

if TYPE_CHECKING:
    from syncato.config.models import LoggingConfig

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]

# Attributes every LogRecord has; anything else arrived through `extra=`
_STANDARD_RECORD_KEYS = frozenset(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime"}

_REQUEST_KEYS = ("rid", "host")

_LEVELS = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'WARN': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
}

_MAX_LOG_BYTES = 10 * 1024 * 1024
_LOG_BACKUPS = 5


def _record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _STANDARD_RECORD_KEYS}


class JSONFormatter(logging.Formatter):
    """One JSON object per record; request context and ``extra=`` fields are top-level keys."""

    def __init__(self, include_context: bool = True):
        super().__init__()
        self.include_context = include_context

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: Dict[str, Any] = {
            'timestamp': created.strftime('%Y-%m-%dT%H:%M:%S.%f') + 'Z',
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        if self.include_context:
            payload.update(module=record.module, function=record.funcName, line=record.lineno)
        if record.exc_info:
            payload['exception'] = self.formatException(record.exc_info)
        payload.update(_record_extras(record))
        return json.dumps(payload, default=str)


class HumanReadableFormatter(logging.Formatter):
    """``[LEVEL] time - logger - message``, followed by the request context when present."""

    def __init__(self, include_context: bool = False):
        location = ' - %(module)s.%(funcName)s:%(lineno)d' if include_context else ''
        super().__init__(
            fmt=f'[%(levelname)s] %(asctime)s - %(name)s{location} - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
        )

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        request = [f"{key}={getattr(record, key)}" for key in _REQUEST_KEYS if hasattr(record, key)]
        if request:
            text = f"{text} [{' '.join(request)}]"
        return text


def parse_log_level(level_name: str) -> int:
    """Translate a level name (case-insensitive) to a logging level, INFO if unknown."""
    return _LEVELS.get(level_name.upper(), logging.INFO)


def get_log_level_from_env() -> int:
    """Level from ``SYNCATO_LOG_LEVEL``, then ``LOG_LEVEL``; INFO by default."""
    return parse_log_level(os.environ.get('SYNCATO_LOG_LEVEL') or os.environ.get('LOG_LEVEL', 'INFO'))


def get_log_format_from_env() -> str:
    """Format from ``SYNCATO_LOG_FORMAT`` ('json', 'human' or 'simple'); 'human' by default."""
    return os.environ.get('SYNCATO_LOG_FORMAT', 'human').lower()


def _build_formatter(format_type: str, include_context: bool) -> logging.Formatter:
    if format_type == 'json':
        return JSONFormatter(include_context=include_context)
    if format_type == 'simple':
        return logging.Formatter('%(levelname)s: %(message)s')
    return HumanReadableFormatter(include_context=include_context)


def setup_logging(
    level: Optional[int] = None,
    format_type: Optional[str] = None,
    log_file: Optional[Path] = None,
    include_context: bool = False,
) -> None:
    """
    Configure the root logger for a syncato service.

    Replaces any handlers already installed on the root logger with one
    console handler and, when a log file is given, a rotating file handler
    that always writes JSON.

    Args:
        level: Logging level (defaults to SYNCATO_LOG_LEVEL / LOG_LEVEL, else INFO)
        format_type: Console format: 'json', 'human' or 'simple' (defaults to SYNCATO_LOG_FORMAT)
        log_file: Log file path (defaults to SYNCATO_LOG_FILE)
        include_context: Include module/function/line in console records

    Example:
        >>> setup_logging(format_type='json', log_file=Path('/var/log/syncato/storage.log'))
    """
    if level is None:
        level = get_log_level_from_env()
    if format_type is None:
        format_type = get_log_format_from_env()
    if log_file is None and os.environ.get('SYNCATO_LOG_FILE'):
        log_file = Path(os.environ['SYNCATO_LOG_FILE'])

    root = logging.getLogger()
    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)
    root.setLevel(level)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_build_formatter(format_type, include_context))
    root.addHandler(console)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=_MAX_LOG_BYTES, backupCount=_LOG_BACKUPS
        )
        file_handler.setFormatter(JSONFormatter(include_context=True))
        root.addHandler(file_handler)


def configure_from_settings(settings: "LoggingConfig") -> None:
    """Apply the ``logging`` section of a loaded syncato config."""
    setup_logging(
        level=parse_log_level(settings.level),
        format_type=settings.format,
        log_file=Path(settings.file) if settings.file else None,
        include_context=settings.include_context,
    )


def get_request_logger(name: str, rid: str) -> logging.LoggerAdapter:
    """Get a logger that stamps every record with the request id and host name.

    Args:
        name: Logger name
        rid: Request id assigned by the caller (API layer)
    """
    return logging.LoggerAdapter(logging.getLogger(name), {'rid': rid, 'host': socket.gethostname()})


def log_exception(logger: LoggerLike, message: str, exc: BaseException) -> None:
    """
    Log an exception at ERROR with its traceback.

    syncato errors also contribute their error code, and storage errors
    their kind, as structured fields.
    """
    extra: Dict[str, Any] = {'exception_type': type(exc).__name__}
    if isinstance(exc, SyncatoError):
        extra['error_code'] = exc.error_code
    if isinstance(exc, StorageError):
        extra['error_kind'] = exc.kind.value
    logger.error("%s: %s", message, exc, exc_info=exc, extra=extra)


def log_performance(logger: LoggerLike, operation: str, duration_seconds: float, **metrics: Any) -> None:
    """
    Log the duration of an operation at DEBUG.

    Example:
        >>> log_performance(logger, "put_file", 0.42, bytes_written=1024)
    """
    logger.debug(
        "Performance: %s completed in %.3fs",
        operation,
        duration_seconds,
        extra={'operation': operation, 'duration_seconds': duration_seconds, **metrics},
    )
