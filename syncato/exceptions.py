"""Exception classes for syncato.

Every failure a storage provider can report is normalized into a
``StorageError`` carrying an ``ErrorKind``. Callers branch on the kind,
never on the concrete exception type the backend produced.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

__all__ = [
    "SyncatoError",
    "ConfigValidationError",
    "ProviderRegistrationError",
    "ErrorKind",
    "StorageError",
    "error_kind",
    "is_exist_error",
    "is_not_exist_error",
]


class SyncatoError(Exception):
    """Base exception for all syncato errors."""

    error_code: str = "ERR000"  # Override in subclasses

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, error_code: Optional[str] = None):
        """
        Initialize syncato exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context
            error_code: Optional error code override
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code

    def __str__(self) -> str:
        """Return string representation with error code and details."""
        parts = [f"[{self.error_code}] {self.message}"]
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"({detail_str})")
        return " ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ConfigValidationError(SyncatoError):
    """Raised when configuration loading or validation fails.

    Examples:
        - Config file missing or not valid YAML
        - Required environment variable not set
        - Relative root directories
        - Duplicate storage schemes
    """

    error_code = "CFG001"

    def __init__(self, message: str, config_path: Optional[str] = None, key: Optional[str] = None):
        """
        Initialize configuration validation error.

        Args:
            message: Description of validation failure
            config_path: Path to config file that failed validation
            key: Specific configuration key that caused the error
        """
        details = {}
        if config_path:
            details['config_path'] = config_path
        if key:
            details['config_key'] = key
        super().__init__(message, details)


class ProviderRegistrationError(SyncatoError):
    """Raised when a storage provider cannot be registered or built.

    Examples:
        - Two providers claiming the same scheme
        - A provider reporting an empty scheme
        - Unknown provider type in configuration
    """

    error_code = "REG001"

    def __init__(self, message: str, scheme: Optional[str] = None, provider_type: Optional[str] = None):
        details = {}
        if scheme is not None:
            details['scheme'] = scheme
        if provider_type:
            details['provider_type'] = provider_type
        super().__init__(message, details)


class ErrorKind(str, Enum):
    """Canonical storage failure kinds."""

    EXIST = "exist"
    NOT_EXIST = "not_exist"
    CROSS_STORAGE_COPY = "cross_storage_copy"
    CROSS_STORAGE_MOVE = "cross_storage_move"
    OPAQUE = "opaque"


_KIND_ERROR_CODES = {
    ErrorKind.OPAQUE: "STG001",
    ErrorKind.EXIST: "STG002",
    ErrorKind.NOT_EXIST: "STG003",
    ErrorKind.CROSS_STORAGE_COPY: "STG004",
    ErrorKind.CROSS_STORAGE_MOVE: "STG005",
}


class StorageError(SyncatoError):
    """Raised when a storage operation fails.

    The ``kind`` tells callers what happened independently of the backend:
    a missing file on disk and an HTTP 404 from an object store both surface
    as ``ErrorKind.NOT_EXIST``. For ``ErrorKind.OPAQUE`` errors ``message``
    is the native error's message, unchanged, and ``cause`` holds the native
    exception.
    """

    error_code = "STG001"

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        cause: Optional[BaseException] = None,
        scheme: Optional[str] = None,
        operation: Optional[str] = None,
        path: Optional[str] = None,
    ):
        """
        Initialize storage error.

        Args:
            kind: Canonical failure kind
            message: Description of the failure
            cause: Native exception that caused this error
            scheme: Scheme of the provider involved
            operation: Operation that failed (put_file, stat, copy, ...)
            path: Resource path involved in the operation
        """
        details: Dict[str, Any] = {}
        if scheme:
            details['scheme'] = scheme
        if operation:
            details['operation'] = operation
        if path:
            details['path'] = path
        if cause is not None:
            details['error_type'] = type(cause).__name__

        super().__init__(message, details, error_code=_KIND_ERROR_CODES[kind])
        self.kind = kind
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["kind"] = self.kind.value
        return data


def error_kind(err: Optional[BaseException]) -> Optional[ErrorKind]:
    """Return the storage error kind of ``err``, or None for other errors."""
    if isinstance(err, StorageError):
        return err.kind
    return None


def is_exist_error(err: Optional[BaseException]) -> bool:
    return error_kind(err) is ErrorKind.EXIST


def is_not_exist_error(err: Optional[BaseException]) -> bool:
    return error_kind(err) is ErrorKind.NOT_EXIST
