"""syncato: multi-backend storage layer for a file sync and share service.

Resources are addressed by URIs such as ``local://photos/beach.png``; the
scheme picks the storage provider and the path is interpreted inside the
authenticated user's home on that provider.
"""

from syncato.auth import AuthResource
from syncato.exceptions import (
    ConfigValidationError,
    ErrorKind,
    ProviderRegistrationError,
    StorageError,
    SyncatoError,
    error_kind,
    is_exist_error,
    is_not_exist_error,
)

__version__ = "1.0.0"

__all__ = [
    "__version__",
    "AuthResource",
    "ConfigValidationError",
    "ErrorKind",
    "ProviderRegistrationError",
    "StorageError",
    "SyncatoError",
    "error_kind",
    "is_exist_error",
    "is_not_exist_error",
]
