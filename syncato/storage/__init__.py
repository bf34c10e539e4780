"""Multi-backend storage layer.

Providers implement ``StorageProvider``; ``StorageMux`` routes every
operation to the provider registered for the URI's scheme.
"""

from syncato.storage.base import StorageProvider, convert_os_error
from syncato.storage.fsspec_backend import FsspecStorage
from syncato.storage.local import LocalStorage
from syncato.storage.metadata import (
    COLLECTION_MIME_TYPE,
    DEFAULT_MIME_TYPE,
    Capabilities,
    MetaData,
    guess_mime_type,
    make_etag,
)
from syncato.storage.mux import StorageMux
from syncato.storage.registry import (
    build_storage_mux,
    get_provider_factory,
    list_provider_types,
    register_provider_type,
)
from syncato.storage.uri import ResourceURI

__all__ = [
    "StorageProvider",
    "convert_os_error",
    "FsspecStorage",
    "LocalStorage",
    "COLLECTION_MIME_TYPE",
    "DEFAULT_MIME_TYPE",
    "Capabilities",
    "MetaData",
    "guess_mime_type",
    "make_etag",
    "StorageMux",
    "build_storage_mux",
    "get_provider_factory",
    "list_provider_types",
    "register_provider_type",
    "ResourceURI",
]
