"""Registry of storage provider factories.

Each provider type named in configuration (``type: local``,
``type: fsspec``) maps to a factory that builds the provider from its
storage section. Additional types plug in with the decorator:

    >>> @register_provider_type("webdav")
    ... def _webdav_factory(storage, config):
    ...     return WebDAVStorage(storage.scheme, **storage.options)
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List

from syncato.config.models import StorageProviderConfig, SyncatoConfig
from syncato.exceptions import ProviderRegistrationError
from syncato.logging_config import log_exception
from syncato.storage.base import StorageProvider
from syncato.storage.mux import StorageMux

logger = logging.getLogger(__name__)

__all__ = [
    "PROVIDER_REGISTRY",
    "ProviderFactory",
    "build_storage_mux",
    "get_provider_factory",
    "list_provider_types",
    "register_provider_type",
]

ProviderFactory = Callable[[StorageProviderConfig, SyncatoConfig], StorageProvider]

PROVIDER_REGISTRY: Dict[str, ProviderFactory] = {}


def register_provider_type(name: str) -> Callable[[ProviderFactory], ProviderFactory]:
    """Decorator registering a factory for a provider type."""

    def decorator(factory: ProviderFactory) -> ProviderFactory:
        PROVIDER_REGISTRY[name.lower()] = factory
        return factory

    return decorator


def list_provider_types() -> List[str]:
    return sorted(PROVIDER_REGISTRY)


def get_provider_factory(provider_type: str) -> ProviderFactory:
    """Get the factory function for a provider type.

    Raises:
        ProviderRegistrationError: If no factory is registered for the type
    """
    factory = PROVIDER_REGISTRY.get(provider_type.lower())
    if factory is None:
        raise ProviderRegistrationError(
            f"Storage provider type '{provider_type}' is not available. "
            f"Available types: {', '.join(list_provider_types())}.",
            provider_type=provider_type,
        )
    return factory


@register_provider_type("local")
def _local_factory(storage: StorageProviderConfig, config: SyncatoConfig) -> StorageProvider:
    from syncato.storage.local import LocalStorage

    return LocalStorage(
        storage.scheme,
        storage.root_data_dir or config.root_data_dir,
        storage.root_tmp_dir or config.root_tmp_dir,
    )


@register_provider_type("fsspec")
def _fsspec_factory(storage: StorageProviderConfig, config: SyncatoConfig) -> StorageProvider:
    from syncato.storage.fsspec_backend import FsspecStorage

    # protocol presence is enforced by StorageProviderConfig
    return FsspecStorage(storage.scheme, storage.protocol or "", root=storage.root, **storage.options)


def build_storage_mux(config: SyncatoConfig) -> StorageMux:
    """Build a multiplexer with one provider per configured storage.

    Providers are registered in configuration order.

    Raises:
        ProviderRegistrationError: Unknown provider type or duplicate scheme
    """
    mux = StorageMux()
    for storage in config.storages:
        provider_type = storage.type.value
        factory = get_provider_factory(provider_type)
        try:
            provider = factory(storage, config)
        except Exception as exc:
            log_exception(logger, f"Failed to build storage '{storage.scheme}' ({provider_type})", exc)
            raise
        mux.register_provider(provider)
    logger.info("Storage multiplexer ready with schemes: %s", ", ".join(mux.schemes))
    return mux
