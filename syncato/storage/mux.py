"""Scheme-routing storage multiplexer.

The multiplexer is itself a storage front: every operation takes a raw
resource URI, picks the registered provider whose scheme matches and
forwards the call. Provider results and errors pass through unchanged;
the multiplexer only raises its own routing errors.

Example:
    >>> mux = StorageMux()
    >>> mux.register_provider(LocalStorage("local", "/srv/data", "/srv/tmp"))
    >>> mux.create_user_home(auth_res, "local")
    >>> mux.put_file(auth_res, "local://notes.txt", io.BytesIO(b"hi"), 2)
"""

from __future__ import annotations

import logging
from typing import BinaryIO, Dict, Iterable, List, Optional, Tuple

from syncato.auth import AuthResource
from syncato.exceptions import ErrorKind, ProviderRegistrationError, StorageError
from syncato.storage.base import StorageProvider
from syncato.storage.metadata import MetaData
from syncato.storage.uri import ResourceURI

logger = logging.getLogger(__name__)

__all__ = ["StorageMux"]


class StorageMux:
    """Routes storage operations to providers by URI scheme.

    Providers are registered once at start-up; afterwards the registry is
    only read, so a single multiplexer may be shared between threads.
    """

    def __init__(self, providers: Optional[Iterable[StorageProvider]] = None) -> None:
        self._providers: Dict[str, StorageProvider] = {}
        for provider in providers or ():
            self.register_provider(provider)

    def register_provider(self, provider: StorageProvider) -> None:
        """Register a provider under its scheme.

        Raises:
            ProviderRegistrationError: If the scheme is empty or already taken
        """
        scheme = provider.scheme
        if not scheme:
            raise ProviderRegistrationError(
                f"provider {provider!r} reports an empty scheme", scheme=scheme
            )
        if scheme in self._providers:
            raise ProviderRegistrationError(
                f"storage '{scheme}' is already registered", scheme=scheme
            )
        self._providers[scheme] = provider
        logger.info("Registered storage provider %s for scheme '%s'", type(provider).__name__, scheme)

    def get_provider(self, scheme: str) -> Optional[StorageProvider]:
        return self._providers.get(scheme)

    @property
    def schemes(self) -> List[str]:
        """Registered schemes in registration order."""
        return list(self._providers)

    def __contains__(self, scheme: object) -> bool:
        return scheme in self._providers

    def __len__(self) -> int:
        return len(self._providers)

    # --- routing ---

    def _provider_for(self, scheme: str, operation: str) -> StorageProvider:
        provider = self._providers.get(scheme)
        if provider is None:
            logger.debug("%s: no provider for scheme '%s'", operation, scheme)
            raise StorageError(
                ErrorKind.NOT_EXIST,
                f"storage '{scheme}' not registered",
                scheme=scheme,
                operation=operation,
            )
        return provider

    def _resolve(self, raw_uri: str, operation: str) -> Tuple[StorageProvider, ResourceURI]:
        try:
            uri = ResourceURI.parse(raw_uri)
        except ValueError as exc:
            logger.debug("%s: unparseable URI %r: %s", operation, raw_uri, exc)
            raise StorageError(
                ErrorKind.NOT_EXIST,
                f"invalid resource URI {raw_uri!r}: {exc}",
                cause=exc,
                operation=operation,
            ) from exc
        provider = self._provider_for(uri.scheme, operation)
        logger.debug("%s: routing %s to %s", operation, uri, type(provider).__name__)
        return provider, uri

    def _resolve_pair(
        self, from_uri: str, to_uri: str, operation: str, kind: ErrorKind
    ) -> Tuple[StorageProvider, ResourceURI, ResourceURI]:
        from_provider, src = self._resolve(from_uri, operation)
        to_provider, dst = self._resolve(to_uri, operation)
        if src.scheme != dst.scheme:
            raise StorageError(
                kind,
                f"cannot {operation} across storages: '{src.scheme}' to '{dst.scheme}'",
                operation=operation,
                path=str(src),
            )
        return from_provider, src, dst

    # --- user homes ---

    def create_user_home(self, auth_res: AuthResource, scheme: str) -> None:
        self._provider_for(scheme, "create_user_home").create_user_home(auth_res)

    def is_user_home_created(self, auth_res: AuthResource, scheme: str) -> bool:
        return self._provider_for(scheme, "is_user_home_created").is_user_home_created(auth_res)

    def create_user_homes(self, auth_res: AuthResource, schemes: Optional[Iterable[str]] = None) -> None:
        """Create the user home in each listed storage, all of them by default.

        Stops at the first failure; homes created before it are kept.
        """
        targets = list(schemes) if schemes is not None else self.schemes
        for scheme in targets:
            self.create_user_home(auth_res, scheme)
        logger.debug("User homes ready for %s in %s", auth_res.username, ", ".join(targets))

    # --- single-resource operations ---

    def put_file(self, auth_res: AuthResource, uri: str, stream: BinaryIO, size: int) -> None:
        provider, resource = self._resolve(uri, "put_file")
        provider.put_file(auth_res, resource, stream, size)

    def get_file(self, auth_res: AuthResource, uri: str) -> BinaryIO:
        provider, resource = self._resolve(uri, "get_file")
        return provider.get_file(auth_res, resource)

    def stat(self, auth_res: AuthResource, uri: str, children: bool = False) -> MetaData:
        provider, resource = self._resolve(uri, "stat")
        return provider.stat(auth_res, resource, children)

    def remove(self, auth_res: AuthResource, uri: str, recursive: bool = False) -> None:
        provider, resource = self._resolve(uri, "remove")
        provider.remove(auth_res, resource, recursive)

    def create_col(self, auth_res: AuthResource, uri: str, recursive: bool = False) -> None:
        provider, resource = self._resolve(uri, "create_col")
        provider.create_col(auth_res, resource, recursive)

    # --- two-resource operations ---

    def copy(self, auth_res: AuthResource, from_uri: str, to_uri: str) -> None:
        """Copy inside one storage; different schemes fail with CROSS_STORAGE_COPY."""
        provider, src, dst = self._resolve_pair(from_uri, to_uri, "copy", ErrorKind.CROSS_STORAGE_COPY)
        provider.copy(auth_res, src, dst)

    def rename(self, auth_res: AuthResource, from_uri: str, to_uri: str) -> None:
        """Move inside one storage; different schemes fail with CROSS_STORAGE_MOVE."""
        provider, src, dst = self._resolve_pair(from_uri, to_uri, "rename", ErrorKind.CROSS_STORAGE_MOVE)
        provider.rename(auth_res, src, dst)

    def __repr__(self) -> str:
        return f"StorageMux(schemes={self.schemes!r})"
