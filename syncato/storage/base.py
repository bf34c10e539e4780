"""Abstract base class for storage providers.

Defines the interface that every storage backend must implement to be
routed by the storage multiplexer. A provider is identified by its scheme,
and a resource it holds is uniquely identified by a ``ResourceURI``.
"""

from __future__ import annotations

import errno
from abc import ABC, abstractmethod
from typing import BinaryIO, Optional

from syncato.auth import AuthResource
from syncato.exceptions import ErrorKind, StorageError
from syncato.storage.metadata import Capabilities, MetaData
from syncato.storage.uri import ResourceURI

__all__ = ["StorageProvider", "convert_os_error"]


class StorageProvider(ABC):
    """Abstract base class for storage providers.

    All operations receive the authenticated principal first and act only
    inside that principal's home. Failures are raised as ``StorageError``
    produced by ``convert_error``; native exceptions never escape.

    Subclasses must implement all abstract methods.
    """

    @property
    @abstractmethod
    def scheme(self) -> str:
        """Return the scheme of this provider (e.g., 'local'), its registry key."""
        pass

    @abstractmethod
    def create_user_home(self, auth_res: AuthResource) -> None:
        """Create the user home; succeeds silently when it already exists."""
        pass

    @abstractmethod
    def is_user_home_created(self, auth_res: AuthResource) -> bool:
        """Check whether the user home has been created."""
        pass

    @abstractmethod
    def put_file(self, auth_res: AuthResource, uri: ResourceURI, stream: BinaryIO, size: int) -> None:
        """Store the full content of ``stream`` at ``uri``, atomically.

        Args:
            auth_res: Authenticated principal
            uri: Destination resource
            stream: Binary stream read to EOF
            size: Declared content length, -1 when unknown
        """
        pass

    @abstractmethod
    def get_file(self, auth_res: AuthResource, uri: ResourceURI) -> BinaryIO:
        """Open the resource for reading. The caller closes the stream."""
        pass

    @abstractmethod
    def stat(self, auth_res: AuthResource, uri: ResourceURI, children: bool = False) -> MetaData:
        """Return metadata of the resource and, if asked, of its immediate children."""
        pass

    @abstractmethod
    def remove(self, auth_res: AuthResource, uri: ResourceURI, recursive: bool = False) -> None:
        """Remove a resource; collections with content need ``recursive``."""
        pass

    @abstractmethod
    def create_col(self, auth_res: AuthResource, uri: ResourceURI, recursive: bool = False) -> None:
        """Create a collection; ``recursive`` also creates missing parents."""
        pass

    @abstractmethod
    def copy(self, auth_res: AuthResource, from_uri: ResourceURI, to_uri: ResourceURI) -> None:
        """Copy a resource inside this provider."""
        pass

    @abstractmethod
    def rename(self, auth_res: AuthResource, from_uri: ResourceURI, to_uri: ResourceURI) -> None:
        """Rename/move a resource inside this provider."""
        pass

    @abstractmethod
    def convert_error(self, exc: BaseException) -> StorageError:
        """Translate a native error into the storage error taxonomy.

        A missing file on a local disk and an HTTP 404 from an object store
        both become ``ErrorKind.NOT_EXIST``.
        """
        pass

    @abstractmethod
    def get_capabilities(self) -> Capabilities:
        """Return the optional features this provider supports."""
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(scheme={self.scheme!r})"


def convert_os_error(
    exc: BaseException,
    scheme: Optional[str] = None,
    operation: Optional[str] = None,
) -> StorageError:
    """Map a filesystem-style exception onto the storage error taxonomy.

    "Already exists" becomes ``EXIST``, "not found" becomes ``NOT_EXIST``;
    anything else is ``OPAQUE`` with the original message kept verbatim.
    A ``StorageError`` is returned unchanged.
    """
    if isinstance(exc, StorageError):
        return exc

    path = getattr(exc, "filename", None)
    path = str(path) if path is not None else None
    err_no = getattr(exc, "errno", None)

    if isinstance(exc, FileExistsError) or err_no == errno.EEXIST:
        kind = ErrorKind.EXIST
    elif isinstance(exc, FileNotFoundError) or err_no == errno.ENOENT:
        kind = ErrorKind.NOT_EXIST
    else:
        kind = ErrorKind.OPAQUE

    return StorageError(kind, str(exc), cause=exc, scheme=scheme, operation=operation, path=path)
