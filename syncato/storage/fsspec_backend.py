"""Storage provider over any fsspec filesystem.

Gives the multiplexer a second, non-local backend without a custom
implementation per storage system: in-memory (``memory``), SFTP, S3, GCS,
Azure and the other fsspec protocols all go through the same code.
"""

from __future__ import annotations

import errno
import logging
import posixpath
import uuid
from datetime import datetime
from typing import Any, BinaryIO, Dict, List, Optional

import fsspec
from fsspec.spec import AbstractFileSystem

from syncato.auth import AuthResource, home_segments
from syncato.exceptions import ErrorKind, StorageError
from syncato.storage.base import StorageProvider, convert_os_error
from syncato.storage.metadata import Capabilities, MetaData, guess_mime_type, make_etag
from syncato.storage.uri import ResourceURI

logger = logging.getLogger(__name__)

__all__ = ["FsspecStorage"]

_CHUNK_SIZE = 1024 * 1024
_STAGING_DIR = ".staging"


class FsspecStorage(StorageProvider):
    """Storage provider using an fsspec filesystem.

    Resources live under ``<root>/<auth_id>/<username>/``; uploads are
    staged under ``<root>/.staging/<auth_id>/<username>/`` and then moved
    into place. How atomic that move is depends on the filesystem.

    Example:
        >>> storage = FsspecStorage("mem", "memory", root="/syncato")
        >>> storage.create_user_home(auth_res)
    """

    def __init__(self, scheme: str, protocol: str, root: str = "/", **options: Any) -> None:
        """Initialize the fsspec provider.

        Args:
            scheme: Registry key of this provider
            protocol: fsspec protocol name (e.g. 'memory', 'sftp', 's3')
            root: Prefix under which all user homes are created
            **options: Filesystem-specific options passed to fsspec
        """
        if not scheme:
            raise ValueError("scheme must not be empty")
        self._scheme = scheme
        self.protocol = protocol
        self.root = "/" + root.strip("/") if root.strip("/") else ""
        self.options = options
        self._fs: Optional[AbstractFileSystem] = None

    @property
    def scheme(self) -> str:
        return self._scheme

    @property
    def fs(self) -> AbstractFileSystem:
        """Lazy-load the filesystem."""
        if self._fs is None:
            self._fs = fsspec.filesystem(self.protocol, **self.options)
        return self._fs

    # --- path resolution ---

    def _home(self, auth_res: AuthResource) -> str:
        auth_id, username = home_segments(auth_res)
        return f"{self.root}/{auth_id}/{username}"

    def _staging_dir(self, auth_res: AuthResource) -> str:
        auth_id, username = home_segments(auth_res)
        return f"{self.root}/{_STAGING_DIR}/{auth_id}/{username}"

    def _resolve_path(self, auth_res: AuthResource, uri: ResourceURI) -> str:
        if "\x00" in uri.path:
            raise StorageError(
                ErrorKind.NOT_EXIST,
                f"invalid path {uri.path!r}: NUL character",
                scheme=self.scheme,
            )
        relative = posixpath.normpath("/" + uri.path.replace("\\", "/")).lstrip("/")
        home = self._home(auth_res)
        return f"{home}/{relative}" if relative else home

    def _info(self, path: str) -> Dict[str, Any]:
        info: Dict[str, Any] = self.fs.info(path)
        return info

    def _exists(self, path: str) -> bool:
        try:
            self._info(path)
        except FileNotFoundError:
            return False
        return True

    def _is_dir(self, path: str) -> bool:
        try:
            return self._info(path).get("type") == "directory"
        except FileNotFoundError:
            return False

    # --- user home ---

    def create_user_home(self, auth_res: AuthResource) -> None:
        try:
            self.fs.makedirs(self._home(auth_res), exist_ok=True)
            self.fs.makedirs(self._staging_dir(auth_res), exist_ok=True)
        except OSError as exc:
            raise self.convert_error(exc) from exc

    def is_user_home_created(self, auth_res: AuthResource) -> bool:
        try:
            return self._is_dir(self._home(auth_res))
        except OSError as exc:
            raise self.convert_error(exc) from exc

    # --- operations ---

    def _stage_stream(self, staging_dir: str, stream: BinaryIO) -> str:
        staged = f"{staging_dir}/{uuid.uuid4().hex}.part"
        self.fs.makedirs(staging_dir, exist_ok=True)
        try:
            with self.fs.open(staged, "wb") as handle:
                while True:
                    chunk = stream.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    handle.write(chunk)
        except BaseException:
            self._discard(staged)
            raise
        return staged

    def _commit(self, staged: str, target: str) -> None:
        parent = posixpath.dirname(target)
        try:
            if not self._is_dir(parent):
                raise FileNotFoundError(errno.ENOENT, "parent collection does not exist", parent)
            if self._is_dir(target):
                raise IsADirectoryError(errno.EISDIR, "is a collection", target)
            self.fs.mv(staged, target)
        except BaseException:
            self._discard(staged)
            raise

    def _discard(self, path: str) -> None:
        try:
            self.fs.rm_file(path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not remove staging object %s: %s", path, exc)

    def put_file(self, auth_res: AuthResource, uri: ResourceURI, stream: BinaryIO, size: int) -> None:
        target = self._resolve_path(auth_res, uri)
        try:
            staged = self._stage_stream(self._staging_dir(auth_res), stream)
            self._commit(staged, target)
        except OSError as exc:
            raise self.convert_error(exc) from exc
        logger.debug("Stored %s (declared size %d)", uri, size)

    def get_file(self, auth_res: AuthResource, uri: ResourceURI) -> BinaryIO:
        path = self._resolve_path(auth_res, uri)
        try:
            if self._is_dir(path):
                raise IsADirectoryError(errno.EISDIR, "is a collection", path)
            return self.fs.open(path, "rb")
        except OSError as exc:
            raise self.convert_error(exc) from exc

    def stat(self, auth_res: AuthResource, uri: ResourceURI, children: bool = False) -> MetaData:
        path = self._resolve_path(auth_res, uri)
        uri = uri.without_query()
        try:
            info = self._info(path)
            listing: Optional[List[MetaData]] = None
            if children and info.get("type") == "directory":
                listing = [
                    self._build_metadata(uri.child(posixpath.basename(child["name"].rstrip("/"))), child)
                    for child in self.fs.ls(path, detail=True)
                ]
        except OSError as exc:
            raise self.convert_error(exc) from exc
        return self._build_metadata(uri, info, listing)

    def _build_metadata(
        self,
        uri: ResourceURI,
        info: Dict[str, Any],
        children: Optional[List[MetaData]] = None,
    ) -> MetaData:
        is_col = info.get("type") == "directory"
        modified = _modified_seconds(info)
        resource = str(uri)
        return MetaData(
            id=resource,
            path=resource,
            size=0 if is_col else int(info.get("size") or 0),
            is_collection=is_col,
            mime_type=guess_mime_type(uri.name, is_col),
            modified=modified,
            etag=make_etag(modified),
            children=children,
        )

    def remove(self, auth_res: AuthResource, uri: ResourceURI, recursive: bool = False) -> None:
        path = self._resolve_path(auth_res, uri)
        try:
            if recursive:
                if self._exists(path):
                    self.fs.rm(path, recursive=True)
                return
            if self._info(path).get("type") == "directory":
                if self.fs.ls(path, detail=False):
                    raise OSError(errno.ENOTEMPTY, "collection is not empty", path)
                self.fs.rmdir(path)
            else:
                self.fs.rm_file(path)
        except OSError as exc:
            raise self.convert_error(exc) from exc

    def create_col(self, auth_res: AuthResource, uri: ResourceURI, recursive: bool = False) -> None:
        path = self._resolve_path(auth_res, uri)
        try:
            if recursive:
                if self._exists(path) and not self._is_dir(path):
                    raise FileExistsError(errno.EEXIST, "resource exists", path)
                self.fs.makedirs(path, exist_ok=True)
                return
            if self._exists(path):
                raise FileExistsError(errno.EEXIST, "resource exists", path)
            parent = posixpath.dirname(path)
            if not self._is_dir(parent):
                raise FileNotFoundError(errno.ENOENT, "parent collection does not exist", parent)
            self.fs.mkdir(path, create_parents=False)
        except OSError as exc:
            raise self.convert_error(exc) from exc

    def copy(self, auth_res: AuthResource, from_uri: ResourceURI, to_uri: ResourceURI) -> None:
        src = self._resolve_path(auth_res, from_uri)
        dst = self._resolve_path(auth_res, to_uri)
        try:
            if self._is_dir(src):
                if self._exists(dst):
                    raise FileExistsError(errno.EEXIST, "resource exists", dst)
                parent = posixpath.dirname(dst)
                if not self._is_dir(parent):
                    raise FileNotFoundError(errno.ENOENT, "parent collection does not exist", parent)
                self.fs.copy(src, dst, recursive=True)
            else:
                with self.fs.open(src, "rb") as handle:
                    staged = self._stage_stream(self._staging_dir(auth_res), handle)
                self._commit(staged, dst)
        except OSError as exc:
            raise self.convert_error(exc) from exc

    def rename(self, auth_res: AuthResource, from_uri: ResourceURI, to_uri: ResourceURI) -> None:
        src = self._resolve_path(auth_res, from_uri)
        dst = self._resolve_path(auth_res, to_uri)
        try:
            src_is_dir = self._info(src).get("type") == "directory"
            parent = posixpath.dirname(dst)
            if not self._is_dir(parent):
                raise FileNotFoundError(errno.ENOENT, "parent collection does not exist", parent)
            self.fs.mv(src, dst, recursive=src_is_dir)
        except OSError as exc:
            raise self.convert_error(exc) from exc

    def convert_error(self, exc: BaseException) -> StorageError:
        return convert_os_error(exc, scheme=self.scheme)

    def get_capabilities(self) -> Capabilities:
        return Capabilities()


def _modified_seconds(info: Dict[str, Any]) -> int:
    """Modification time from an fsspec info dict as integral epoch seconds."""
    for key in ("mtime", "LastModified", "last_modified", "created"):
        value = info.get(key)
        if value is None:
            continue
        if isinstance(value, datetime):
            return int(value.timestamp())
        if isinstance(value, (int, float)):
            return int(value)
    return 0
