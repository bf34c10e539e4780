"""Local filesystem storage provider."""

from __future__ import annotations

import errno
import logging
import os
import posixpath
import shutil
import stat as stat_mod
import tempfile
import time
from pathlib import Path
from typing import BinaryIO, List, Optional, Tuple

from syncato.auth import AuthResource, home_segments
from syncato.exceptions import ErrorKind, StorageError
from syncato.logging_config import log_performance
from syncato.storage.base import StorageProvider, convert_os_error
from syncato.storage.metadata import Capabilities, MetaData, guess_mime_type, make_etag
from syncato.storage.uri import ResourceURI

logger = logging.getLogger(__name__)

__all__ = ["LocalStorage"]

_CHUNK_SIZE = 1024 * 1024


class LocalStorage(StorageProvider):
    """Storage provider backed by a local directory tree.

    Resources live under ``<root_data_dir>/<auth_id>/<username>/``; uploads
    are staged under ``<root_tmp_dir>/<auth_id>/<username>/`` and moved into
    place with an atomic rename, so readers never see a partial file. Both
    roots should sit on the same filesystem, otherwise the final rename fails.

    Example:
        >>> storage = LocalStorage("local", "/srv/data", "/srv/tmp")
        >>> storage.create_user_home(auth_res)
        >>> storage.put_file(auth_res, ResourceURI.parse("local://a.txt"), io.BytesIO(b"hi"), 2)
    """

    def __init__(self, scheme: str, root_data_dir: str, root_tmp_dir: str) -> None:
        """Initialize the local provider.

        Args:
            scheme: Registry key of this provider
            root_data_dir: Persistent data root
            root_tmp_dir: Scratch root used to stage uploads
        """
        if not scheme:
            raise ValueError("scheme must not be empty")
        self._scheme = scheme
        self.root_data_dir = Path(root_data_dir).expanduser().resolve()
        self.root_tmp_dir = Path(root_tmp_dir).expanduser().resolve()

    @property
    def scheme(self) -> str:
        return self._scheme

    # --- path resolution ---

    def _home(self, auth_res: AuthResource) -> Path:
        auth_id, username = home_segments(auth_res)
        return self.root_data_dir / auth_id / username

    def _staging_dir(self, auth_res: AuthResource) -> Path:
        auth_id, username = home_segments(auth_res)
        return self.root_tmp_dir / auth_id / username

    def _resolve_path(self, auth_res: AuthResource, uri: ResourceURI) -> Path:
        """Absolute path of ``uri`` inside the user home.

        The URI path is normalized as if rooted at '/', so '..' segments
        collapse at the home and can never climb out of it.
        """
        if "\x00" in uri.path:
            raise StorageError(
                ErrorKind.NOT_EXIST,
                f"invalid path {uri.path!r}: NUL character",
                scheme=self.scheme,
            )
        relative = posixpath.normpath("/" + uri.path.replace("\\", "/")).lstrip("/")
        home = self._home(auth_res)
        return home / relative if relative else home

    # --- user home ---

    def create_user_home(self, auth_res: AuthResource) -> None:
        home = self._home(auth_res)
        try:
            home.mkdir(parents=True, exist_ok=True)
            self._staging_dir(auth_res).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise self.convert_error(exc) from exc
        logger.debug("User home ready at %s", home)

    def is_user_home_created(self, auth_res: AuthResource) -> bool:
        try:
            st = os.stat(self._home(auth_res))
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise self.convert_error(exc) from exc
        return stat_mod.S_ISDIR(st.st_mode)

    # --- staged writes ---

    def _stage_stream(self, staging_dir: Path, stream: BinaryIO) -> Tuple[Path, int]:
        """Write ``stream`` to a new, uniquely named staging file.

        Returns the staging path and the number of bytes written. The
        staging file is removed again if writing fails.
        """
        staging_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".upload.", suffix=".part", dir=staging_dir)
        staged = Path(tmp_name)
        written = 0
        try:
            with os.fdopen(fd, "wb") as handle:
                while True:
                    chunk = stream.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    handle.write(chunk)
                    written += len(chunk)
                handle.flush()
                os.fsync(handle.fileno())
        except BaseException:
            _discard(staged)
            raise
        return staged, written

    def _commit(self, staged: Path, target: Path) -> None:
        """Move a staged file onto its destination; the staged file never outlives a failure."""
        try:
            os.replace(staged, target)
        except BaseException:
            _discard(staged)
            raise

    # --- operations ---

    def put_file(self, auth_res: AuthResource, uri: ResourceURI, stream: BinaryIO, size: int) -> None:
        target = self._resolve_path(auth_res, uri)
        started = time.monotonic()
        try:
            staged, written = self._stage_stream(self._staging_dir(auth_res), stream)
            self._commit(staged, target)
        except OSError as exc:
            raise self.convert_error(exc) from exc

        if size >= 0 and written != size:
            logger.warning(
                "Declared size %d for %s does not match %d bytes received", size, uri, written
            )
        log_performance(
            logger,
            "put_file",
            time.monotonic() - started,
            scheme=self.scheme,
            bytes_written=written,
        )

    def get_file(self, auth_res: AuthResource, uri: ResourceURI) -> BinaryIO:
        path = self._resolve_path(auth_res, uri)
        try:
            return open(path, "rb")
        except OSError as exc:
            raise self.convert_error(exc) from exc

    def stat(self, auth_res: AuthResource, uri: ResourceURI, children: bool = False) -> MetaData:
        path = self._resolve_path(auth_res, uri)
        uri = uri.without_query()
        try:
            st = os.stat(path)
        except OSError as exc:
            raise self.convert_error(exc) from exc

        listing: Optional[List[MetaData]] = None
        if children and stat_mod.S_ISDIR(st.st_mode):
            listing = self._list_children(path, uri)
        return _build_metadata(uri, st, listing)

    def _list_children(self, path: Path, parent: ResourceURI) -> List[MetaData]:
        """One level of children, in directory enumeration order."""
        listing: List[MetaData] = []
        try:
            with os.scandir(path) as entries:
                for entry in entries:
                    try:
                        st = entry.stat(follow_symlinks=False)
                    except FileNotFoundError:
                        # removed between enumeration and stat
                        continue
                    listing.append(_build_metadata(parent.child(entry.name), st))
        except OSError as exc:
            raise self.convert_error(exc) from exc
        return listing

    def remove(self, auth_res: AuthResource, uri: ResourceURI, recursive: bool = False) -> None:
        path = self._resolve_path(auth_res, uri)
        is_dir = path.is_dir() and not path.is_symlink()
        try:
            if recursive:
                if not os.path.lexists(path):
                    return
                if is_dir:
                    shutil.rmtree(path)
                else:
                    os.remove(path)
            elif is_dir:
                os.rmdir(path)
            else:
                os.remove(path)
        except OSError as exc:
            raise self.convert_error(exc) from exc
        logger.debug("Removed %s (recursive=%s)", uri, recursive)

    def create_col(self, auth_res: AuthResource, uri: ResourceURI, recursive: bool = False) -> None:
        path = self._resolve_path(auth_res, uri)
        try:
            if recursive:
                os.makedirs(path, exist_ok=True)
            else:
                os.mkdir(path)
        except OSError as exc:
            raise self.convert_error(exc) from exc

    def copy(self, auth_res: AuthResource, from_uri: ResourceURI, to_uri: ResourceURI) -> None:
        src = self._resolve_path(auth_res, from_uri)
        dst = self._resolve_path(auth_res, to_uri)
        try:
            if src.is_dir():
                if not dst.parent.is_dir():
                    raise FileNotFoundError(errno.ENOENT, "parent collection does not exist", str(dst.parent))
                shutil.copytree(src, dst, symlinks=True)
            else:
                with open(src, "rb") as handle:
                    staged, _ = self._stage_stream(self._staging_dir(auth_res), handle)
                self._commit(staged, dst)
        except OSError as exc:
            raise self.convert_error(exc) from exc
        logger.debug("Copied %s to %s", from_uri, to_uri)

    def rename(self, auth_res: AuthResource, from_uri: ResourceURI, to_uri: ResourceURI) -> None:
        src = self._resolve_path(auth_res, from_uri)
        dst = self._resolve_path(auth_res, to_uri)
        try:
            os.rename(src, dst)
        except OSError as exc:
            raise self.convert_error(exc) from exc
        logger.debug("Renamed %s to %s", from_uri, to_uri)

    def convert_error(self, exc: BaseException) -> StorageError:
        return convert_os_error(exc, scheme=self.scheme)

    def get_capabilities(self) -> Capabilities:
        return Capabilities()


def _build_metadata(
    uri: ResourceURI,
    st: os.stat_result,
    children: Optional[List[MetaData]] = None,
) -> MetaData:
    is_col = stat_mod.S_ISDIR(st.st_mode)
    modified = int(st.st_mtime)
    resource = str(uri)
    return MetaData(
        id=resource,
        path=resource,
        size=0 if is_col else st.st_size,
        is_collection=is_col,
        mime_type=guess_mime_type(uri.name, is_col),
        modified=modified,
        etag=make_etag(modified),
        children=children,
    )


def _discard(path: Path) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Could not remove staging file %s: %s", path, exc)
