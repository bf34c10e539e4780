"""Pytest configuration and fixtures."""

import sys
import uuid
from pathlib import Path

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from syncato.auth import AuthResource  # noqa: E402
from syncato.storage.fsspec_backend import FsspecStorage  # noqa: E402
from syncato.storage.local import LocalStorage  # noqa: E402
from syncato.storage.mux import StorageMux  # noqa: E402


@pytest.fixture
def auth_res() -> AuthResource:
    """An authenticated principal."""
    return AuthResource(username="alice", auth_id="basic", display_name="Alice", email="alice@example.com")


@pytest.fixture
def other_auth_res() -> AuthResource:
    """A second principal, for isolation checks."""
    return AuthResource(username="bob", auth_id="basic")


@pytest.fixture
def local_storage(tmp_path: Path) -> LocalStorage:
    """Local provider rooted in a temporary directory."""
    return LocalStorage("local", str(tmp_path / "data"), str(tmp_path / "tmp"))


@pytest.fixture
def mem_storage():
    """In-memory fsspec provider under a unique root.

    fsspec's memory filesystem shares its store across instances, so every
    test gets its own root prefix and cleans it up afterwards.
    """
    root = f"/syncato-test-{uuid.uuid4().hex}"
    storage = FsspecStorage("mem", "memory", root=root)
    yield storage
    if storage.fs.exists(root) or storage.fs.isdir(root):
        storage.fs.rm(root, recursive=True)


@pytest.fixture
def mux(local_storage: LocalStorage, mem_storage: FsspecStorage, auth_res: AuthResource) -> StorageMux:
    """Multiplexer with 'local' and 'mem' registered and the user homes created."""
    storage_mux = StorageMux([local_storage, mem_storage])
    storage_mux.create_user_homes(auth_res)
    return storage_mux
