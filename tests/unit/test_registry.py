"""Tests for the provider factory registry."""

import uuid

import pytest

from syncato.config import parse_config
from syncato.exceptions import ProviderRegistrationError
from syncato.storage.fsspec_backend import FsspecStorage
from syncato.storage.local import LocalStorage
from syncato.storage import registry
from syncato.storage.registry import (
    PROVIDER_REGISTRY,
    build_storage_mux,
    get_provider_factory,
    list_provider_types,
    register_provider_type,
)


class TestProviderRegistry:
    """Tests for factory registration and lookup."""

    def test_builtin_types(self):
        assert {"local", "fsspec"} <= set(list_provider_types())

    def test_lookup_is_case_insensitive(self):
        assert get_provider_factory("LOCAL") is get_provider_factory("local")

    def test_unknown_type_lists_available(self):
        with pytest.raises(ProviderRegistrationError) as exc_info:
            get_provider_factory("webdav")
        assert "Available types: " in str(exc_info.value)
        assert "fsspec" in str(exc_info.value)
        assert exc_info.value.details["provider_type"] == "webdav"

    def test_register_custom_type(self, monkeypatch):
        monkeypatch.setattr(registry, "PROVIDER_REGISTRY", dict(PROVIDER_REGISTRY))

        @register_provider_type("Custom")
        def _factory(storage, config):
            return LocalStorage(storage.scheme, config.root_data_dir, config.root_tmp_dir)

        assert registry.PROVIDER_REGISTRY["custom"] is _factory
        assert "custom" not in PROVIDER_REGISTRY


class TestBuildStorageMux:
    """Tests for building a multiplexer from configuration."""

    def test_default_config_has_local(self, tmp_path):
        config = parse_config({"root_data_dir": str(tmp_path / "data"), "root_tmp_dir": str(tmp_path / "tmp")})
        mux = build_storage_mux(config)
        assert mux.schemes == ["local"]
        provider = mux.get_provider("local")
        assert isinstance(provider, LocalStorage)
        assert provider.root_data_dir == (tmp_path / "data").resolve()

    def test_local_and_fsspec_in_file_order(self, tmp_path):
        root = f"/syncato-{uuid.uuid4().hex}"
        config = parse_config(
            {
                "root_data_dir": str(tmp_path / "data"),
                "root_tmp_dir": str(tmp_path / "tmp"),
                "storages": [
                    {"scheme": "mem", "type": "fsspec", "protocol": "memory", "root": root},
                    {
                        "scheme": "archive",
                        "type": "local",
                        "root_data_dir": str(tmp_path / "archive"),
                        "root_tmp_dir": str(tmp_path / "archive-tmp"),
                    },
                ],
                "create_user_home_in_storages": ["mem"],
            }
        )
        mux = build_storage_mux(config)
        assert mux.schemes == ["mem", "archive"]
        mem = mux.get_provider("mem")
        assert isinstance(mem, FsspecStorage)
        assert mem.protocol == "memory"
        assert mem.root == root
        archive = mux.get_provider("archive")
        assert archive.root_data_dir == (tmp_path / "archive").resolve()

    def test_factory_failure_is_logged_and_raised(self, tmp_path, monkeypatch, caplog):
        monkeypatch.setattr(registry, "PROVIDER_REGISTRY", dict(PROVIDER_REGISTRY))

        def _broken(storage, config):
            raise RuntimeError("backend unavailable")

        registry.PROVIDER_REGISTRY["local"] = _broken
        config = parse_config({"root_data_dir": str(tmp_path), "root_tmp_dir": str(tmp_path)})
        with pytest.raises(RuntimeError, match="backend unavailable"):
            build_storage_mux(config)
        assert "Failed to build storage 'local'" in caplog.text
