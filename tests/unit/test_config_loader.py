"""Tests for configuration loading, environment substitution and validation."""

from pathlib import Path

import pytest

from syncato.config import (
    ProviderType,
    SyncatoConfig,
    load_config,
    parse_config,
    substitute_env_vars,
)
from syncato.exceptions import ConfigValidationError


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "syncato.yaml"
    path.write_text(text, encoding="utf-8")
    return path


FULL_CONFIG = """
root_data_dir: ${SYNCATO_TEST_DATA:/srv/syncato/data}
root_tmp_dir: /srv/syncato/tmp
create_user_home_on_login: false
create_user_home_in_storages: [local, mem]
storages:
  - scheme: LOCAL
    type: local
  - scheme: mem
    type: fsspec
    protocol: memory
    root: /syncato
    options:
      skip_instance_cache: true
logging:
  level: debug
  format: JSON
"""


class TestEnvSubstitution:
    """Tests for ${VAR} and ${VAR:default} substitution."""

    def test_set_variable(self, monkeypatch):
        monkeypatch.setenv("SYNCATO_TEST_VAR", "value")
        assert substitute_env_vars("x-${SYNCATO_TEST_VAR}-y") == "x-value-y"

    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("SYNCATO_TEST_VAR", raising=False)
        assert substitute_env_vars("${SYNCATO_TEST_VAR:/fallback}") == "/fallback"
        assert substitute_env_vars("${SYNCATO_TEST_VAR:}") == ""

    def test_nested_structures(self, monkeypatch):
        monkeypatch.setenv("SYNCATO_TEST_VAR", "v")
        value = {"a": ["${SYNCATO_TEST_VAR}", 3], "b": {"c": "${SYNCATO_TEST_VAR}"}, "d": None}
        assert substitute_env_vars(value) == {"a": ["v", 3], "b": {"c": "v"}, "d": None}

    def test_unset_without_default_reports_key(self, monkeypatch):
        monkeypatch.delenv("SYNCATO_TEST_MISSING", raising=False)
        with pytest.raises(ConfigValidationError) as exc_info:
            substitute_env_vars({"storages": [{"root": "${SYNCATO_TEST_MISSING}"}]})
        assert "SYNCATO_TEST_MISSING" in str(exc_info.value)
        assert exc_info.value.details["config_key"] == "storages[0].root"


class TestLoadConfig:
    """Tests for reading config files."""

    def test_full_config(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SYNCATO_TEST_DATA", "/data/from/env")
        cfg = load_config(_write(tmp_path, FULL_CONFIG))
        assert isinstance(cfg, SyncatoConfig)
        assert cfg.root_data_dir == "/data/from/env"
        assert cfg.root_tmp_dir == "/srv/syncato/tmp"
        assert cfg.create_user_home_on_login is False
        assert [s.scheme for s in cfg.storages] == ["local", "mem"]
        mem = cfg.storage("mem")
        assert mem.type is ProviderType.fsspec
        assert mem.protocol == "memory"
        assert mem.options == {"skip_instance_cache": True}
        assert cfg.storage("nope") is None
        assert cfg.logging.level == "debug"
        assert cfg.logging.format == "json"

    def test_defaults(self, tmp_path):
        cfg = load_config(_write(tmp_path, "root_data_dir: /d\nroot_tmp_dir: /t\n"))
        assert cfg.create_user_home_on_login is True
        assert cfg.create_user_home_in_storages == ["local"]
        assert [s.scheme for s in cfg.storages] == ["local"]
        assert cfg.logging.format == "human"

    def test_home_directory_expanded(self, tmp_path):
        cfg = load_config(_write(tmp_path, "root_data_dir: ~/syncato\nroot_tmp_dir: /t\n"))
        assert cfg.root_data_dir == str(Path("~/syncato").expanduser())

    def test_env_substitution_can_be_disabled(self, tmp_path):
        cfg = load_config(
            _write(tmp_path, "root_data_dir: /d/${NOT_SUBSTITUTED}\nroot_tmp_dir: /t\n"),
            enable_env_substitution=False,
        )
        assert cfg.root_data_dir == "/d/${NOT_SUBSTITUTED}"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="not found"):
            load_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="Invalid YAML"):
            load_config(_write(tmp_path, "storages: [unclosed\n"))

    def test_non_mapping_document(self, tmp_path):
        with pytest.raises(ConfigValidationError, match="dictionary"):
            load_config(_write(tmp_path, "- a\n- b\n"))

    def test_missing_env_var_reports_config_path(self, tmp_path, monkeypatch):
        monkeypatch.delenv("SYNCATO_TEST_MISSING", raising=False)
        path = _write(tmp_path, "root_data_dir: ${SYNCATO_TEST_MISSING}\nroot_tmp_dir: /t\n")
        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(path)
        assert exc_info.value.details["config_path"] == str(path)
        assert exc_info.value.details["config_key"] == "root_data_dir"


class TestConfigValidation:
    """Tests for model validation failures."""

    def _base(self, **overrides):
        raw = {"root_data_dir": "/d", "root_tmp_dir": "/t"}
        raw.update(overrides)
        return raw

    def test_missing_root(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            parse_config({"root_tmp_dir": "/t"})
        assert exc_info.value.details["config_key"] == "root_data_dir"

    def test_relative_root(self):
        with pytest.raises(ConfigValidationError, match="absolute"):
            parse_config(self._base(root_tmp_dir="relative/tmp"))

    def test_duplicate_scheme(self):
        with pytest.raises(ConfigValidationError, match="more than once"):
            parse_config(self._base(storages=[{"scheme": "local"}, {"scheme": "Local"}]))

    @pytest.mark.parametrize("scheme", ["", "  ", "a:b", "a/b", "local://"])
    def test_bad_scheme(self, scheme):
        with pytest.raises(ConfigValidationError):
            parse_config(self._base(storages=[{"scheme": scheme}], create_user_home_in_storages=[]))

    def test_fsspec_requires_protocol(self):
        with pytest.raises(ConfigValidationError, match="require 'protocol'"):
            parse_config(
                self._base(storages=[{"scheme": "mem", "type": "fsspec"}], create_user_home_in_storages=[])
            )

    def test_protocol_only_for_fsspec(self):
        with pytest.raises(ConfigValidationError, match="only applies"):
            parse_config(self._base(storages=[{"scheme": "local", "protocol": "memory"}]))

    def test_unknown_provider_type(self):
        with pytest.raises(ConfigValidationError) as exc_info:
            parse_config(self._base(storages=[{"scheme": "local", "type": "webdav"}]))
        assert exc_info.value.details["config_key"] == "storages.0.type"

    def test_unknown_key_rejected(self):
        with pytest.raises(ConfigValidationError):
            parse_config(self._base(unexpected=True))

    def test_home_storages_must_be_configured(self):
        with pytest.raises(ConfigValidationError, match="unknown storages: mem"):
            parse_config(self._base(create_user_home_in_storages=["local", "mem"]))

    def test_bad_logging_format(self):
        with pytest.raises(ConfigValidationError, match="logging.format"):
            parse_config(self._base(logging={"format": "xml"}))
