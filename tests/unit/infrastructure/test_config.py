"""
Unit tests for infrastructure/config.py - TOML configuration loading.
"""
import msgspec
import pytest

from infrastructure.config import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_PATH,
    GenealogyConfig,
    load_config,
    resolve_config_path,
)


def test_defaults():
    config = GenealogyConfig()

    assert config.default_output == "codes_only"
    assert config.family_max_depth == 1
    assert (config.from_column, config.to_column) == ("from", "to")
    assert config.query_log_path is None


def test_load_explicit_path(tmp_path):
    """
    Validate that the [genealogy] table overrides defaults and leaves the
    other fields untouched.
    """
    path = tmp_path / "genealogy.toml"
    path.write_text('[genealogy]\ndefault_output = "edgelist"\nfamily_max_depth = 2\n')

    config = load_config(path)

    assert config.default_output == "edgelist"
    assert config.family_max_depth == 2
    assert config.log_level == "WARNING"


def test_missing_table_gives_defaults(tmp_path):
    path = tmp_path / "other.toml"
    path.write_text("[something_else]\nkey = 1\n")

    assert load_config(path) == GenealogyConfig()


def test_missing_file_warns_and_falls_back(tmp_path):
    with pytest.warns(UserWarning, match="using defaults"):
        config = load_config(tmp_path / "absent.toml")

    assert config == GenealogyConfig()


def test_malformed_toml_warns(tmp_path):
    path = tmp_path / "broken.toml"
    path.write_text("[genealogy\n")

    with pytest.warns(UserWarning):
        assert load_config(path) == GenealogyConfig()


def test_invalid_value_raises(tmp_path):
    path = tmp_path / "bad.toml"
    path.write_text('[genealogy]\nfamily_max_depth = "two"\n')

    with pytest.raises(msgspec.ValidationError):
        load_config(path)


def test_environment_variable(tmp_path, monkeypatch):
    path = tmp_path / "env.toml"
    path.write_text('[genealogy]\nlog_level = "DEBUG"\n')
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))

    assert resolve_config_path() == path
    assert load_config().log_level == "DEBUG"


def test_explicit_path_wins_over_environment(tmp_path, monkeypatch):
    monkeypatch.setenv(CONFIG_ENV_VAR, str(tmp_path / "env.toml"))

    assert resolve_config_path(tmp_path / "explicit.toml") == tmp_path / "explicit.toml"


def test_default_path(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

    assert resolve_config_path() == DEFAULT_CONFIG_PATH


def test_shipped_config_file_loads(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)

    assert load_config() == GenealogyConfig()
