"""Unit tests for config.py"""

import pytest

from mdstream.config import load_config


def test_load_config_defaults():
    """Settings defaults are used when no config.yaml, env var, or CLI override exists."""
    settings = load_config()
    assert settings.parser_preset == "gfm-like"
    assert settings.repair_markers is True
    assert settings.chunk_size == 8


def test_load_config_reads_config_yaml(tmp_path):
    """Values in config.yaml are applied."""
    (tmp_path / "config.yaml").write_text("chunk_size: 3\nparser_preset: commonmark\n")
    settings = load_config()
    assert settings.chunk_size == 3
    assert settings.parser_preset == "commonmark"


def test_load_config_env_overrides_config_yaml(tmp_path, monkeypatch):
    """MDSTREAM_CHUNK_SIZE takes precedence over config.yaml."""
    (tmp_path / "config.yaml").write_text("chunk_size: 4\n")
    monkeypatch.setenv("MDSTREAM_CHUNK_SIZE", "2")
    settings = load_config()
    assert settings.chunk_size == 2


def test_load_config_env_bool(monkeypatch):
    """MDSTREAM_REPAIR_MARKERS is coerced to bool."""
    monkeypatch.setenv("MDSTREAM_REPAIR_MARKERS", "false")
    settings = load_config()
    assert settings.repair_markers is False


def test_load_config_cli_overrides_env(monkeypatch):
    """A non-None CLI override beats the env var; None overrides are ignored."""
    monkeypatch.setenv("MDSTREAM_OUTPUT_DIR", "env-out")
    assert load_config(overrides={"output_dir": "cli-out"}).output_dir == "cli-out"
    assert load_config(overrides={"output_dir": None}).output_dir == "env-out"


def test_load_config_invalid_yaml(tmp_path):
    """load_config raises ValueError when config.yaml contains invalid YAML."""
    (tmp_path / "config.yaml").write_text("key: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid config.yaml"):
        load_config()


def test_load_config_non_mapping_yaml(tmp_path):
    """A config.yaml that is not a mapping is rejected."""
    (tmp_path / "config.yaml").write_text("- a\n- b\n")
    with pytest.raises(ValueError, match="expected a mapping"):
        load_config()


def test_load_config_rejects_bad_values(monkeypatch):
    """Field constraints surface as ValueError (pydantic ValidationError)."""
    monkeypatch.setenv("MDSTREAM_CHUNK_SIZE", "0")
    with pytest.raises(ValueError):
        load_config()
    monkeypatch.setenv("MDSTREAM_CHUNK_SIZE", "4")
    monkeypatch.setenv("MDSTREAM_LOG_LEVEL", "LOUD")
    with pytest.raises(ValueError):
        load_config()
