#!/usr/bin/env python3
"""
Exporter configuration tests
"""

import json
import logging
from pathlib import Path

import pytest

from config.settings import ExporterConfig, load_config
from core.errors import ConfigurationError
from extensions.plugins.foxpro_source import DEFAULT_DRIVER


@pytest.mark.unit
class TestExporterConfig:

    def test_defaults(self):
        config = ExporterConfig()

        assert config.log_level == "INFO"
        assert config.output_dir == Path(".")
        assert config.trim_spaces is True
        assert config.odbc_driver == DEFAULT_DRIVER
        assert config.targets == {}

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("TMGX_LOG_LEVEL", "debug")
        monkeypatch.setenv("TMGX_TRIM_SPACES", "false")
        monkeypatch.setenv("TMGX_OUTPUT_DIR", "/tmp/tmg")
        monkeypatch.setenv("TMGX_POSTGRESQL_URL", "postgresql://tmg:secret@db/tmg")

        config = ExporterConfig()

        assert config.log_level == "DEBUG"
        assert config.trim_spaces is False
        assert config.output_dir == Path("/tmp/tmg")
        assert config.targets == {"postgresql": "postgresql://tmg:secret@db/tmg"}

    def test_unknown_target_kind(self):
        with pytest.raises(ConfigurationError):
            ExporterConfig(targets={"oracle": "oracle://db"})

    def test_safe_dict_masks_passwords(self):
        config = ExporterConfig(targets={"mysql": "mysql://tmg:secret@db/tmg", "sqlite": "family.sqlite3"})
        safe = config.get_safe_dict()

        assert safe["targets"]["mysql"] == "mysql://tmg:***@db/tmg"
        assert safe["targets"]["sqlite"] == "family.sqlite3"
        assert "secret" not in json.dumps(safe)


@pytest.mark.unit
class TestLoadConfig:

    def test_without_file(self):
        assert load_config().log_level == "INFO"

    def test_from_file(self, tmp_path, caplog):
        path = tmp_path / "tmgx.json"
        path.write_text(json.dumps({"log_level": "WARNING", "settings_encoding": "utf-8", "colour": "blue"}))

        with caplog.at_level(logging.WARNING, logger="config.settings"):
            config = load_config(path)

        assert config.log_level == "WARNING"
        assert config.settings_encoding == "utf-8"
        assert "colour" in caplog.text

    def test_environment_beats_file(self, tmp_path, monkeypatch):
        path = tmp_path / "tmgx.json"
        path.write_text(json.dumps({"log_level": "WARNING"}))
        monkeypatch.setenv("TMGX_LOG_LEVEL", "ERROR")

        assert load_config(path).log_level == "ERROR"

    def test_invalid_file(self, tmp_path):
        path = tmp_path / "tmgx.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError):
            load_config(path)
