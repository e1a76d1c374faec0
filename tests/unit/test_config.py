"""Unit tests for configuration loading and saving."""

import pytest

from pydantic import ValidationError

from gasketcheck.analysis.types import AnalyzerConfig, Calibration
from gasketcheck.config import (
    SessionSettings,
    get_config_path,
    get_database_path,
    load_analyzer_config,
    load_calibration_defaults,
    load_config,
    load_session_settings,
    save_config,
    set_config_value,
    unset_config_value,
)
from gasketcheck.constants import DEFAULT_DATABASE_PATH


class TestConfigFile:
    """Test reading and writing the TOML file."""

    def test_env_override(self, isolated_config):
        assert get_config_path() == isolated_config

    def test_missing_file_is_empty(self):
        assert load_config() == {}

    def test_corrupt_file_is_empty(self, isolated_config, caplog):
        isolated_config.write_text("[analyzer\nnot toml")

        assert load_config() == {}
        assert "Failed to load config" in caplog.text

    def test_save_and_load(self, isolated_config):
        save_config({"session": {"settle_sec": 1.5}})

        assert isolated_config.exists()
        assert not isolated_config.with_suffix(".toml.tmp").exists()
        assert load_config() == {"session": {"settle_sec": 1.5}}

    def test_save_creates_directory(self, tmp_path, monkeypatch):
        nested = tmp_path / "a" / "b" / "config.toml"
        monkeypatch.setenv("GASKETCHECK_CONFIG", str(nested))
        save_config({"database": {"path": "x.db"}})

        assert nested.exists()

    def test_set_and_unset_value(self, isolated_config):
        set_config_value("analyzer", "min_release_sec", 2.0)
        set_config_value("analyzer", "max_test_sec", 20.0)
        assert load_config()["analyzer"] == {
            "min_release_sec": 2.0,
            "max_test_sec": 20.0,
        }

        assert unset_config_value("analyzer", "min_release_sec") is True
        assert unset_config_value("analyzer", "min_release_sec") is False
        assert unset_config_value("analyzer", "max_test_sec") is True
        assert not isolated_config.exists()


class TestTypedSections:
    """Test validated views of config sections."""

    def test_defaults(self):
        assert load_analyzer_config() == AnalyzerConfig()
        assert load_calibration_defaults() == Calibration()
        assert load_session_settings() == SessionSettings()
        assert get_database_path() == DEFAULT_DATABASE_PATH

    def test_analyzer_values(self):
        save_config({"analyzer": {"press_slope_hpa_per_sec": 0.3}})
        config = load_analyzer_config()

        assert config.press_slope_hpa_per_sec == 0.3
        assert config.min_release_sec == AnalyzerConfig().min_release_sec

    def test_unknown_analyzer_key_rejected(self):
        save_config({"analyzer": {"press_slope": 0.3}})

        with pytest.raises(ValidationError):
            load_analyzer_config()

    @pytest.mark.parametrize("settle_sec", [-1.0, 5.0, 10.0])
    def test_invalid_session_value_rejected(self, settle_sec):
        save_config({"session": {"settle_sec": settle_sec}})

        with pytest.raises(ValidationError):
            load_session_settings()

    def test_settle_just_inside_window(self):
        save_config({"session": {"settle_sec": 3.9}})

        assert load_session_settings().settle_sec == 3.9

    def test_section_must_be_table(self):
        save_config({"session": 5})

        with pytest.raises(ValueError, match="must be a table"):
            load_session_settings()

    def test_calibration_defaults(self):
        save_config({"calibration": {"low_delta_p": 0.2, "high_tau_sec": 1.0}})

        assert load_calibration_defaults() == Calibration(
            low_delta_p=0.2, high_tau_sec=1.0
        )

    def test_database_path_expands_user(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))
        save_config({"database": {"path": "~/results.db"}})

        assert get_database_path() == str(tmp_path / "results.db")
