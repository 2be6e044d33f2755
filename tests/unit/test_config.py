"""
Configuration Unit Tests
"""

import json

import pytest
import yaml

from articy_flow.config import (
    ArticyFlowConfig,
    ensure_valid,
    get_default_config,
    load_config_from_env,
    load_config_from_file,
    merge_configs,
    validate_config,
)
from articy_flow.core.errors import ConfigError


class TestConfigSources:
    """Tests for defaults, files and environment"""

    def test_defaults(self):
        """Test default values"""
        config = get_default_config()

        assert config.log_level == "INFO"
        assert config.enable_tracing is True
        assert config.unmatched_choice == "error"
        assert config.seed_global_variables is True
        assert config.check_references is True
        assert validate_config(config) == []

    def test_load_yaml(self, tmp_path):
        """Test YAML files"""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"unmatched_choice": "advance", "trace_limit": 5}))

        config = load_config_from_file(path)
        assert config.unmatched_choice == "advance"
        assert config.trace_limit == 5

    def test_load_json(self, tmp_path):
        """Test JSON files"""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"log_level": "DEBUG"}))

        assert load_config_from_file(path).log_level == "DEBUG"

    def test_empty_yaml(self, tmp_path):
        """Test an empty file gives defaults"""
        path = tmp_path / "config.yml"
        path.write_text("")

        assert load_config_from_file(path) == ArticyFlowConfig()

    @pytest.mark.parametrize(
        "name, content",
        [
            ("config.toml", "x = 1"),
            ("config.json", '{"colour": "red"}'),
            ("config.json", "[1]"),
            ("config.json", "{not json"),
            ("config.yaml", "log_level: [INFO"),
        ],
    )
    def test_bad_files(self, tmp_path, name, content):
        """Test unsupported formats, unknown keys, non-mappings and malformed content"""
        path = tmp_path / name
        path.write_text(content)

        with pytest.raises(ConfigError):
            load_config_from_file(path)

    def test_missing_file(self, tmp_path):
        """Test missing files"""
        with pytest.raises(ConfigError):
            load_config_from_file(tmp_path / "nope.yaml")

    def test_env(self, monkeypatch):
        """Test ARTICY_FLOW_* variables"""
        monkeypatch.setenv("ARTICY_FLOW_LOG_LEVEL", "WARNING")
        monkeypatch.setenv("ARTICY_FLOW_ENABLE_TRACING", "false")
        monkeypatch.setenv("ARTICY_FLOW_TRACE_LIMIT", "7")
        monkeypatch.setenv("ARTICY_FLOW_UNMATCHED_CHOICE", "advance")

        config = load_config_from_env()
        assert config.log_level == "WARNING"
        assert config.enable_tracing is False
        assert config.trace_limit == 7
        assert config.unmatched_choice == "advance"

    def test_env_invalid_number(self, monkeypatch):
        """Test unconvertible environment values"""
        monkeypatch.setenv("ARTICY_FLOW_TRACE_LIMIT", "many")
        with pytest.raises(ConfigError):
            load_config_from_env()


class TestConfigValidation:
    """Tests for merge and validation"""

    def test_merge(self):
        """Test overrides replace base values only where given"""
        base = ArticyFlowConfig(trace_limit=10)
        merged = merge_configs(base, {"unmatched_choice": "advance"})

        assert merged.trace_limit == 10
        assert merged.unmatched_choice == "advance"
        assert base.unmatched_choice == "error"

    def test_merge_unknown_key(self):
        """Test unknown override keys are rejected"""
        with pytest.raises(ConfigError):
            merge_configs(ArticyFlowConfig(), {"colour": "red"})

    def test_validate_reports_all_issues(self):
        """Test every invalid field is reported"""
        config = ArticyFlowConfig(
            log_level="LOUD", log_renderer="xml", trace_limit=-1, unmatched_choice="ignore"
        )
        assert len(validate_config(config)) == 4

        with pytest.raises(ConfigError) as exc_info:
            ensure_valid(config)
        assert len(exc_info.value.details["issues"]) == 4

    def test_validate_wrong_types(self):
        """Test values of the wrong type are reported instead of raising"""
        config = ArticyFlowConfig(log_level=10, trace_limit="many")
        issues = validate_config(config)

        assert len(issues) == 2
        assert "trace_limit must be an integer" in issues

        with pytest.raises(ConfigError):
            ensure_valid(config)

    def test_zero_trace_limit_is_valid(self):
        """Test a trace limit of 0 is accepted"""
        assert validate_config(ArticyFlowConfig(trace_limit=0)) == []
