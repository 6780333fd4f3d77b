"""
Tests for configuration loading.
"""

import logging

import pytest
import yaml

from shadowlift.config import (
    DEFAULT_CONFIG_PATH, get_config_value, get_default_config, get_preset,
    load_config, save_config, update_config_value
)
from shadowlift.processing.tone.models import DEFAULT_SETTINGS, RESET_SETTINGS


class TestLoadConfig:
    """Test loading and merging."""

    def test_bundled_config_matches_defaults(self):
        assert DEFAULT_CONFIG_PATH.exists()
        assert load_config() == get_default_config()

    def test_missing_file_uses_defaults(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            config = load_config(tmp_path / "missing.yaml")
        assert config == get_default_config()
        assert "not found" in caplog.text

    def test_partial_file_merged(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("engine:\n  algorithm: review\n  filter:\n    eps: 0.01\n")
        config = load_config(path)

        assert config['engine']['algorithm'] == 'review'
        assert config['engine']['filter']['eps'] == 0.01
        assert config['engine']['filter']['min_radius'] == 4
        assert config['output']['quality'] == 95

    def test_invalid_yaml_uses_defaults(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("engine: [unclosed\n")
        assert load_config(path) == get_default_config()

    def test_env_var_expansion(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SHADOWLIFT_PREFIX", "lifted_")
        path = tmp_path / "config.yaml"
        path.write_text("output:\n  prefix: ${SHADOWLIFT_PREFIX}\n  archive_name: ${UNSET_VAR_XYZ}\n")
        config = load_config(path)
        assert config['output']['prefix'] == 'lifted_'
        assert config['output']['archive_name'] == '${UNSET_VAR_XYZ}'

    def test_save_round_trip(self, tmp_path):
        config = get_default_config()
        config['engine']['workers'] = 4
        path = tmp_path / "saved.yaml"
        assert save_config(config, path)
        assert yaml.safe_load(path.read_text())['engine']['workers'] == 4
        assert load_config(path) == config


class TestConfigValues:
    """Test dotted access and presets."""

    def test_get_value(self):
        config = get_default_config()
        assert get_config_value(config, 'engine.filter.eps') == 0.001
        assert get_config_value(config, 'engine.missing', 'x') == 'x'
        assert get_config_value(config, 'engine.algorithm.deeper', 'y') == 'y'

    def test_update_value(self):
        config = {}
        update_config_value(config, 'engine.workers', 2)
        assert config == {'engine': {'workers': 2}}

    def test_presets(self):
        config = get_default_config()
        assert get_preset(config, 'default') == DEFAULT_SETTINGS
        assert get_preset(config, 'reset') == RESET_SETTINGS

    def test_unknown_preset(self):
        with pytest.raises(KeyError):
            get_preset(get_default_config(), 'moody')
