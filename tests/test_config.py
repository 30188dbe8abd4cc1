"""Tests for the configuration loader."""

import os

import pytest

from feature_graph.config import ConfigLoader, get_config, reset_config
from feature_graph.exceptions import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ConfigLoader.ENV_OVERRIDES.values():
        monkeypatch.delenv(var, raising=False)
    monkeypatch.delenv("FEATURE_GRAPH_CONFIG", raising=False)
    reset_config()
    yield
    reset_config()
    # load_dotenv writes straight to os.environ
    for var in ConfigLoader.ENV_OVERRIDES.values():
        os.environ.pop(var, None)


class TestConfigLoader:
    """Test ConfigLoader resolution order."""

    def test_defaults_without_file(self, tmp_path):
        config = ConfigLoader(tmp_path / "feature-graph.yaml")
        assert config.get("contracts.dir") == ".vibeops"
        assert config.get_int("analysis.max_results") == 5
        assert config.get_float("analysis.similarity_threshold") == 0.3
        assert config.metadata.config_path is None
        assert config.metadata.validation_errors == []

    def test_yaml_values(self, tmp_path):
        path = tmp_path / "feature-graph.yaml"
        path.write_text("analysis:\n  max_results: 10\ncontracts:\n  dir: contracts\n")
        config = ConfigLoader(path)
        assert config.get_int("analysis.max_results") == 10
        assert config.get_path("contracts.dir").name == "contracts"
        assert config.get("analysis.unknown", "fallback") == "fallback"

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "feature-graph.yaml"
        path.write_text("analysis:\n  deep_nesting_threshold: 3\n")
        monkeypatch.setenv("FEATURE_GRAPH_DEEP_NESTING", "8")
        assert ConfigLoader(path).get_int("analysis.deep_nesting_threshold") == 8

    def test_dotenv_next_to_config(self, tmp_path, monkeypatch):
        (tmp_path / ".env").write_text("FEATURE_GRAPH_MAX_RESULTS=7\n")
        config = ConfigLoader(tmp_path / "feature-graph.yaml")
        assert config.get_int("analysis.max_results") == 7
        assert config.metadata.env_path == tmp_path / ".env"

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "feature-graph.yaml"
        path.write_text("analysis: [unclosed\n")
        with pytest.raises(ConfigError):
            ConfigLoader(path)

    def test_non_mapping_yaml(self, tmp_path):
        path = tmp_path / "feature-graph.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigError):
            ConfigLoader(path)

    def test_malformed_number(self, tmp_path):
        path = tmp_path / "feature-graph.yaml"
        path.write_text("analysis:\n  max_results: lots\n")
        config = ConfigLoader(path)
        with pytest.raises(ConfigError) as exc_info:
            config.get_int("analysis.max_results")
        assert exc_info.value.config_key == "analysis.max_results"
        assert config.metadata.validation_errors

    def test_validate_ranges(self, tmp_path):
        path = tmp_path / "feature-graph.yaml"
        path.write_text("analysis:\n  similarity_threshold: 1.5\n  max_results: 0\n")
        errors = ConfigLoader(path).validate()
        assert len(errors) == 2


class TestGetConfig:
    """Test the singleton accessor."""

    def test_singleton(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FEATURE_GRAPH_CONFIG", str(tmp_path / "feature-graph.yaml"))
        assert get_config() is get_config()

    def test_force_reload(self, tmp_path, monkeypatch):
        monkeypatch.setenv("FEATURE_GRAPH_CONFIG", str(tmp_path / "feature-graph.yaml"))
        first = get_config()
        assert get_config(force_reload=True) is not first
