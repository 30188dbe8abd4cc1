"""
Feature Graph Configuration Loader

Loads feature-graph.yaml and .env, validates values, provides defaults.

Usage:
    from feature_graph.config import get_config

    config = get_config()
    contracts_dir = config.get_path("contracts.dir")
    threshold = config.get_float("analysis.similarity_threshold")

The analysis engine never reads configuration; the CLI resolves values here
and passes them to the engine as explicit arguments.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from feature_graph.exceptions import ConfigError
from feature_graph.logging_config import get_logger

logger = get_logger(__name__)

CONFIG_FILENAME = "feature-graph.yaml"


@dataclass
class ConfigMetadata:
    """Metadata about the loaded configuration."""

    config_path: Optional[Path]
    env_path: Optional[Path]
    loaded_at: datetime
    validation_errors: List[str] = field(default_factory=list)


class ConfigLoader:
    """
    Feature Graph Configuration Loader.

    Resolution order for every key: environment variable, then
    feature-graph.yaml, then OPTIONAL_DEFAULTS.

    Attributes:
        config_path: Path to feature-graph.yaml (may not exist)
        config: Loaded configuration dictionary
        metadata: Information about loaded configuration
    """

    OPTIONAL_DEFAULTS = {
        "contracts.dir": ".vibeops",
        "analysis.deep_nesting_threshold": 5,
        "analysis.similarity_threshold": 0.3,
        "analysis.max_results": 5,
    }

    ENV_OVERRIDES = {
        "contracts.dir": "FEATURE_GRAPH_CONTRACTS_DIR",
        "analysis.deep_nesting_threshold": "FEATURE_GRAPH_DEEP_NESTING",
        "analysis.similarity_threshold": "FEATURE_GRAPH_SIMILARITY_THRESHOLD",
        "analysis.max_results": "FEATURE_GRAPH_MAX_RESULTS",
    }

    def __init__(self, config_path: Optional[Path] = None, auto_load: bool = True):
        """
        Initialize the configuration loader.

        Args:
            config_path: Path to feature-graph.yaml. If None, attempts to discover.
            auto_load: If True, automatically load config on init.
        """
        self.config_path = Path(config_path) if config_path else None
        self.config: Dict[str, Any] = {}
        self.metadata: Optional[ConfigMetadata] = None

        if auto_load:
            self._load()

    def _find_config_path(self) -> Path:
        """Find feature-graph.yaml via FEATURE_GRAPH_CONFIG, else the cwd."""
        if os.getenv("FEATURE_GRAPH_CONFIG"):
            return Path(os.environ["FEATURE_GRAPH_CONFIG"])
        return Path.cwd() / CONFIG_FILENAME

    def _load(self) -> None:
        """Load configuration from feature-graph.yaml and .env files."""
        if self.config_path is None:
            self.config_path = self._find_config_path()

        env_path = self.config_path.parent / ".env"

        # .env first so its values act as overrides
        if env_path.exists():
            load_dotenv(env_path)
            logger.debug(f"Loaded .env from {env_path}")

        if self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(
                    f"Invalid YAML in {self.config_path}",
                    details=str(e),
                    remediation=f"Fix the syntax of {self.config_path}",
                )
            except OSError as e:
                raise ConfigError(f"Cannot read {self.config_path}", details=str(e))

            if not isinstance(loaded, dict):
                raise ConfigError(
                    f"{self.config_path} must contain a mapping",
                    remediation="Use nested keys such as 'analysis:' and 'contracts:'",
                )
            self.config = loaded
            logger.debug(f"Loaded {CONFIG_FILENAME} from {self.config_path}")
        else:
            logger.debug(f"{CONFIG_FILENAME} not found at {self.config_path}, using defaults")
            self.config = {}

        self.metadata = ConfigMetadata(
            config_path=self.config_path if self.config_path.exists() else None,
            env_path=env_path if env_path.exists() else None,
            loaded_at=datetime.now(),
        )
        self.metadata.validation_errors = self.validate()
        if self.metadata.validation_errors:
            logger.warning(f"Configuration validation warnings: {self.metadata.validation_errors}")

    def _get_nested(self, key: str) -> Any:
        """
        Get a nested value using dot notation.

        Args:
            key: Dot-separated key path (e.g., "analysis.max_results")

        Returns:
            Value at the key path, or None if not found.
        """
        value = self.config

        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return None

        return value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value with optional default.

        Args:
            key: Dot-separated key path
            default: Value to return if key not found anywhere

        Returns:
            Configuration value or default.
        """
        env_var = self.ENV_OVERRIDES.get(key)
        if env_var and os.getenv(env_var):
            return os.environ[env_var]

        value = self._get_nested(key)
        if value is None:
            if key in self.OPTIONAL_DEFAULTS:
                return self.OPTIONAL_DEFAULTS[key]
            return default
        return value

    def get_int(self, key: str, default: int = 0) -> int:
        """Get configuration value as int, raising ConfigError if malformed."""
        value = self.get(key, default)
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigError(f"Expected an integer for {key}, got {value!r}", config_key=key)

    def get_float(self, key: str, default: float = 0.0) -> float:
        """Get configuration value as float, raising ConfigError if malformed."""
        value = self.get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"Expected a number for {key}, got {value!r}", config_key=key)

    def get_path(self, key: str, default: Optional[str] = None) -> Path:
        """Get configuration value as a path, relative paths resolved against the cwd."""
        value = self.get(key, default)
        if value is None:
            raise ConfigError(f"Required config missing: {key}", config_key=key)
        return Path(value).expanduser()

    def validate(self) -> List[str]:
        """
        Validate configuration values.

        Returns:
            List of validation error messages (empty if valid).
        """
        errors = []

        for key in ("analysis.deep_nesting_threshold", "analysis.max_results"):
            try:
                if self.get_int(key) < 1:
                    errors.append(f"{key} must be at least 1")
            except ConfigError as e:
                errors.append(e.message)

        try:
            threshold = self.get_float("analysis.similarity_threshold")
            if not 0.0 <= threshold <= 1.0:
                errors.append("analysis.similarity_threshold must be between 0 and 1")
        except ConfigError as e:
            errors.append(e.message)

        return errors

    def __repr__(self) -> str:
        """String representation of config loader."""
        return (
            f"ConfigLoader(config_path={self.config_path}, "
            f"loaded={self.metadata is not None})"
        )


# Singleton instance
_config: Optional[ConfigLoader] = None


def get_config(
    config_path: Optional[Path] = None, force_reload: bool = False
) -> ConfigLoader:
    """
    Get the configuration loader singleton.

    Args:
        config_path: Override config file path (optional)
        force_reload: Force reload configuration

    Returns:
        ConfigLoader instance.
    """
    global _config

    if _config is None or force_reload or config_path is not None:
        _config = ConfigLoader(config_path)

    return _config


def reset_config() -> None:
    """Reset the configuration singleton (for testing)."""
    global _config
    _config = None
