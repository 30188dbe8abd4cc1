"""
Feature Graph Exceptions

Custom exception types carrying remediation suggestions.

Only programmer errors and I/O failures are raised. Data-quality problems in a
feature set are reported as issues, never raised.
"""

from pathlib import Path
from typing import Optional, Union


class FeatureGraphError(Exception):
    """Base exception for all feature graph errors."""

    def __init__(
        self,
        message: str,
        remediation: Optional[str] = None,
        details: Optional[str] = None
    ):
        """Initialize the error.

        Args:
            message: Human-readable error message
            remediation: Suggested fix for the user
            details: Technical details for debugging
        """
        super().__init__(message)
        self.message = message
        self.remediation = remediation
        self.details = details

    def __str__(self) -> str:
        parts = [self.message]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.remediation:
            parts.append(f"To fix: {self.remediation}")
        return "\n".join(parts)


class FeatureNotFoundError(FeatureGraphError):
    """An operation addressed a feature id absent from the supplied set."""

    def __init__(
        self,
        feature_id: str,
        message: Optional[str] = None,
        remediation: Optional[str] = None,
        details: Optional[str] = None
    ):
        self.feature_id = feature_id
        if not message:
            message = f"Feature {feature_id} not found"
        if not remediation:
            remediation = f"Check the id or add {feature_id} to the contracts directory"
        super().__init__(message, remediation, details)


class ConfigError(FeatureGraphError):
    """Configuration-related errors."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        remediation: Optional[str] = None,
        details: Optional[str] = None
    ):
        self.config_key = config_key
        if not remediation and config_key:
            remediation = f"Check your configuration for '{config_key}' in feature-graph.yaml or .env"
        super().__init__(message, remediation, details)


class ContractLoadError(FeatureGraphError):
    """A contract file could not be read or does not match the schema."""

    def __init__(
        self,
        message: str,
        path: Optional[Union[str, Path]] = None,
        remediation: Optional[str] = None,
        details: Optional[str] = None
    ):
        self.path = Path(path) if path else None
        if not remediation and path:
            remediation = f"Fix or remove {path}, then run the command again"
        super().__init__(message, remediation, details)


# Error code mapping for CLI exit codes
ERROR_CODES = {
    ConfigError: 10,
    ContractLoadError: 11,
    FeatureNotFoundError: 12,
    FeatureGraphError: 1,
}


def get_error_code(error: Exception) -> int:
    """Get the exit code for an error type."""
    for error_type, code in ERROR_CODES.items():
        if isinstance(error, error_type):
            return code
    return 1
