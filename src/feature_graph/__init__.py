"""
Feature Graph: relationship analysis for product feature contracts

Scheduling (critical path, readiness) and quality (relationship validation,
overlap detection) analyses over a snapshot of Feature records.
"""

try:
    from importlib.metadata import version
    __version__ = version("feature-graph")
except Exception:
    __version__ = "0.0.0"  # Fallback for development

__all__ = ["__version__"]
