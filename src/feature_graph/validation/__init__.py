"""
Structural validation shared by both analyzers.
"""

from .issues import (
    IssueCategory,
    IssueSeverity,
    ValidationIssue,
    ValidationReport,
    ValidationStatistics,
)
from .relationships import validate_relationship_graph

__all__ = [
    "IssueCategory",
    "IssueSeverity",
    "ValidationIssue",
    "ValidationReport",
    "ValidationStatistics",
    "validate_relationship_graph",
]
