"""
Validation Issues and Reports

Three-tier issue model shared by the scheduling and relationship validators:
- error: the graph is unsound (cycles, dangling or self references)
- warning: likely mistakes that do not break soundness
- info: worth a human's attention, not a defect
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class IssueSeverity(Enum):
    """Severity tiers for structural validation."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def order(self) -> int:
        """Sort order, most severe first."""
        return {"error": 0, "warning": 1, "info": 2}[self.value]


class IssueCategory(Enum):
    """What kind of defect an issue describes."""

    MISSING_REFERENCE = "missing-reference"
    SELF_RELATIONSHIP = "self-relationship"
    CIRCULAR_DEPENDENCY = "circular-dependency"
    ORPHANED_FEATURE = "orphaned-feature"
    DATA_CONTRACT = "data-contract"
    MODULE_BOUNDARY = "module-boundary"
    ASYMMETRIC_RELATIONSHIP = "asymmetric-relationship"
    RELATIONSHIP_MISMATCH = "relationship-mismatch"

    # Scheduling graph
    SELF_DEPENDENCY = "self-dependency"
    INVALID_REFERENCE = "invalid-reference"
    DEEP_NESTING = "deep-nesting"


@dataclass
class ValidationIssue:
    """
    A single defect found in a feature set.

    Attributes:
        severity: error, warning or info
        category: Kind of defect
        feature_ids: Offending feature id(s); cycles list the full path
        message: Human-readable description
        recommendation: Suggested remediation
    """

    severity: IssueSeverity
    category: IssueCategory
    message: str
    feature_ids: List[str] = field(default_factory=list)
    recommendation: Optional[str] = None

    @property
    def feature_id(self) -> Optional[str]:
        """Primary offending feature, if any."""
        return self.feature_ids[0] if self.feature_ids else None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        result = {
            "type": self.severity.value,
            "category": self.category.value,
            "featureIds": list(self.feature_ids),
            "message": self.message,
        }
        if self.recommendation:
            result["recommendation"] = self.recommendation
        return result


@dataclass
class ValidationStatistics:
    """Aggregate counts for a validation run."""

    total_features: int = 0
    total_modules: int = 0
    total_relationships: int = 0
    features_with_relationships: int = 0
    features_with_data_contracts: int = 0
    orphaned_features: int = 0
    circular_dependencies: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalFeatures": self.total_features,
            "totalModules": self.total_modules,
            "totalRelationships": self.total_relationships,
            "featuresWithRelationships": self.features_with_relationships,
            "featuresWithDataContracts": self.features_with_data_contracts,
            "orphanedFeatures": self.orphaned_features,
            "circularDependencies": self.circular_dependencies,
        }


@dataclass
class ValidationReport:
    """
    Result of validating a feature set.

    Issues are kept in severity order (errors first); within a tier they keep
    the order in which they were found.
    """

    issues: List[ValidationIssue] = field(default_factory=list)
    statistics: ValidationStatistics = field(default_factory=ValidationStatistics)

    def __post_init__(self):
        self.issues = sorted(self.issues, key=lambda i: i.severity.order)

    @property
    def valid(self) -> bool:
        """True iff there are no errors."""
        return self.error_count == 0

    @property
    def errors(self) -> List[ValidationIssue]:
        return self.get_issues_by_severity(IssueSeverity.ERROR)

    @property
    def warnings(self) -> List[ValidationIssue]:
        return self.get_issues_by_severity(IssueSeverity.WARNING)

    @property
    def infos(self) -> List[ValidationIssue]:
        return self.get_issues_by_severity(IssueSeverity.INFO)

    @property
    def error_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == IssueSeverity.ERROR)

    def get_issues_by_severity(self, severity: IssueSeverity) -> List[ValidationIssue]:
        """Get issues of one severity tier."""
        return [i for i in self.issues if i.severity == severity]

    def get_issues_by_category(self, category: IssueCategory) -> List[ValidationIssue]:
        """Get issues of one category."""
        return [i for i in self.issues if i.category == category]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "valid": self.valid,
            "issues": [i.to_dict() for i in self.issues],
            "statistics": self.statistics.to_dict(),
        }
