"""
Feature Overlap Detection

Compares a candidate feature (proposed or existing) with every stored
feature and grades duplicate risk from five signals:
- Capability tag overlap
- Problem statement similarity
- Target user overlap
- Module proximity
- Scope conflicts (in-scope vs out-of-scope)

Usage:
    from feature_graph.overlap import OverlapCandidate, check_overlap

    candidate = OverlapCandidate(problemStatement="...", capabilityTags=["payments"])
    for result in check_overlap(candidate, features):
        print(result.feature_id, result.severity.value, result.reasons)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from feature_graph.logging_config import get_logger
from feature_graph.overlap.text import calculate_text_similarity
from feature_graph.schemas import Feature

logger = get_logger(__name__)

# Text similarity thresholds
TEXT_REPORT_THRESHOLD = 0.2
TEXT_MEDIUM_THRESHOLD = 0.4
TEXT_HIGH_THRESHOLD = 0.6

# Shared tag thresholds
TAG_MEDIUM_COUNT = 2
TAG_HIGH_COUNT = 3


class OverlapSeverity(str, Enum):
    """Duplicate-risk tiers."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return {"low": 0, "medium": 1, "high": 2}[self.value]

    def step_up(self) -> "OverlapSeverity":
        """One tier higher, capped at high."""
        if self == OverlapSeverity.LOW:
            return OverlapSeverity.MEDIUM
        return OverlapSeverity.HIGH

    def at_least(self, other: "OverlapSeverity") -> "OverlapSeverity":
        return self if self.rank >= other.rank else other


class OverlapCandidate(BaseModel):
    """A feature description to check against the stored set."""

    feature_id: Optional[str] = Field(
        default=None,
        alias="featureId",
        description="Set when checking an existing feature so it is not compared with itself",
    )
    name: str = Field(default="")
    module_id: Optional[str] = Field(default=None, alias="moduleId")
    problem_statement: str = Field(default="", alias="problemStatement")
    capability_tags: List[str] = Field(default_factory=list, alias="capabilityTags")
    target_users: List[str] = Field(default_factory=list, alias="targetUsers")
    in_scope: List[str] = Field(default_factory=list, alias="inScope")
    out_of_scope: List[str] = Field(default_factory=list, alias="outOfScope")

    class Config:
        populate_by_name = True
        frozen = True

    @classmethod
    def from_feature(cls, feature: Feature) -> "OverlapCandidate":
        """Build a candidate from a stored feature (self-comparison is skipped)."""
        return cls(
            feature_id=feature.id,
            name=feature.name,
            module_id=feature.module_id or None,
            problem_statement=feature.problem_statement,
            capability_tags=list(feature.capability_tags),
            target_users=list(feature.target_users),
            in_scope=list(feature.in_scope),
            out_of_scope=list(feature.out_of_scope),
        )


@dataclass
class OverlapResult:
    """Overlap between the candidate and one stored feature."""

    feature_id: str
    feature_name: str
    severity: OverlapSeverity
    reasons: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    tag_overlap: List[str] = field(default_factory=list)
    similarity_score: Optional[float] = None
    user_overlap: List[str] = field(default_factory=list)
    scope_conflicts: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        details: Dict[str, Any] = {}
        if self.tag_overlap:
            details["tagOverlap"] = list(self.tag_overlap)
        if self.similarity_score is not None:
            details["similarityScore"] = round(self.similarity_score * 100)
        if self.scope_conflicts:
            details["scopeConflicts"] = list(self.scope_conflicts)
        if self.user_overlap:
            details["userOverlap"] = list(self.user_overlap)

        return {
            "featureId": self.feature_id,
            "featureName": self.feature_name,
            "severity": self.severity.value,
            "reasons": list(self.reasons),
            "recommendations": list(self.recommendations),
            "details": details,
        }


def _contains_either_way(a: str, b: str) -> bool:
    a, b = a.strip().lower(), b.strip().lower()
    if not a or not b:
        return False
    return a in b or b in a


def find_scope_conflicts(
    in_scope: Sequence[str], out_of_scope: Sequence[str], existing: Feature
) -> List[str]:
    """
    Scope items of the candidate that collide with the existing feature.

    A candidate in-scope phrase conflicts with an existing out-of-scope
    phrase (and vice versa) when either is a case-insensitive substring of
    the other. Empty phrases never conflict.
    """
    conflicts = []

    for item in in_scope:
        for existing_out in existing.out_of_scope:
            if _contains_either_way(item, existing_out):
                conflicts.append(
                    f"\"{item}\" conflicts with {existing.id}'s out-of-scope: \"{existing_out}\""
                )

    for item in out_of_scope:
        for existing_in in existing.in_scope:
            if _contains_either_way(item, existing_in):
                conflicts.append(
                    f"Out-of-scope \"{item}\" conflicts with {existing.id}'s in-scope: \"{existing_in}\""
                )

    return conflicts


def _recommendations(result: OverlapResult) -> List[str]:
    existing_id = result.feature_id

    if result.severity == OverlapSeverity.HIGH:
        recs = []
        if result.scope_conflicts:
            recs.append("CRITICAL: Scope conflict detected. Review boundaries between features.")
            recs.append(f"Consider: Is this truly a new feature or an extension of {existing_id}?")
        if len(result.tag_overlap) >= TAG_HIGH_COUNT:
            recs.append("High capability overlap suggests these features may be too similar.")
            recs.append(
                f"Options: 1) Merge into {existing_id}, 2) Define clear differentiation, "
                "3) Create as sub-feature"
            )
        if (result.similarity_score or 0.0) > TEXT_HIGH_THRESHOLD:
            recs.append(
                "Problem statements are very similar. Consider if this addresses the same "
                "problem differently."
            )
            recs.append(
                f"If solving same problem: Enhance {existing_id} instead of creating new feature."
            )
        if not recs:
            recs.append(f"Several overlap signals combine with {existing_id}. Review both features together.")
            recs.append(f"Define clear differentiation from {existing_id} or merge the two.")
        return recs

    if result.severity == OverlapSeverity.MEDIUM:
        return [
            "Moderate overlap detected. Establish explicit relationship.",
            f"Add relatedFeatures entry linking to {existing_id} with appropriate relationship type.",
            f"Clearly document in outOfScope what differentiates this from {existing_id}.",
        ]

    return [
        "Low overlap. Features likely complement each other.",
        "Consider adding relatedFeatures entry if there's data dependency.",
    ]


def _compare(candidate: OverlapCandidate, existing: Feature) -> Optional[OverlapResult]:
    reasons: List[str] = []
    severity = OverlapSeverity.LOW

    # 1. Capability tags
    existing_tags = set(existing.capability_tags)
    tag_overlap = list(dict.fromkeys(t for t in candidate.capability_tags if t in existing_tags))
    if tag_overlap:
        reasons.append(f"Shares {len(tag_overlap)} capability tag(s): {', '.join(tag_overlap)}")
        if len(tag_overlap) >= TAG_HIGH_COUNT:
            severity = OverlapSeverity.HIGH
        elif len(tag_overlap) >= TAG_MEDIUM_COUNT:
            severity = severity.at_least(OverlapSeverity.MEDIUM)

    # 2. Problem statement
    similarity: Optional[float] = None
    score = calculate_text_similarity(candidate.problem_statement, existing.problem_statement)
    if score > TEXT_REPORT_THRESHOLD:
        similarity = score
        reasons.append(f"{round(score * 100)}% problem statement similarity")
        if score > TEXT_HIGH_THRESHOLD:
            severity = OverlapSeverity.HIGH
        elif score > TEXT_MEDIUM_THRESHOLD:
            severity = severity.at_least(OverlapSeverity.MEDIUM)

    # 3. Target users
    existing_users = {u.lower() for u in existing.target_users}
    user_overlap = [u for u in candidate.target_users if u.lower() in existing_users]
    if user_overlap:
        reasons.append(f"Targets same users: {', '.join(user_overlap)}")
        severity = severity.step_up()

    # 4. Scope conflicts
    scope_conflicts = find_scope_conflicts(candidate.in_scope, candidate.out_of_scope, existing)
    reasons.extend(scope_conflicts)

    # 5. Module proximity, only on top of another signal
    if candidate.module_id and candidate.module_id == existing.module_id and reasons:
        reasons.append(f"Both in module {candidate.module_id}")
        severity = severity.step_up()

    if scope_conflicts:
        severity = OverlapSeverity.HIGH

    if not reasons:
        return None

    result = OverlapResult(
        feature_id=existing.id,
        feature_name=existing.name,
        severity=severity,
        reasons=reasons,
        tag_overlap=tag_overlap,
        similarity_score=similarity,
        user_overlap=user_overlap,
        scope_conflicts=scope_conflicts,
    )
    result.recommendations = _recommendations(result)
    return result


def check_overlap(candidate: OverlapCandidate, features: Sequence[Feature]) -> List[OverlapResult]:
    """
    Check a candidate against every stored feature.

    Args:
        candidate: Feature description to check
        features: Complete feature snapshot

    Returns:
        Results for features with at least one overlap signal, highest
        severity first, then most reasons first
    """
    results = []

    for existing in features:
        if candidate.feature_id and existing.id == candidate.feature_id:
            continue
        result = _compare(candidate, existing)
        if result is not None:
            results.append(result)

    results.sort(key=lambda r: (-r.severity.rank, -len(r.reasons)))

    logger.debug(
        f"Overlap check against {len(features)} feature(s): {len(results)} with overlap, "
        f"{sum(1 for r in results if r.severity == OverlapSeverity.HIGH)} high"
    )
    return results
