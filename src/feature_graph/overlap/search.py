"""
Similar Feature Search

Open-ended discovery over stored features: ranks features by how closely
their problem statement, in-scope items and goals match a query. Tags,
target users and scope conflicts play no part here; see check_overlap().
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from feature_graph.logging_config import get_logger
from feature_graph.overlap.text import (
    calculate_text_similarity,
    extract_keywords,
    jaccard_similarity,
)
from feature_graph.schemas import Feature

logger = get_logger(__name__)

DEFAULT_THRESHOLD = 0.3

PROBLEM_THRESHOLD = 0.2
SCOPE_ITEM_THRESHOLD = 0.5
GOAL_THRESHOLD = 0.4


class SearchQuery(BaseModel):
    """What to look for."""

    problem_statement: str = Field(default="", alias="problemStatement")
    scope_items: List[str] = Field(default_factory=list, alias="scopeItems")
    goals: List[str] = Field(default_factory=list)

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def is_empty(self) -> bool:
        return not self.problem_statement.strip() and not self.scope_items and not self.goals


@dataclass
class SimilarityResult:
    """A stored feature similar to the query."""

    feature_id: str
    feature_name: str
    module_id: str
    similarity_score: float
    match_reasons: List[str] = field(default_factory=list)
    problem_statement_score: Optional[float] = None
    scope_overlap: List[str] = field(default_factory=list)
    goal_similarity: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        details: Dict[str, Any] = {}
        if self.problem_statement_score is not None:
            details["problemStatementScore"] = round(self.problem_statement_score * 100)
        if self.scope_overlap:
            details["scopeOverlap"] = list(self.scope_overlap)
        if self.goal_similarity:
            details["goalSimilarity"] = list(self.goal_similarity)

        return {
            "featureId": self.feature_id,
            "featureName": self.feature_name,
            "moduleId": self.module_id,
            "similarityScore": round(self.similarity_score, 2),
            "matchReasons": list(self.match_reasons),
            "matchDetails": details,
        }


@dataclass
class KeywordMatch:
    """A feature matching one or more search keywords."""

    feature_id: str
    feature_name: str
    matches: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "featureId": self.feature_id,
            "featureName": self.feature_name,
            "matches": list(self.matches),
        }


def _matching_items(
    query_items: Sequence[str], feature_items: Sequence[str], threshold: float
) -> List[str]:
    """Query items whose keyword Jaccard with some feature item exceeds threshold."""
    feature_keywords = [(item, extract_keywords(item)) for item in feature_items]
    matches = []

    for query_item in query_items:
        query_keywords = extract_keywords(query_item)
        best = next(
            (
                item
                for item, keywords in feature_keywords
                if jaccard_similarity(query_keywords, keywords) > threshold
            ),
            None,
        )
        if best is not None:
            matches.append(f"\"{query_item}\" ~ \"{best}\"")

    return matches


def _score_feature(query: SearchQuery, feature: Feature) -> Optional[SimilarityResult]:
    components: List[float] = []
    reasons: List[str] = []
    problem_score: Optional[float] = None

    # 1. Problem statement
    if query.problem_statement:
        score = calculate_text_similarity(query.problem_statement, feature.problem_statement)
        if score > PROBLEM_THRESHOLD:
            problem_score = score
            components.append(score)
            reasons.append(f"{round(score * 100)}% problem statement match")

    # 2. Scope items
    scope_overlap: List[str] = []
    if query.scope_items:
        scope_overlap = _matching_items(query.scope_items, feature.in_scope, SCOPE_ITEM_THRESHOLD)
        if scope_overlap:
            components.append(len(scope_overlap) / len(query.scope_items))
            reasons.append(f"{len(scope_overlap)} scope item(s) overlap")

    # 3. Goals
    goal_similarity: List[str] = []
    if query.goals:
        goal_similarity = _matching_items(query.goals, feature.goals, GOAL_THRESHOLD)
        if goal_similarity:
            components.append(len(goal_similarity) / len(query.goals))
            reasons.append(f"{len(goal_similarity)} similar goal(s)")

    if not components:
        return None

    return SimilarityResult(
        feature_id=feature.id,
        feature_name=feature.name,
        module_id=feature.module_id,
        similarity_score=sum(components) / len(components),
        match_reasons=reasons,
        problem_statement_score=problem_score,
        scope_overlap=scope_overlap,
        goal_similarity=goal_similarity,
    )


def search_similar_features(
    query: SearchQuery,
    features: Sequence[Feature],
    threshold: float = DEFAULT_THRESHOLD,
) -> List[SimilarityResult]:
    """
    Rank stored features by similarity to a query.

    The score is the mean of the components that matched: problem statement
    similarity, the share of query scope items found in the feature's
    in-scope list, and the share of query goals found among its goals.

    Args:
        query: Search query
        features: Complete feature snapshot
        threshold: Minimum score to include (inclusive)

    Returns:
        Matches, highest score first, ties by feature id
    """
    results = []

    for feature in features:
        result = _score_feature(query, feature)
        if result is not None and result.similarity_score >= threshold:
            results.append(result)

    results.sort(key=lambda r: (-r.similarity_score, r.feature_id))

    logger.debug(f"Similarity search over {len(features)} feature(s): {len(results)} above {threshold}")
    return results


def quick_keyword_search(keywords: Sequence[str], features: Sequence[Feature]) -> List[KeywordMatch]:
    """
    Case-insensitive substring search over name, description, problem
    statement, goals and in-scope items.

    Returns:
        Features matching at least one keyword, in input order
    """
    results = []
    wanted = [k for k in keywords if k.strip()]

    for feature in features:
        search_text = "\n".join(
            [
                feature.name,
                feature.description,
                feature.problem_statement,
                " ".join(feature.goals),
                " ".join(feature.in_scope),
            ]
        ).lower()

        matches = [k for k in wanted if k.lower() in search_text]
        if matches:
            results.append(KeywordMatch(feature_id=feature.id, feature_name=feature.name, matches=matches))

    return results
