"""
Duplicate-risk scoring and similarity search.
"""

from .checker import (
    OverlapCandidate,
    OverlapResult,
    OverlapSeverity,
    check_overlap,
    find_scope_conflicts,
)
from .search import (
    KeywordMatch,
    SearchQuery,
    SimilarityResult,
    quick_keyword_search,
    search_similar_features,
)
from .text import (
    STOP_WORDS,
    calculate_text_similarity,
    extract_keywords,
    jaccard_similarity,
)

__all__ = [
    # Overlap
    "OverlapCandidate",
    "OverlapResult",
    "OverlapSeverity",
    "check_overlap",
    "find_scope_conflicts",
    # Search
    "KeywordMatch",
    "SearchQuery",
    "SimilarityResult",
    "quick_keyword_search",
    "search_similar_features",
    # Text
    "STOP_WORDS",
    "calculate_text_similarity",
    "extract_keywords",
    "jaccard_similarity",
]
