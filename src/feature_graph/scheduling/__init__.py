"""
Scheduling analysis over execution dependencies.
"""

from .critical_path import (
    CriticalPathResult,
    DependencyGraphResult,
    FeatureDependencies,
    NextFeatureResult,
    calculate_critical_path,
    get_dependency_graph,
    get_feature_dependencies,
    recommend_next_feature,
    validate_dependencies,
)
from .graph import (
    Graph,
    GraphNode,
    build_graph,
    calculate_depths,
    count_blocked_features,
    detect_cycles,
    find_cycles,
    find_longest_path,
    get_blocked_features,
    get_ready_features,
    topological_sort,
    would_create_cycle,
)

__all__ = [
    # Graph
    "Graph",
    "GraphNode",
    "build_graph",
    "calculate_depths",
    "count_blocked_features",
    "detect_cycles",
    "find_cycles",
    "find_longest_path",
    "get_blocked_features",
    "get_ready_features",
    "topological_sort",
    "would_create_cycle",
    # Critical path
    "CriticalPathResult",
    "DependencyGraphResult",
    "FeatureDependencies",
    "NextFeatureResult",
    "calculate_critical_path",
    "get_dependency_graph",
    "get_feature_dependencies",
    "recommend_next_feature",
    "validate_dependencies",
]
