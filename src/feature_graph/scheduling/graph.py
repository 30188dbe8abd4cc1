"""
Scheduling Graph

Core algorithms over the execution-dependency graph:
- Graph construction from blocks/requires edges
- Cycle detection (DFS with an explicit stack)
- Depth calculation and topological order (Kahn's algorithm)
- Critical path reconstruction
- Ready/blocked classification

The graph is rebuilt from the feature snapshot on every call and never
cached. Dangling and self references are tolerated here; validation reports
them separately.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from feature_graph.exceptions import FeatureNotFoundError
from feature_graph.logging_config import get_logger
from feature_graph.schemas import Feature

logger = get_logger(__name__)

# DFS colours
_WHITE, _GRAY, _BLACK = 0, 1, 2


@dataclass
class GraphNode:
    """
    A feature in the scheduling graph.

    Attributes:
        feature: The feature record (read-only)
        dependencies: Ids this feature waits on (hard edges, may be dangling)
        dependents: Ids waiting on this feature (only ids present in the graph)
        depth: Longest hard-dependency chain below this node, -1 if unknown
    """

    feature: Feature
    dependencies: List[str] = field(default_factory=list)
    dependents: List[str] = field(default_factory=list)
    depth: int = -1

    @property
    def id(self) -> str:
        return self.feature.id

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.feature.id,
            "name": self.feature.name,
            "status": self.feature.status.value,
            "dependencies": list(self.dependencies),
            "dependents": list(self.dependents),
            "depth": self.depth,
        }


Graph = Dict[str, GraphNode]


def build_graph(features: Iterable[Feature]) -> Graph:
    """
    Build the scheduling graph from execution dependencies.

    Only blocks/requires edges become dependencies; related edges are
    informational. The reverse index skips ids absent from the input.

    Args:
        features: Complete feature snapshot

    Returns:
        Mapping of feature id to GraphNode, in input order
    """
    graph: Graph = {}

    for feature in features:
        if feature.id in graph:
            logger.warning(f"Duplicate feature id {feature.id}, keeping first record")
            continue
        graph[feature.id] = GraphNode(
            feature=feature,
            dependencies=feature.hard_dependency_ids,
        )

    for node_id, node in graph.items():
        for dep_id in node.dependencies:
            dep_node = graph.get(dep_id)
            if dep_node is not None:
                dep_node.dependents.append(node_id)

    logger.debug(
        f"Built scheduling graph: {len(graph)} nodes, "
        f"{sum(len(n.dependencies) for n in graph.values())} hard edges"
    )
    return graph


def find_cycles(adjacency: Mapping[str, Sequence[str]]) -> List[List[str]]:
    """
    Find cycles in a directed graph given as an adjacency mapping.

    Every unvisited node starts a fresh DFS so disconnected cycles are all
    found. On a back edge the current path is sliced from the target's
    position, giving e.g. ["A", "B", "C", "A"]. Targets that are not keys of
    the mapping are skipped.

    Args:
        adjacency: node id -> ids it points at

    Returns:
        List of cycles, each a closed list of node ids
    """
    cycles: List[List[str]] = []
    color = {node_id: _WHITE for node_id in adjacency}

    for root in adjacency:
        if color[root] != _WHITE:
            continue

        color[root] = _GRAY
        path = [root]
        stack = [(root, iter(adjacency[root]))]

        while stack:
            node_id, targets = stack[-1]
            descended = False

            for target in targets:
                target_color = color.get(target)
                if target_color is None:
                    continue  # Dangling reference
                if target_color == _GRAY:
                    start = path.index(target)
                    cycles.append(path[start:] + [target])
                elif target_color == _WHITE:
                    color[target] = _GRAY
                    path.append(target)
                    stack.append((target, iter(adjacency[target])))
                    descended = True
                    break

            if not descended:
                color[node_id] = _BLACK
                path.pop()
                stack.pop()

    return cycles


def detect_cycles(graph: Graph) -> List[List[str]]:
    """
    Detect cycles in the scheduling graph.

    Returns:
        List of cycles (each a closed list of feature ids), empty if acyclic
    """
    cycles = find_cycles({node_id: node.dependencies for node_id, node in graph.items()})
    if cycles:
        logger.debug(f"Detected {len(cycles)} cycle(s) in scheduling graph")
    return cycles


def _kahn_order(graph: Graph) -> List[str]:
    """Process nodes in dependency order; nodes on or after a cycle are left out."""
    in_degree = {
        node_id: sum(1 for dep_id in node.dependencies if dep_id in graph)
        for node_id, node in graph.items()
    }
    queue = deque(node_id for node_id, degree in in_degree.items() if degree == 0)
    order: List[str] = []

    while queue:
        node_id = queue.popleft()
        order.append(node_id)

        for dependent_id in graph[node_id].dependents:
            in_degree[dependent_id] -= 1
            if in_degree[dependent_id] == 0:
                queue.append(dependent_id)

    return order


def topological_sort(graph: Graph) -> Optional[List[str]]:
    """
    Topological order of the scheduling graph (dependencies first).

    Returns:
        Sorted ids, or None if the graph contains a cycle
    """
    order = _kahn_order(graph)
    if len(order) != len(graph):
        return None
    return order


def calculate_depths(graph: Graph) -> Dict[str, int]:
    """
    Assign each node its depth: 0 without dependencies, else 1 + max depth of
    its dependencies.

    Nodes are processed in Kahn order so every dependency is final before its
    dependents. On a cyclic graph the frontier empties early and the
    remaining nodes keep depth -1; run detect_cycles() first.

    Returns:
        Mapping of id to depth for every node that could be processed
    """
    for node in graph.values():
        node.depth = -1

    depths: Dict[str, int] = {}
    for node_id in _kahn_order(graph):
        node = graph[node_id]
        dep_depths = [graph[d].depth for d in node.dependencies if d in graph]
        node.depth = 1 + max(dep_depths) if dep_depths else 0
        depths[node_id] = node.depth

    skipped = len(graph) - len(depths)
    if skipped:
        logger.debug(f"Depth undefined for {skipped} node(s) on or after a cycle")

    return depths


def find_longest_path(target_id: str, graph: Graph) -> List[str]:
    """
    Find the critical path ending at a target feature.

    Walks backward from the target, always stepping to the dependency with
    the greatest depth (ties: lexicographically smallest id), until a node
    without dependencies is reached.

    Args:
        target_id: Feature the path must end at
        graph: Scheduling graph

    Returns:
        Feature ids from root to target, inclusive

    Raises:
        FeatureNotFoundError: If target_id is not in the graph
    """
    if target_id not in graph:
        raise FeatureNotFoundError(target_id)

    if graph[target_id].depth < 0:
        calculate_depths(graph)

    path = [target_id]
    visited = {target_id}
    current = graph[target_id]

    while True:
        candidates = [
            dep_id
            for dep_id in current.dependencies
            if dep_id in graph and dep_id not in visited
        ]
        if not candidates:
            break

        best = min(candidates, key=lambda dep_id: (-graph[dep_id].depth, dep_id))
        path.append(best)
        visited.add(best)
        current = graph[best]

    path.reverse()
    return path


def get_ready_features(graph: Graph) -> List[str]:
    """
    Features that can start now.

    A feature is ready when it is not completed and every dependency exists
    and is completed.
    """
    ready = []

    for node_id, node in graph.items():
        if node.feature.is_completed:
            continue

        if all(
            dep_id in graph and graph[dep_id].feature.is_completed
            for dep_id in node.dependencies
        ):
            ready.append(node_id)

    return ready


def get_blocked_features(graph: Graph) -> Dict[str, List[str]]:
    """
    Features waiting on incomplete work.

    Returns:
        Mapping of not-completed feature id to its not-completed dependency
        ids. Dangling dependency ids count as not completed, so a feature
        waiting on an unknown id stays blocked until the reference is fixed;
        validate_dependencies reports those ids as invalid references.
    """
    blocked: Dict[str, List[str]] = {}

    for node_id, node in graph.items():
        if node.feature.is_completed:
            continue

        incomplete = [
            dep_id
            for dep_id in node.dependencies
            if dep_id not in graph or not graph[dep_id].feature.is_completed
        ]
        if incomplete:
            blocked[node_id] = incomplete

    return blocked


def count_blocked_features(feature_id: str, graph: Graph) -> int:
    """
    Count features downstream of feature_id, directly or transitively.

    Used as a prioritization signal only.
    """
    if feature_id not in graph:
        return 0

    seen = set()
    queue = deque(graph[feature_id].dependents)

    while queue:
        node_id = queue.popleft()
        if node_id in seen or node_id == feature_id:
            continue
        seen.add(node_id)
        queue.extend(graph[node_id].dependents)

    return len(seen)


def would_create_cycle(
    features: Sequence[Feature], feature_id: str, depends_on_id: str
) -> Optional[List[str]]:
    """
    Check whether a new hard dependency would close a cycle.

    Args:
        features: Complete feature snapshot
        feature_id: Feature that would gain the dependency
        depends_on_id: Feature it would depend on

    Returns:
        The cycle the edge would create (starting and ending at feature_id),
        or None if the edge is safe

    Raises:
        FeatureNotFoundError: If either id is unknown
    """
    graph = build_graph(features)
    for fid in (feature_id, depends_on_id):
        if fid not in graph:
            raise FeatureNotFoundError(fid)

    if feature_id == depends_on_id:
        return [feature_id, feature_id]

    # BFS along dependencies from the new target back to feature_id
    parents: Dict[str, Optional[str]] = {depends_on_id: None}
    queue = deque([depends_on_id])

    while queue:
        node_id = queue.popleft()
        if node_id == feature_id:
            chain = []
            cursor: Optional[str] = node_id
            while cursor is not None:
                chain.append(cursor)
                cursor = parents[cursor]
            # chain runs feature_id ... depends_on_id; the new edge closes it
            return [feature_id] + list(reversed(chain))

        for dep_id in graph[node_id].dependencies:
            if dep_id in graph and dep_id not in parents:
                parents[dep_id] = node_id
                queue.append(dep_id)

    return None
