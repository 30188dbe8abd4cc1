"""
Critical Path Analysis

Combines the scheduling graph algorithms with status and priority to answer
work-planning questions:
- What is the critical path to a target feature?
- What should be worked on next?
- Is the execution-dependency graph sound?
- What does the dependency graph look like (Mermaid / JSON)?

Usage:
    from feature_graph.scheduling import calculate_critical_path

    result = calculate_critical_path(features, "FEAT-010")
    for step in result.critical_path:
        print(step.feature_id, step.blocks_count)
"""

import json
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from feature_graph.exceptions import FeatureNotFoundError
from feature_graph.logging_config import get_logger
from feature_graph.schemas import (
    ExecutionDependency,
    Feature,
    FeatureStatus,
    Priority,
)
from feature_graph.scheduling.graph import (
    Graph,
    build_graph,
    calculate_depths,
    count_blocked_features,
    detect_cycles,
    find_longest_path,
    get_blocked_features,
    get_ready_features,
)
from feature_graph.validation.issues import (
    IssueCategory,
    IssueSeverity,
    ValidationIssue,
    ValidationReport,
    ValidationStatistics,
)

logger = get_logger(__name__)

DEFAULT_DEEP_NESTING_THRESHOLD = 5
DEFAULT_MAX_RESULTS = 5

# Mermaid fill colours by status
STATUS_COLORS = {
    FeatureStatus.COMPLETED: "#90EE90",
    FeatureStatus.IN_PROGRESS: "#FFD700",
    FeatureStatus.IN_REVIEW: "#87CEEB",
}
DEFAULT_COLOR = "#D3D3D3"


@dataclass
class PathStep:
    """A feature on the critical path."""

    feature_id: str
    name: str
    status: str
    blocks_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "featureId": self.feature_id,
            "name": self.name,
            "status": self.status,
            "blocksCount": self.blocks_count,
        }


@dataclass
class BlockedFeature:
    """A feature waiting on incomplete dependencies."""

    feature_id: str
    name: str
    waiting_on: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "featureId": self.feature_id,
            "name": self.name,
            "waitingOn": list(self.waiting_on),
        }


@dataclass
class ParallelWork:
    """A ready feature that is not on the critical path."""

    feature_id: str
    name: str
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"featureId": self.feature_id, "name": self.name, "reason": self.reason}


@dataclass
class CriticalPathResult:
    """Critical path to a target feature plus surrounding work."""

    target_id: str
    target_name: str
    target_status: str
    critical_path: List[PathStep] = field(default_factory=list)
    parallel_work: List[ParallelWork] = field(default_factory=list)
    blocked_features: List[BlockedFeature] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    @property
    def total_path_length(self) -> int:
        return len(self.critical_path)

    @property
    def path_ids(self) -> List[str]:
        return [step.feature_id for step in self.critical_path]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "targetFeature": {
                "id": self.target_id,
                "name": self.target_name,
                "status": self.target_status,
            },
            "criticalPath": [s.to_dict() for s in self.critical_path],
            "totalPathLength": self.total_path_length,
            "parallelWorkAvailable": [p.to_dict() for p in self.parallel_work],
            "blockedFeatures": [b.to_dict() for b in self.blocked_features],
            "recommendations": list(self.recommendations),
        }


@dataclass
class ReadyFeature:
    """A ready feature scored for recommendation."""

    feature_id: str
    name: str
    module_id: str
    priority: str
    blocks_count: int
    score: int
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "featureId": self.feature_id,
            "name": self.name,
            "moduleId": self.module_id,
            "priority": self.priority,
            "blocksCount": self.blocks_count,
            "score": self.score,
            "reason": self.reason,
        }


@dataclass
class InProgressFeature:
    """An in-progress feature and what finishing it would unblock."""

    feature_id: str
    name: str
    unblocks: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"featureId": self.feature_id, "name": self.name, "unblocks": list(self.unblocks)}


@dataclass
class NextFeatureResult:
    """Ranked recommendations for what to work on next."""

    ready_to_start: List[ReadyFeature] = field(default_factory=list)
    blocked_features: List[BlockedFeature] = field(default_factory=list)
    in_progress: List[InProgressFeature] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "readyToStart": [r.to_dict() for r in self.ready_to_start],
            "blockedFeatures": [b.to_dict() for b in self.blocked_features],
            "inProgress": [i.to_dict() for i in self.in_progress],
            "recommendations": list(self.recommendations),
        }


@dataclass
class DependencyGraphResult:
    """Rendered dependency graph."""

    format: str
    content: str
    features: int
    dependencies: int
    critical_path_highlighted: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": self.format,
            "content": self.content,
            "features": self.features,
            "dependencies": self.dependencies,
            "criticalPathHighlighted": self.critical_path_highlighted,
        }


@dataclass
class FeatureDependencies:
    """Declared execution dependencies of one feature."""

    feature_id: str
    name: str
    status: str
    dependencies: List[ExecutionDependency]

    @property
    def dependency_count(self) -> int:
        return len(self.dependencies)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feature": {"id": self.feature_id, "name": self.name, "status": self.status},
            "dependencies": [
                d.model_dump(mode="json", by_alias=True, exclude_none=True)
                for d in self.dependencies
            ],
            "dependencyCount": self.dependency_count,
        }


def _blocked_details(graph: Graph, blocked: Dict[str, List[str]]) -> List[BlockedFeature]:
    return [
        BlockedFeature(feature_id=fid, name=graph[fid].feature.name, waiting_on=deps)
        for fid, deps in blocked.items()
    ]


def calculate_critical_path(features: Sequence[Feature], target_id: str) -> CriticalPathResult:
    """
    Calculate the critical path to reach a target feature.

    Args:
        features: Complete feature snapshot
        target_id: Feature to reach

    Returns:
        CriticalPathResult with path, parallel work, blocked features and
        recommendations

    Raises:
        FeatureNotFoundError: If target_id is not in the snapshot
    """
    graph = build_graph(features)
    target = graph.get(target_id)
    if target is None:
        raise FeatureNotFoundError(target_id)

    calculate_depths(graph)
    path = find_longest_path(target_id, graph)
    ready = get_ready_features(graph)
    blocked = get_blocked_features(graph)

    on_path = set(path)
    parallel = [
        ParallelWork(
            feature_id=fid,
            name=graph[fid].feature.name,
            reason="Can be worked on in parallel (no dependencies on critical path)",
        )
        for fid in ready
        if fid not in on_path and fid != target_id
    ]

    steps = [
        PathStep(
            feature_id=fid,
            name=graph[fid].feature.name,
            status=graph[fid].feature.status.value,
            blocks_count=count_blocked_features(fid, graph),
        )
        for fid in path
    ]

    recommendations: List[str] = []

    in_progress_on_path = [
        fid for fid in path if graph[fid].feature.status == FeatureStatus.IN_PROGRESS
    ]
    if in_progress_on_path:
        recommendations.append(
            f"Complete {len(in_progress_on_path)} in-progress feature(s) on critical path: "
            f"{', '.join(in_progress_on_path)}"
        )

    ready_set = set(ready)
    next_on_path = next(
        (
            fid
            for fid in path
            if fid in ready_set and graph[fid].feature.status != FeatureStatus.IN_PROGRESS
        ),
        None,
    )
    if next_on_path:
        recommendations.append(
            f"Start {next_on_path} ({graph[next_on_path].feature.name}) - next on critical path"
        )

    if parallel:
        recommendations.append(
            f"{len(parallel)} feature(s) can be worked in parallel: "
            f"{', '.join(p.feature_id for p in parallel[:3])}"
        )

    logger.debug(f"Critical path to {target_id}: {' -> '.join(path)}")

    return CriticalPathResult(
        target_id=target_id,
        target_name=target.feature.name,
        target_status=target.feature.status.value,
        critical_path=steps,
        parallel_work=parallel,
        blocked_features=_blocked_details(graph, blocked),
        recommendations=recommendations,
    )


def recommend_next_feature(
    features: Sequence[Feature],
    module_id: Optional[str] = None,
    priority: Optional[Union[Priority, str]] = None,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> NextFeatureResult:
    """
    Recommend what to work on next.

    Ready features are scored by how much downstream work they unblock
    (x10) plus their priority rank. The graph is always built from the full
    snapshot so dependencies outside the filter still count; the filters
    only narrow which features are reported.

    Args:
        features: Complete feature snapshot
        module_id: Only report features of this module
        priority: Only report features of this priority
        max_results: Maximum ready/blocked entries to return

    Returns:
        NextFeatureResult
    """
    priority = Priority(priority) if priority else None
    graph = build_graph(features)

    def selected(fid: str) -> bool:
        feature = graph[fid].feature
        if module_id and feature.module_id != module_id:
            return False
        if priority and feature.priority != priority:
            return False
        return True

    scored: List[ReadyFeature] = []
    for fid in get_ready_features(graph):
        feature = graph[fid].feature
        if not selected(fid) or feature.status == FeatureStatus.IN_PROGRESS:
            continue

        blocks_count = count_blocked_features(fid, graph)
        scored.append(
            ReadyFeature(
                feature_id=fid,
                name=feature.name,
                module_id=feature.module_id,
                priority=feature.priority.value,
                blocks_count=blocks_count,
                score=blocks_count * 10 + feature.priority.rank,
                reason=(
                    f"Unblocks {blocks_count} downstream feature(s)"
                    if blocks_count > 0
                    else "Ready to start (no blocking dependencies)"
                ),
            )
        )
    scored.sort(key=lambda r: (-r.score, r.feature_id))
    scored = scored[:max_results]

    blocked = {
        fid: deps for fid, deps in get_blocked_features(graph).items() if selected(fid)
    }
    blocked_details = _blocked_details(graph, blocked)[:max_results]

    in_progress = [
        InProgressFeature(
            feature_id=fid,
            name=node.feature.name,
            unblocks=[d for d in node.dependents if not graph[d].feature.is_completed],
        )
        for fid, node in graph.items()
        if node.feature.status == FeatureStatus.IN_PROGRESS and selected(fid)
    ]

    recommendations: List[str] = []

    high_impact = next((f for f in in_progress if f.unblocks), None)
    if high_impact:
        recommendations.append(
            f"Prioritize completing {high_impact.feature_id} - "
            f"it will unblock {len(high_impact.unblocks)} feature(s)"
        )

    if scored:
        top = scored[0]
        recommendations.append(f"Start {top.feature_id} ({top.name}) - {top.reason.lower()}")

    if len(scored) > 1:
        recommendations.append(
            f"{len(scored)} feature(s) ready to start - consider team capacity for parallel work"
        )

    if blocked_details:
        recommendations.append(
            f"{len(blocked_details)} feature(s) currently blocked - focus on unblocking them"
        )

    return NextFeatureResult(
        ready_to_start=scored,
        blocked_features=blocked_details,
        in_progress=in_progress,
        recommendations=recommendations,
    )


def validate_dependencies(
    features: Sequence[Feature],
    deep_nesting_threshold: int = DEFAULT_DEEP_NESTING_THRESHOLD,
) -> ValidationReport:
    """
    Validate the execution-dependency graph.

    Errors: circular dependencies, self-dependencies, references to unknown
    features. Info: features with no hard edges at all, and chains deeper
    than deep_nesting_threshold.

    Args:
        features: Complete feature snapshot
        deep_nesting_threshold: Depth above which a chain is flagged

    Returns:
        ValidationReport (never raises on malformed input)
    """
    graph = build_graph(features)
    issues: List[ValidationIssue] = []

    # Self-loops are reported as self-dependency below
    cycles = [cycle for cycle in detect_cycles(graph) if len(cycle) > 2]
    for cycle in cycles:
        issues.append(
            ValidationIssue(
                severity=IssueSeverity.ERROR,
                category=IssueCategory.CIRCULAR_DEPENDENCY,
                feature_ids=cycle,
                message=f"Circular dependency detected: {' -> '.join(cycle)}",
                recommendation="Features form a dependency cycle which makes them impossible to complete; "
                "remove one of the edges or change it to 'related'",
            )
        )

    for node_id, node in graph.items():
        for dep in node.feature.execution_dependencies:
            if dep.feature_id == node_id:
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.ERROR,
                        category=IssueCategory.SELF_DEPENDENCY,
                        feature_ids=[node_id],
                        message=f"{node_id} depends on itself",
                        recommendation="Remove the self-dependency; a feature cannot depend on itself",
                    )
                )
            elif dep.feature_id not in graph:
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.ERROR,
                        category=IssueCategory.INVALID_REFERENCE,
                        feature_ids=[node_id, dep.feature_id],
                        message=f"{node_id} depends on non-existent feature {dep.feature_id}",
                        recommendation=f"Remove the dependency or create {dep.feature_id}",
                    )
                )

    orphaned = 0
    for node_id, node in graph.items():
        if not node.dependencies and not node.dependents:
            orphaned += 1
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.INFO,
                    category=IssueCategory.ORPHANED_FEATURE,
                    feature_ids=[node_id],
                    message=f"{node_id} ({node.feature.name}) has no dependencies and no dependents",
                    recommendation="Confirm the feature is truly independent of other work",
                )
            )

    for node_id, depth in calculate_depths(graph).items():
        if depth > deep_nesting_threshold:
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.INFO,
                    category=IssueCategory.DEEP_NESTING,
                    feature_ids=[node_id],
                    message=f"{node_id} has a deep dependency chain (depth: {depth})",
                    recommendation="Consider splitting the chain or running parts in parallel",
                )
            )

    statistics = ValidationStatistics(
        total_features=len(graph),
        total_relationships=sum(len(n.feature.execution_dependencies) for n in graph.values()),
        features_with_relationships=sum(
            1 for n in graph.values() if n.feature.execution_dependencies
        ),
        orphaned_features=orphaned,
        circular_dependencies=len(cycles),
    )

    return ValidationReport(issues=issues, statistics=statistics)


def _mermaid_id(feature_id: str) -> str:
    return re.sub(r"[^A-Za-z0-9_]", "_", feature_id)


def get_dependency_graph(
    features: Sequence[Feature],
    module_id: Optional[str] = None,
    highlight_critical_path: Optional[str] = None,
    include_completed: bool = True,
    format: str = "mermaid",
) -> DependencyGraphResult:
    """
    Render the dependency graph as Mermaid or JSON.

    Args:
        features: Complete feature snapshot
        module_id: Only include features of this module
        highlight_critical_path: Target feature whose critical path is highlighted
        include_completed: Include completed features
        format: "mermaid" or "json"

    Returns:
        DependencyGraphResult

    Raises:
        FeatureNotFoundError: If the highlight target is not in the rendered set
        ValueError: If format is unknown
    """
    if format not in ("mermaid", "json"):
        raise ValueError(f"Unknown graph format: {format}")

    selected = [
        f
        for f in features
        if (not module_id or f.module_id == module_id)
        and (include_completed or not f.is_completed)
    ]
    graph = build_graph(selected)

    critical_ids: List[str] = []
    if highlight_critical_path:
        if highlight_critical_path not in graph:
            raise FeatureNotFoundError(highlight_critical_path)
        calculate_depths(graph)
        critical_ids = find_longest_path(highlight_critical_path, graph)
    critical = set(critical_ids)

    edge_count = sum(1 for n in graph.values() for d in n.dependencies if d in graph)

    if format == "json":
        nodes = [
            {
                "id": fid,
                "name": node.feature.name,
                "status": node.feature.status.value,
                "dependencies": list(node.dependencies),
                "dependents": list(node.dependents),
                "onCriticalPath": fid in critical,
            }
            for fid, node in graph.items()
        ]
        return DependencyGraphResult(
            format="json",
            content=json.dumps({"nodes": nodes}, indent=2),
            features=len(graph),
            dependencies=edge_count,
            critical_path_highlighted=bool(critical_ids),
        )

    lines = ["graph TD"]

    for fid, node in graph.items():
        label = f"{fid}: {node.feature.name}<br/>{node.feature.status.value}"
        lines.append(f'  {_mermaid_id(fid)}["{label}"]')

    for fid, node in graph.items():
        for dep_id in node.dependencies:
            if dep_id not in graph:
                continue
            edge_label = "|CRITICAL|" if fid in critical and dep_id in critical else "|blocks|"
            lines.append(f"  {_mermaid_id(dep_id)} -->{edge_label} {_mermaid_id(fid)}")

    for fid, node in graph.items():
        color = STATUS_COLORS.get(node.feature.status, DEFAULT_COLOR)
        if fid in critical:
            lines.append(f"  style {_mermaid_id(fid)} fill:{color},stroke:#FF0000,stroke-width:3px")
        else:
            lines.append(f"  style {_mermaid_id(fid)} fill:{color}")

    return DependencyGraphResult(
        format="mermaid",
        content="\n".join(lines),
        features=len(graph),
        dependencies=edge_count,
        critical_path_highlighted=bool(critical_ids),
    )


def get_feature_dependencies(features: Sequence[Feature], feature_id: str) -> FeatureDependencies:
    """
    Get the declared execution dependencies of one feature.

    Raises:
        FeatureNotFoundError: If feature_id is not in the snapshot
    """
    feature = next((f for f in features if f.id == feature_id), None)
    if feature is None:
        raise FeatureNotFoundError(feature_id)

    return FeatureDependencies(
        feature_id=feature.id,
        name=feature.name,
        status=feature.status.value,
        dependencies=list(feature.execution_dependencies),
    )
