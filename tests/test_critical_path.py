"""Tests for critical path analysis and recommendations."""

import json

import pytest

from feature_graph.exceptions import FeatureNotFoundError
from feature_graph.scheduling import (
    calculate_critical_path,
    get_dependency_graph,
    get_feature_dependencies,
    recommend_next_feature,
    validate_dependencies,
)
from feature_graph.validation import IssueCategory, IssueSeverity


class TestCalculateCriticalPath:
    """Test calculate_critical_path()."""

    def test_path_and_blocks_count(self, chain):
        result = calculate_critical_path(chain, "D")
        assert result.path_ids == ["A", "B", "C", "D"]
        assert result.total_path_length == 4
        assert [s.blocks_count for s in result.critical_path] == [3, 2, 1, 0]

    def test_parallel_work_excludes_path(self, chain, make_feature):
        features = chain + [make_feature("X"), make_feature("Y", ["X"])]
        result = calculate_critical_path(features, "D")
        assert [p.feature_id for p in result.parallel_work] == ["X"]

    def test_blocked_features_listed(self, chain):
        result = calculate_critical_path(chain, "D")
        waiting = {b.feature_id: b.waiting_on for b in result.blocked_features}
        assert waiting == {"B": ["A"], "C": ["B"], "D": ["C"]}

    def test_recommendations(self, make_feature):
        features = [
            make_feature("A", status="completed"),
            make_feature("B", ["A"], status="in-progress"),
            make_feature("C", ["A"]),
            make_feature("D", ["B", "C"]),
            make_feature("P"),
        ]
        result = calculate_critical_path(features, "D")
        assert result.path_ids == ["A", "B", "D"]
        assert result.recommendations[0].startswith("Complete 1 in-progress feature(s) on critical path: B")
        assert any(r.startswith("2 feature(s) can be worked in parallel") for r in result.recommendations)

    def test_next_on_path_recommended(self, chain):
        result = calculate_critical_path(chain, "D")
        assert "Start A (Feature A) - next on critical path" in result.recommendations

    def test_unknown_target(self, chain):
        with pytest.raises(FeatureNotFoundError):
            calculate_critical_path(chain, "NOPE")

    def test_to_dict(self, chain):
        data = calculate_critical_path(chain, "D").to_dict()
        assert data["targetFeature"]["id"] == "D"
        assert data["totalPathLength"] == 4
        assert data["criticalPath"][0] == {
            "featureId": "A",
            "name": "Feature A",
            "status": "draft",
            "blocksCount": 3,
        }


class TestRecommendNextFeature:
    """Test recommend_next_feature()."""

    def test_scores_by_impact_then_priority(self, make_feature):
        features = [
            make_feature("A", priority="low"),
            make_feature("B", ["A"]),
            make_feature("C", priority="critical"),
            make_feature("D", priority="critical"),
        ]
        result = recommend_next_feature(features)
        ids = [r.feature_id for r in result.ready_to_start]
        # A: 1*10 + 1, C and D: 0*10 + 4, tie broken by id
        assert ids == ["A", "C", "D"]
        assert result.ready_to_start[0].score == 11

    def test_in_progress_not_ready_but_listed(self, make_feature):
        features = [
            make_feature("A", status="in-progress"),
            make_feature("B", ["A"]),
            make_feature("C", ["A"], status="completed"),
        ]
        result = recommend_next_feature(features)
        assert result.ready_to_start == []
        assert result.in_progress[0].feature_id == "A"
        assert result.in_progress[0].unblocks == ["B"]
        assert result.recommendations[0] == "Prioritize completing A - it will unblock 1 feature(s)"

    def test_module_filter_keeps_cross_module_dependencies(self, make_feature):
        features = [
            make_feature("A", moduleId="core", status="completed"),
            make_feature("B", ["A"], moduleId="web"),
            make_feature("C", moduleId="core"),
        ]
        result = recommend_next_feature(features, module_id="web")
        assert [r.feature_id for r in result.ready_to_start] == ["B"]

    def test_priority_filter(self, make_feature):
        features = [make_feature("A", priority="high"), make_feature("B", priority="low")]
        result = recommend_next_feature(features, priority="high")
        assert [r.feature_id for r in result.ready_to_start] == ["A"]

    def test_max_results(self, make_feature):
        features = [make_feature(f"F{i}") for i in range(8)]
        result = recommend_next_feature(features, max_results=3)
        assert len(result.ready_to_start) == 3


class TestValidateDependencies:
    """Test validate_dependencies()."""

    def test_clean_chain(self, chain):
        report = validate_dependencies(chain)
        assert report.valid
        assert report.statistics.total_relationships == 3
        assert report.statistics.circular_dependencies == 0

    def test_errors(self, make_feature):
        features = [
            make_feature("A", ["B"]),
            make_feature("B", ["A"]),
            make_feature("C", [("C", "related")]),
            make_feature("D", ["GHOST"]),
        ]
        report = validate_dependencies(features)
        assert not report.valid
        categories = [i.category for i in report.errors]
        assert IssueCategory.CIRCULAR_DEPENDENCY in categories
        assert IssueCategory.SELF_DEPENDENCY in categories
        assert IssueCategory.INVALID_REFERENCE in categories

    def test_hard_self_edge_reported_once(self, make_feature):
        report = validate_dependencies([make_feature("A", ["A"])])
        assert [i.category for i in report.errors] == [IssueCategory.SELF_DEPENDENCY]
        assert report.statistics.circular_dependencies == 0

    def test_orphans_and_deep_nesting_are_info(self, make_feature):
        features = [make_feature("F0"), make_feature("LONE")]
        features += [make_feature(f"F{i}", [f"F{i - 1}"]) for i in range(1, 8)]
        report = validate_dependencies(features, deep_nesting_threshold=5)
        assert report.valid
        orphans = report.get_issues_by_category(IssueCategory.ORPHANED_FEATURE)
        assert [i.feature_id for i in orphans] == ["LONE"]
        deep = report.get_issues_by_category(IssueCategory.DEEP_NESTING)
        assert sorted(i.feature_id for i in deep) == ["F6", "F7"]
        assert all(i.severity == IssueSeverity.INFO for i in deep)


class TestDependencyGraph:
    """Test get_dependency_graph() and get_feature_dependencies()."""

    def test_mermaid(self, chain):
        result = get_dependency_graph(chain, highlight_critical_path="C")
        lines = result.content.splitlines()
        assert lines[0] == "graph TD"
        assert "  A -->|CRITICAL| B" in lines
        assert "  C -->|blocks| D" in lines
        assert result.dependencies == 3
        assert result.critical_path_highlighted

    def test_mermaid_ids_sanitized(self, make_feature):
        result = get_dependency_graph([make_feature("FEAT-001"), make_feature("FEAT-002", ["FEAT-001"])])
        assert "FEAT_001 -->|blocks| FEAT_002" in result.content

    def test_json_excluding_completed(self, make_feature):
        features = [make_feature("A", status="completed"), make_feature("B", ["A"])]
        result = get_dependency_graph(features, include_completed=False, format="json")
        nodes = json.loads(result.content)["nodes"]
        assert [n["id"] for n in nodes] == ["B"]
        assert result.dependencies == 0

    def test_unknown_format(self, chain):
        with pytest.raises(ValueError):
            get_dependency_graph(chain, format="dot")

    def test_feature_dependencies(self, make_feature):
        features = [make_feature("A"), make_feature("B", ["A", ("A", "related")])]
        result = get_feature_dependencies(features, "B")
        assert result.dependency_count == 2
        assert result.to_dict()["dependencies"][1] == {"featureId": "A", "type": "related"}

    def test_feature_dependencies_unknown(self, chain):
        with pytest.raises(FeatureNotFoundError):
            get_feature_dependencies(chain, "NOPE")
