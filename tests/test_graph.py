"""Tests for the scheduling graph algorithms."""

import pytest

from feature_graph.exceptions import FeatureNotFoundError
from feature_graph.scheduling.graph import (
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


def _rotations(cycle):
    body = cycle[:-1]
    return [body[i:] + body[:i] + [body[i]] for i in range(len(body))]


class TestBuildGraph:
    """Test graph construction from execution dependencies."""

    def test_hard_edges_become_dependencies(self, make_feature):
        graph = build_graph([
            make_feature("A"),
            make_feature("B", [("A", "requires")]),
            make_feature("C", ["A", ("B", "related")]),
        ])
        assert graph["B"].dependencies == ["A"]
        assert graph["C"].dependencies == ["A"]
        assert graph["A"].dependents == ["B", "C"]
        assert graph["B"].dependents == []

    def test_duplicate_edges_collapse(self, make_feature):
        graph = build_graph([make_feature("A"), make_feature("B", ["A", ("A", "requires")])])
        assert graph["B"].dependencies == ["A"]
        assert graph["A"].dependents == ["B"]

    def test_dangling_reference_tolerated(self, make_feature):
        graph = build_graph([make_feature("A", ["GHOST"])])
        assert graph["A"].dependencies == ["GHOST"]
        assert "GHOST" not in graph

    def test_duplicate_feature_id_keeps_first(self, make_feature):
        graph = build_graph([make_feature("A", name="first"), make_feature("A", name="second")])
        assert graph["A"].feature.name == "first"

    def test_node_to_dict(self, make_feature):
        graph = build_graph([make_feature("A"), make_feature("B", ["A"])])
        data = graph["B"].to_dict()
        assert data["id"] == "B"
        assert data["dependencies"] == ["A"]
        assert data["depth"] == -1


class TestCycles:
    """Test cycle detection."""

    def test_three_cycle(self, make_feature):
        graph = build_graph([
            make_feature("A", ["B"]),
            make_feature("B", ["C"]),
            make_feature("C", ["A"]),
        ])
        cycles = detect_cycles(graph)
        assert len(cycles) == 1
        assert cycles[0] in _rotations(["A", "B", "C", "A"])

    def test_depths_terminate_on_cycle(self, make_feature):
        graph = build_graph([
            make_feature("A", ["B"]),
            make_feature("B", ["C"]),
            make_feature("C", ["A"]),
        ])
        depths = calculate_depths(graph)
        assert depths == {}
        assert all(node.depth == -1 for node in graph.values())

    def test_acyclic_has_no_cycles(self, chain, diamond):
        assert detect_cycles(build_graph(chain)) == []
        assert detect_cycles(build_graph(diamond)) == []

    def test_back_edge_closes_one_cycle(self, make_feature):
        features = [
            make_feature("A", ["D"]),
            make_feature("B", ["A"]),
            make_feature("C", ["B"]),
            make_feature("D", ["C"]),
        ]
        cycles = detect_cycles(build_graph(features))
        assert len(cycles) == 1
        cycle = cycles[0]
        edges = list(zip(cycle, cycle[1:]))
        assert ("A", "D") in edges

    def test_self_dependency_is_cycle(self, make_feature):
        cycles = detect_cycles(build_graph([make_feature("A", ["A"])]))
        assert cycles == [["A", "A"]]

    def test_disconnected_cycles_all_found(self):
        cycles = find_cycles({"A": ["B"], "B": ["A"], "X": ["Y"], "Y": ["X"]})
        assert len(cycles) == 2

    def test_dangling_targets_skipped(self):
        assert find_cycles({"A": ["MISSING"]}) == []


class TestDepths:
    """Test depth calculation and topological order."""

    def test_chain_depths(self, chain):
        assert calculate_depths(build_graph(chain)) == {"A": 0, "B": 1, "C": 2, "D": 3}

    def test_diamond_depths(self, diamond):
        depths = calculate_depths(build_graph(diamond))
        assert depths["D"] == 2
        assert depths["B"] == depths["C"] == 1

    def test_dangling_dependency_ignored(self, make_feature):
        depths = calculate_depths(build_graph([make_feature("A", ["GHOST"])]))
        assert depths == {"A": 0}

    def test_topological_sort(self, chain):
        assert topological_sort(build_graph(chain)) == ["A", "B", "C", "D"]

    def test_topological_sort_cyclic(self, make_feature):
        graph = build_graph([make_feature("A", ["B"]), make_feature("B", ["A"])])
        assert topological_sort(graph) is None


class TestLongestPath:
    """Test critical path reconstruction."""

    def test_chain(self, chain):
        assert find_longest_path("D", build_graph(chain)) == ["A", "B", "C", "D"]

    def test_diamond_tie_breaks_on_smallest_id(self, diamond):
        path = find_longest_path("D", build_graph(diamond))
        assert path == ["A", "B", "D"]

    def test_prefers_deeper_dependency(self, make_feature):
        graph = build_graph([
            make_feature("A"),
            make_feature("B", ["A"]),
            make_feature("Z"),
            make_feature("T", ["Z", "B"]),
        ])
        assert find_longest_path("T", graph) == ["A", "B", "T"]

    def test_root_target(self, chain):
        assert find_longest_path("A", build_graph(chain)) == ["A"]

    def test_unknown_target(self, chain):
        with pytest.raises(FeatureNotFoundError) as exc_info:
            find_longest_path("NOPE", build_graph(chain))
        assert exc_info.value.feature_id == "NOPE"

    def test_terminates_on_cycle(self, make_feature):
        graph = build_graph([
            make_feature("A", ["B"]),
            make_feature("B", ["A"]),
            make_feature("T", ["A"]),
        ])
        path = find_longest_path("T", graph)
        assert path[-1] == "T"
        assert len(path) == len(set(path))


class TestReadiness:
    """Test ready/blocked classification."""

    def test_ready_features(self, make_feature):
        graph = build_graph([
            make_feature("A", status="completed"),
            make_feature("B", ["A"]),
            make_feature("C", ["B"]),
            make_feature("D"),
        ])
        assert get_ready_features(graph) == ["B", "D"]

    def test_ready_never_completed_or_waiting(self, make_feature):
        graph = build_graph([
            make_feature("A", status="completed"),
            make_feature("B", ["A"], status="in-progress"),
            make_feature("C", ["B"]),
            make_feature("E", ["GHOST"]),
        ])
        ready = get_ready_features(graph)
        assert "A" not in ready
        assert "C" not in ready
        assert "E" not in ready
        for fid in ready:
            assert all(graph[d].feature.is_completed for d in graph[fid].dependencies)

    def test_blocked_features(self, make_feature):
        graph = build_graph([
            make_feature("A", status="completed"),
            make_feature("B"),
            make_feature("C", ["A", "B"]),
            make_feature("D", ["GHOST"]),
            make_feature("E", ["B"], status="completed"),
        ])
        assert get_blocked_features(graph) == {"C": ["B"], "D": ["GHOST"]}

    def test_count_blocked_transitive(self, chain, diamond):
        assert count_blocked_features("A", build_graph(chain)) == 3
        assert count_blocked_features("A", build_graph(diamond)) == 3
        assert count_blocked_features("D", build_graph(chain)) == 0
        assert count_blocked_features("GHOST", build_graph(chain)) == 0


class TestWouldCreateCycle:
    """Test the edge pre-check."""

    def test_safe_edge(self, chain, make_feature):
        assert would_create_cycle(chain + [make_feature("E")], "E", "D") is None

    def test_closing_edge(self, chain):
        assert would_create_cycle(chain, "A", "D") == ["A", "D", "C", "B", "A"]

    def test_self_edge(self, chain):
        assert would_create_cycle(chain, "B", "B") == ["B", "B"]

    def test_unknown_id(self, chain):
        with pytest.raises(FeatureNotFoundError):
            would_create_cycle(chain, "A", "NOPE")
