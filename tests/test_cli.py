"""Tests for the feature-graph CLI."""

import json
import subprocess
import sys

import pytest


def run_cli(*args, cwd=None):
    return subprocess.run(
        [sys.executable, "-m", "feature_graph.cli", *args],
        capture_output=True,
        text=True,
        cwd=cwd,
    )


@pytest.fixture
def contracts_dir(tmp_path):
    features = tmp_path / "contracts" / "features"
    features.mkdir(parents=True)
    records = [
        {"id": "FEAT-001", "name": "Cart", "status": "completed", "capabilityTags": ["cart", "payments"]},
        {
            "id": "FEAT-002",
            "name": "Checkout",
            "problemStatement": "Customers cannot pay for items in their shopping cart",
            "capabilityTags": ["cart", "payments", "checkout"],
            "outOfScope": ["invoicing"],
            "executionDependencies": [{"featureId": "FEAT-001", "type": "requires"}],
        },
        {
            "id": "FEAT-003",
            "name": "Receipts",
            "executionDependencies": [{"featureId": "FEAT-002", "type": "blocks"}],
        },
    ]
    for record in records:
        (features / f"{record['id']}.json").write_text(json.dumps(record))
    return tmp_path / "contracts"


class TestCLI:
    """Test CLI entry points and basic functionality."""

    def test_help(self):
        """Test --help flag."""
        result = run_cli("--help")
        assert result.returncode == 0
        assert "Feature Graph" in result.stdout
        for command in ("validate", "check-deps", "critical-path", "next", "overlap", "search"):
            assert command in result.stdout

    def test_critical_path_help(self):
        """Test critical-path --help."""
        result = run_cli("critical-path", "--help")
        assert result.returncode == 0
        assert "TARGET" in result.stdout


class TestCommands:
    """Test commands against a contracts directory."""

    def test_critical_path_json(self, contracts_dir, tmp_path):
        result = run_cli("--contracts-dir", str(contracts_dir), "--json", "critical-path", "FEAT-003", cwd=tmp_path)
        assert result.returncode == 0, result.stderr
        data = json.loads(result.stdout)
        assert [s["featureId"] for s in data["criticalPath"]] == ["FEAT-001", "FEAT-002", "FEAT-003"]

    def test_unknown_target_exit_code(self, contracts_dir, tmp_path):
        result = run_cli("--contracts-dir", str(contracts_dir), "critical-path", "FEAT-404", cwd=tmp_path)
        assert result.returncode == 12
        assert "FEAT-404" in result.stderr

    def test_missing_contracts_dir(self, tmp_path):
        result = run_cli("--contracts-dir", str(tmp_path / "nowhere"), "next", cwd=tmp_path)
        assert result.returncode == 11

    def test_next_json(self, contracts_dir, tmp_path):
        result = run_cli("--contracts-dir", str(contracts_dir), "--json", "next", cwd=tmp_path)
        assert result.returncode == 0, result.stderr
        data = json.loads(result.stdout)
        assert [r["featureId"] for r in data["readyToStart"]] == ["FEAT-002"]

    def test_check_deps_valid(self, contracts_dir, tmp_path):
        result = run_cli("--contracts-dir", str(contracts_dir), "--json", "check-deps", cwd=tmp_path)
        assert result.returncode == 0, result.stderr
        assert json.loads(result.stdout)["valid"] is True

    def test_next_zero_max_results(self, contracts_dir, tmp_path):
        result = run_cli("--contracts-dir", str(contracts_dir), "--json", "next", "--max-results", "0", cwd=tmp_path)
        assert result.returncode == 0, result.stderr
        assert json.loads(result.stdout)["readyToStart"] == []

    def test_check_deps_zero_deep_nesting(self, contracts_dir, tmp_path):
        result = run_cli(
            "--contracts-dir", str(contracts_dir), "--json", "check-deps", "--deep-nesting", "0", cwd=tmp_path
        )
        assert result.returncode == 0, result.stderr
        deep = [i["featureIds"] for i in json.loads(result.stdout)["issues"] if i["category"] == "deep-nesting"]
        assert sorted(deep) == [["FEAT-002"], ["FEAT-003"]]

    def test_validate_invalid_exits_one(self, contracts_dir, tmp_path):
        (contracts_dir / "features" / "FEAT-009.json").write_text(json.dumps({
            "id": "FEAT-009",
            "semanticRelationships": [{"featureId": "GHOST", "relationship": "extends"}],
        }))
        result = run_cli("--contracts-dir", str(contracts_dir), "--json", "validate", cwd=tmp_path)
        assert result.returncode == 1
        assert json.loads(result.stdout)["valid"] is False

    def test_validate_without_modules_dir(self, contracts_dir, tmp_path):
        for fid, module_id, rels in (
            ("FEAT-010", "MOD-A", [{"featureId": "FEAT-011", "relationship": "integrates-with"}]),
            ("FEAT-011", "MOD-B", [{"featureId": "FEAT-010", "relationship": "integrates-with"}]),
        ):
            (contracts_dir / "features" / f"{fid}.json").write_text(json.dumps({
                "id": fid,
                "moduleId": module_id,
                "semanticRelationships": rels,
            }))
        result = run_cli("--contracts-dir", str(contracts_dir), "--json", "validate", cwd=tmp_path)
        assert result.returncode == 0, result.stderr
        data = json.loads(result.stdout)
        assert [i for i in data["issues"] if i["category"] == "module-boundary"] == []

    def test_check_edge_cycle(self, contracts_dir, tmp_path):
        result = run_cli("--contracts-dir", str(contracts_dir), "--json", "check-edge", "FEAT-001", "FEAT-003", cwd=tmp_path)
        assert result.returncode == 1
        assert json.loads(result.stdout)["cycle"] == ["FEAT-001", "FEAT-003", "FEAT-002", "FEAT-001"]

    def test_graph_mermaid(self, contracts_dir, tmp_path):
        result = run_cli("--contracts-dir", str(contracts_dir), "graph", cwd=tmp_path)
        assert result.returncode == 0, result.stderr
        assert result.stdout.startswith("graph TD")

    def test_overlap(self, contracts_dir, tmp_path):
        candidate = tmp_path / "candidate.yaml"
        candidate.write_text("capabilityTags: [cart, payments, checkout]\ninScope: [invoicing]\n")
        result = run_cli("--contracts-dir", str(contracts_dir), "--json", "overlap", str(candidate), cwd=tmp_path)
        assert result.returncode == 0, result.stderr
        data = json.loads(result.stdout)
        assert data[0]["featureId"] == "FEAT-002"
        assert data[0]["severity"] == "high"

    def test_search_requires_query(self, contracts_dir, tmp_path):
        result = run_cli("--contracts-dir", str(contracts_dir), "search", cwd=tmp_path)
        assert result.returncode == 2

    def test_keywords(self, contracts_dir, tmp_path):
        result = run_cli("--contracts-dir", str(contracts_dir), "--json", "keywords", "receipts", cwd=tmp_path)
        assert result.returncode == 0, result.stderr
        assert [r["featureId"] for r in json.loads(result.stdout)] == ["FEAT-003"]
