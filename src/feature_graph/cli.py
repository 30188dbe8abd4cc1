"""
Feature Graph Command Line Interface

Main entry point for the feature-graph CLI. Loads a snapshot from the
contracts directory, runs one analysis and renders the result.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
from pydantic import ValidationError
from rich.console import Console

from feature_graph.config import get_config
from feature_graph.exceptions import ContractLoadError, FeatureGraphError, get_error_code
from feature_graph.logging_config import setup_logging
from feature_graph.overlap import (
    OverlapCandidate,
    SearchQuery,
    check_overlap,
    quick_keyword_search,
    search_similar_features,
)
from feature_graph.scheduling import (
    calculate_critical_path,
    get_dependency_graph,
    get_feature_dependencies,
    recommend_next_feature,
    validate_dependencies,
    would_create_cycle,
)
from feature_graph.schemas import Feature, Module, Priority
from feature_graph.store import ContractStore, load_candidate
from feature_graph.ui import ReportUI
from feature_graph.validation import validate_relationship_graph

console = Console()
err_console = Console(stderr=True)


class Context:
    """Options shared by every command."""

    def __init__(self, contracts_dir: Optional[str], config_path: Optional[str], as_json: bool):
        self.config = get_config(Path(config_path) if config_path else None)
        self.contracts_dir = Path(contracts_dir) if contracts_dir else self.config.get_path("contracts.dir")
        self.as_json = as_json
        self.ui = ReportUI(console)

    @property
    def store(self) -> ContractStore:
        return ContractStore(self.contracts_dir)

    def load_features(self) -> List[Feature]:
        return self.store.load_features()

    def load_modules(self) -> Optional[List[Module]]:
        return self.store.load_modules()

    def emit_json(self, data: Any):
        click.echo(json.dumps(data, indent=2))


def _fail(error: FeatureGraphError):
    """Print a library error and exit with its code."""
    err_console.print(f"[red]Error:[/red] {error}")
    sys.exit(get_error_code(error))


@click.group()
@click.version_option(package_name="feature-graph")
@click.option("--contracts-dir", type=click.Path(file_okay=False), help="Contracts directory (default: .vibeops)")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Path to feature-graph.yaml")
@click.option("--json", "as_json", is_flag=True, help="Print results as JSON")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
@click.pass_context
def main(ctx, contracts_dir: Optional[str], config_path: Optional[str], as_json: bool, verbose: bool):
    """Feature Graph: scheduling and relationship analysis for feature contracts"""
    setup_logging(level=logging.INFO if verbose else None)
    try:
        ctx.obj = Context(contracts_dir, config_path, as_json)
    except FeatureGraphError as e:
        _fail(e)


@main.command()
@click.pass_obj
def validate(obj: Context):
    """Validate the semantic relationship graph.

    Exits 1 when the report contains errors.
    """
    try:
        report = validate_relationship_graph(obj.load_features(), obj.load_modules())
    except FeatureGraphError as e:
        _fail(e)

    if obj.as_json:
        obj.emit_json(report.to_dict())
    else:
        obj.ui.show_validation_report(report, "Relationship graph")
    sys.exit(0 if report.valid else 1)


@main.command("check-deps")
@click.option("--deep-nesting", type=int, help="Depth above which chains are flagged")
@click.pass_obj
def check_deps(obj: Context, deep_nesting: Optional[int]):
    """Validate execution dependencies (cycles, invalid references, depth).

    Exits 1 when the report contains errors.
    """
    try:
        threshold = deep_nesting
        if threshold is None:
            threshold = obj.config.get_int("analysis.deep_nesting_threshold")
        report = validate_dependencies(obj.load_features(), deep_nesting_threshold=threshold)
    except FeatureGraphError as e:
        _fail(e)

    if obj.as_json:
        obj.emit_json(report.to_dict())
    else:
        obj.ui.show_validation_report(report, "Dependency graph")
    sys.exit(0 if report.valid else 1)


@main.command("critical-path")
@click.argument("target")
@click.pass_obj
def critical_path(obj: Context, target: str):
    """Show the critical path to TARGET.

    Examples:
        feature-graph critical-path FEAT-010
    """
    try:
        result = calculate_critical_path(obj.load_features(), target)
    except FeatureGraphError as e:
        _fail(e)

    if obj.as_json:
        obj.emit_json(result.to_dict())
    else:
        obj.ui.show_critical_path(result)


@main.command("next")
@click.option("--module", "module_id", help="Only recommend features of this module")
@click.option("--priority", type=click.Choice([p.value for p in Priority]), help="Only recommend this priority")
@click.option("--max-results", type=int, help="Maximum features to list")
@click.pass_obj
def next_feature(obj: Context, module_id: Optional[str], priority: Optional[str], max_results: Optional[int]):
    """Recommend what to work on next."""
    try:
        limit = max_results
        if limit is None:
            limit = obj.config.get_int("analysis.max_results")
        result = recommend_next_feature(
            obj.load_features(),
            module_id=module_id,
            priority=priority,
            max_results=limit,
        )
    except FeatureGraphError as e:
        _fail(e)

    if obj.as_json:
        obj.emit_json(result.to_dict())
    else:
        obj.ui.show_next_features(result)


@main.command()
@click.option("--module", "module_id", help="Only include features of this module")
@click.option("--highlight", help="Highlight the critical path to this feature")
@click.option("--exclude-completed", is_flag=True, help="Leave out completed features")
@click.option("--format", "fmt", type=click.Choice(["mermaid", "json"]), default="mermaid", show_default=True)
@click.pass_obj
def graph(obj: Context, module_id: Optional[str], highlight: Optional[str], exclude_completed: bool, fmt: str):
    """Render the dependency graph."""
    try:
        result = get_dependency_graph(
            obj.load_features(),
            module_id=module_id,
            highlight_critical_path=highlight,
            include_completed=not exclude_completed,
            format=fmt,
        )
    except FeatureGraphError as e:
        _fail(e)

    if obj.as_json:
        obj.emit_json(result.to_dict())
    else:
        click.echo(result.content)


@main.command()
@click.argument("feature_id")
@click.pass_obj
def deps(obj: Context, feature_id: str):
    """List the execution dependencies of FEATURE_ID."""
    try:
        result = get_feature_dependencies(obj.load_features(), feature_id)
    except FeatureGraphError as e:
        _fail(e)

    if obj.as_json:
        obj.emit_json(result.to_dict())
    else:
        obj.ui.show_feature_dependencies(result)


@main.command("check-edge")
@click.argument("feature_id")
@click.argument("depends_on_id")
@click.pass_obj
def check_edge(obj: Context, feature_id: str, depends_on_id: str):
    """Check whether FEATURE_ID depending on DEPENDS_ON_ID would create a cycle.

    Exits 1 when the edge would close a cycle.
    """
    try:
        cycle = would_create_cycle(obj.load_features(), feature_id, depends_on_id)
    except FeatureGraphError as e:
        _fail(e)

    if obj.as_json:
        obj.emit_json({"wouldCreateCycle": cycle is not None, "cycle": cycle or []})
    elif cycle:
        obj.ui.print_error(f"Would create a cycle: {' -> '.join(cycle)}")
    else:
        obj.ui.print_success(f"{feature_id} can depend on {depends_on_id}")
    sys.exit(1 if cycle else 0)


@main.command()
@click.argument("candidate_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def overlap(obj: Context, candidate_file: str):
    """Check a candidate feature (JSON/YAML file) for overlap with stored features."""
    try:
        data: Dict[str, Any] = load_candidate(candidate_file)
        try:
            candidate = OverlapCandidate.model_validate(data)
        except ValidationError as e:
            raise ContractLoadError(
                f"{Path(candidate_file).name} is not a valid candidate",
                path=candidate_file,
                details=str(e),
            )
        results = check_overlap(candidate, obj.load_features())
    except FeatureGraphError as e:
        _fail(e)

    if obj.as_json:
        obj.emit_json([r.to_dict() for r in results])
    else:
        obj.ui.show_overlaps(results)


@main.command()
@click.option("--problem", default="", help="Problem statement to match")
@click.option("--scope", "scope_items", multiple=True, help="Scope item (repeatable)")
@click.option("--goal", "goals", multiple=True, help="Goal (repeatable)")
@click.option("--threshold", type=float, help="Minimum similarity (0-1)")
@click.pass_obj
def search(obj: Context, problem: str, scope_items: tuple, goals: tuple, threshold: Optional[float]):
    """Find features similar to a problem statement, scope or goals.

    Examples:
        feature-graph search --problem "users cannot reset passwords"
        feature-graph search --scope "email login" --goal "reduce support tickets"
    """
    query = SearchQuery(problem_statement=problem, scope_items=list(scope_items), goals=list(goals))
    if query.is_empty:
        raise click.UsageError("Give at least one of --problem, --scope or --goal")

    try:
        if threshold is None:
            threshold = obj.config.get_float("analysis.similarity_threshold")
        results = search_similar_features(query, obj.load_features(), threshold=threshold)
    except FeatureGraphError as e:
        _fail(e)

    if obj.as_json:
        obj.emit_json([r.to_dict() for r in results])
    else:
        obj.ui.show_similar(results)


@main.command()
@click.argument("words", nargs=-1, required=True)
@click.pass_obj
def keywords(obj: Context, words: tuple):
    """Case-insensitive keyword search across features."""
    try:
        results = quick_keyword_search(list(words), obj.load_features())
    except FeatureGraphError as e:
        _fail(e)

    if obj.as_json:
        obj.emit_json([r.to_dict() for r in results])
    else:
        obj.ui.show_keyword_matches(results)


if __name__ == "__main__":
    main()
