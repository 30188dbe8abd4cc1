"""
Feature Graph Terminal Rendering

Rich tables and panels for analysis results.
"""

from typing import List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from feature_graph.overlap import KeywordMatch, OverlapResult, OverlapSeverity, SimilarityResult
from feature_graph.scheduling import (
    CriticalPathResult,
    FeatureDependencies,
    NextFeatureResult,
)
from feature_graph.validation import IssueSeverity, ValidationReport

SEVERITY_STYLES = {
    IssueSeverity.ERROR: "red",
    IssueSeverity.WARNING: "yellow",
    IssueSeverity.INFO: "blue",
}

OVERLAP_STYLES = {
    OverlapSeverity.HIGH: "red",
    OverlapSeverity.MEDIUM: "yellow",
    OverlapSeverity.LOW: "green",
}


class ReportUI:
    """Renders analysis results to the terminal."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def print_success(self, message: str):
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str):
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str):
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_recommendations(self, recommendations: List[str]):
        """Print numbered recommendations."""
        if not recommendations:
            return
        self.console.print()
        self.console.print("[bold]Recommendations:[/bold]")
        for i, rec in enumerate(recommendations, 1):
            self.console.print(f"  {i}. {rec}")

    def show_validation_report(self, report: ValidationReport, title: str):
        """Show issues and statistics of a validation run."""
        stats = report.statistics
        if report.valid:
            self.print_success(f"{title}: no errors")
        else:
            self.print_error(f"{title}: {report.error_count} error(s)")

        if report.issues:
            table = Table(title="Issues", border_style="blue")
            table.add_column("Type")
            table.add_column("Category", style="cyan")
            table.add_column("Features")
            table.add_column("Message")
            table.add_column("Recommendation", style="dim")

            for issue in report.issues:
                style = SEVERITY_STYLES[issue.severity]
                table.add_row(
                    f"[{style}]{issue.severity.value}[/{style}]",
                    issue.category.value,
                    ", ".join(issue.feature_ids),
                    issue.message,
                    issue.recommendation or "",
                )
            self.console.print(table)

        summary = Table(title="Statistics", border_style="blue")
        summary.add_column("Metric", style="cyan")
        summary.add_column("Value", justify="right")
        for key, value in stats.to_dict().items():
            summary.add_row(key, str(value))
        self.console.print(summary)

    def show_critical_path(self, result: CriticalPathResult):
        """Show the critical path to a target and surrounding work."""
        self.console.print(Panel(
            f"[bold]{result.target_id}[/bold] {result.target_name}\n"
            f"Status: {result.target_status}  Path length: {result.total_path_length}",
            title="Critical Path",
            border_style="blue",
        ))

        table = Table(border_style="blue")
        table.add_column("#", justify="right")
        table.add_column("Feature", style="cyan")
        table.add_column("Name")
        table.add_column("Status")
        table.add_column("Blocks", justify="right")
        for i, step in enumerate(result.critical_path, 1):
            table.add_row(str(i), step.feature_id, step.name, step.status, str(step.blocks_count))
        self.console.print(table)

        if result.parallel_work:
            self.console.print()
            self.console.print("[bold]Parallel work available:[/bold]")
            for item in result.parallel_work:
                self.console.print(f"  • {item.feature_id} {item.name}")

        if result.blocked_features:
            self.console.print()
            self.console.print("[bold]Blocked:[/bold]")
            for item in result.blocked_features:
                self.console.print(f"  • {item.feature_id} waiting on {', '.join(item.waiting_on)}")

        self.print_recommendations(result.recommendations)

    def show_next_features(self, result: NextFeatureResult):
        """Show ranked ready features, in-progress work and blocked features."""
        if result.ready_to_start:
            table = Table(title="Ready to start", border_style="green")
            table.add_column("Feature", style="cyan")
            table.add_column("Name")
            table.add_column("Module")
            table.add_column("Priority")
            table.add_column("Score", justify="right")
            table.add_column("Reason", style="dim")
            for item in result.ready_to_start:
                table.add_row(
                    item.feature_id,
                    item.name,
                    item.module_id,
                    item.priority,
                    str(item.score),
                    item.reason,
                )
            self.console.print(table)
        else:
            self.print_warning("No features are ready to start")

        if result.in_progress:
            self.console.print()
            self.console.print("[bold]In progress:[/bold]")
            for item in result.in_progress:
                unblocks = f" (unblocks {', '.join(item.unblocks)})" if item.unblocks else ""
                self.console.print(f"  • {item.feature_id} {item.name}{unblocks}")

        if result.blocked_features:
            self.console.print()
            self.console.print("[bold]Blocked:[/bold]")
            for item in result.blocked_features:
                self.console.print(f"  • {item.feature_id} waiting on {', '.join(item.waiting_on)}")

        self.print_recommendations(result.recommendations)

    def show_feature_dependencies(self, result: FeatureDependencies):
        """Show the declared execution dependencies of one feature."""
        self.console.print(f"[bold]{result.feature_id}[/bold] {result.name} ({result.status})")
        if not result.dependencies:
            self.console.print("[dim]No dependencies declared[/dim]")
            return

        table = Table(border_style="blue")
        table.add_column("Depends on", style="cyan")
        table.add_column("Type")
        table.add_column("Reason", style="dim")
        for dep in result.dependencies:
            table.add_row(dep.feature_id, dep.type.value, dep.reason or "")
        self.console.print(table)

    def show_overlaps(self, results: List[OverlapResult]):
        """Show overlap results, highest severity first."""
        if not results:
            self.print_success("No overlaps detected. Feature appears unique.")
            return

        self.print_warning(f"Potential overlaps detected with {len(results)} feature(s)")
        for result in results:
            style = OVERLAP_STYLES[result.severity]
            body = "\n".join(f"• {reason}" for reason in result.reasons)
            if result.recommendations:
                body += "\n\n" + "\n".join(f"→ {rec}" for rec in result.recommendations)
            self.console.print(Panel(
                body,
                title=f"[{style}]{result.severity.value.upper()}[/{style}] {result.feature_id} {result.feature_name}",
                border_style=style,
            ))

    def show_similar(self, results: List[SimilarityResult]):
        """Show similarity search results."""
        if not results:
            self.print_success("No similar features found.")
            return

        table = Table(title=f"Found {len(results)} similar feature(s)", border_style="blue")
        table.add_column("Feature", style="cyan")
        table.add_column("Name")
        table.add_column("Module")
        table.add_column("Score", justify="right")
        table.add_column("Reasons", style="dim")
        for result in results:
            table.add_row(
                result.feature_id,
                result.feature_name,
                result.module_id,
                f"{round(result.similarity_score * 100)}%",
                "; ".join(result.match_reasons),
            )
        self.console.print(table)

    def show_keyword_matches(self, results: List[KeywordMatch]):
        """Show keyword search results."""
        if not results:
            self.console.print("[dim]No matches[/dim]")
            return

        table = Table(border_style="blue")
        table.add_column("Feature", style="cyan")
        table.add_column("Name")
        table.add_column("Matches")
        for result in results:
            table.add_row(result.feature_id, result.feature_name, ", ".join(result.matches))
        self.console.print(table)
