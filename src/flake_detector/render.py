"""
Terminal rendering of flakiness reports.
"""

from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .scoring import Status, score_status
from .types import EndpointReport, RunConfig

STATUS_STYLES: dict[Status, tuple[str, str]] = {
    "healthy": ("🟢", "bright_green"),
    "degraded": ("🟡", "bright_yellow"),
    "flaky": ("🟠", "bright_magenta"),
    "critical": ("🔴", "bright_red"),
}


def _ms(value: float | None) -> str:
    return "-" if value is None else f"{value:.1f}"


def format_score(score: float) -> str:
    """Return the score as rich markup colored by its status band."""
    emoji, style = STATUS_STYLES[score_status(score)]
    return f"{emoji} [bold {style}]{score:.1f}[/bold {style}]"


def render_banner(
    console: Console, endpoints: Sequence[str], queries: Sequence[str], config: RunConfig
) -> None:
    """Print the run configuration banner."""
    console.print(
        Panel.fit("[bold bright_white]RPC FLAKE DETECTOR[/bold bright_white]", style="bright_blue")
    )
    console.print("\n⚙ [bright_yellow]Configuration:[/bright_yellow]")
    console.print(f"  Endpoints: {len(endpoints)}")
    console.print(f"  Test Duration: {config.duration_secs:g}s per query")
    console.print(f"  Queries: {', '.join(queries)}", markup=False)
    console.print(f"  Concurrency: {config.concurrency}")
    console.print(f"  Timeout: {config.timeout_secs:g}s | Cooldown: {config.cooldown_ms}ms")
    if config.parallel_queries or config.parallel_endpoints:
        console.print(
            f"  Parallel queries: {config.parallel_queries} | "
            f"Parallel endpoints: {config.parallel_endpoints}"
        )


def build_query_table(report: EndpointReport) -> Table:
    """Build a per-query table for one endpoint."""
    table = Table(title=escape(report.endpoint), title_style="bright_cyan", show_lines=False)
    table.add_column("Query", style="bright_white")
    table.add_column("Success", justify="right", style="bright_green")
    table.add_column("Failure", justify="right", style="bright_red")
    table.add_column("Fail %", justify="right", style="bright_yellow")
    table.add_column("p50 ms", justify="right")
    table.add_column("p95 ms", justify="right")
    table.add_column("p99 ms", justify="right")
    table.add_column("Score", justify="right")

    for result in report.queries:
        table.add_row(
            escape(result.query),
            str(result.success_count),
            str(result.failure_count),
            f"{result.failure_rate * 100:.1f}",
            _ms(result.p50_latency_ms),
            _ms(result.p95_latency_ms),
            _ms(result.p99_latency_ms),
            format_score(result.flakiness_score),
        )
    return table


def render_summary(console: Console, reports: Sequence[EndpointReport]) -> None:
    """Print per-endpoint query tables followed by the flakiness summary."""
    for report in reports:
        console.print()
        console.print(build_query_table(report))

    console.print("\n" + "═" * 51, style="bright_blue")
    console.print("           FLAKINESS DETECTION SUMMARY", style="bold bright_white")
    console.print("═" * 51, style="bright_blue")

    for report in reports:
        console.print(
            f"\n[bright_cyan]{escape(report.endpoint)}[/bright_cyan] - Flakiness Score: "
            f"{format_score(report.flakiness_score)}/100"
        )
        console.print(
            f"  Success Rate: [bright_green]{report.overall_success_rate * 100:.1f}%[/bright_green]"
            f" | Total Requests: {report.total_requests}"
            f" | Worst p99: {_ms(report.p99_latency_ms)}ms"
        )

    console.print("\n" + "═" * 51, style="bright_blue")
