"""
CLI interface for the flake detector.
"""

import sys
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console

from .errors import ConfigurationError
from .influxdb import InfluxDBClientWrapper
from .render import render_banner, render_summary
from .report import export_reports
from .runner import build_config, run, validate_run
from .settings import FlakeDetectorSettings
from .utils import setup_logging

app = typer.Typer(
    name="flake-detector",
    help="Detect flaky RPC endpoints with query-specific load testing",
    add_completion=False,
)
console = Console()


def _split(value: str | None) -> list[str] | None:
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def create_influxdb_client(
    url: str | None,
    token: str | None,
    org: str | None,
    database: str | None,
) -> InfluxDBClientWrapper | None:
    """Create InfluxDB client if credentials provided."""
    if url and token and database:
        return InfluxDBClientWrapper(
            url=url,
            token=token,
            org=org or "default",
            database=database,
        )
    return None


@app.command()
def detect(
    endpoints: str = typer.Option(
        None, "--endpoints", "-e", help="Comma-separated list of RPC endpoints to test"
    ),
    duration: float = typer.Option(None, "--duration", "-d", help="Test duration in seconds"),
    queries: str = typer.Option(
        None, "--queries", "-q", help="Comma-separated list of RPC queries to test"
    ),
    output: Path = typer.Option(None, "--output", "-o", help="Output JSON file path"),
    concurrency: int = typer.Option(
        None, "--concurrency", "-c", help="Concurrent requests per query"
    ),
    timeout: float = typer.Option(None, "--timeout", "-t", help="Request timeout in seconds"),
    cooldown: int = typer.Option(None, "--cooldown", help="Pause between requests (ms)"),
    parallel_queries: bool = typer.Option(
        False, "--parallel-queries", help="Run all queries of an endpoint at the same time"
    ),
    parallel_endpoints: bool = typer.Option(
        False, "--parallel-endpoints", help="Test all endpoints at the same time"
    ),
    max_workers: int = typer.Option(
        None, "--max-workers", help="Cap on concurrently active workers"
    ),
    location_id: str = typer.Option(None, "--location", "-l", help="Location identifier"),
    influxdb_url: str = typer.Option(None, "--influxdb-url", help="InfluxDB endpoint URL"),
    influxdb_token: str = typer.Option(None, "--influxdb-token", help="InfluxDB auth token"),
    influxdb_org: str = typer.Option(None, "--influxdb-org", help="InfluxDB organization"),
    influxdb_database: str = typer.Option(None, "--influxdb-database", help="InfluxDB database"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Probe RPC endpoints under sustained load and score their flakiness."""
    try:
        settings = FlakeDetectorSettings()
    except ValidationError as e:
        console.print(f"❌ Invalid environment configuration: {e}")
        sys.exit(1)

    level = "DEBUG" if verbose else settings.log_level
    setup_logging(level=level, use_rich=True)

    # Use options or settings defaults
    endpoint_list = _split(endpoints) or settings.endpoints
    query_list = _split(queries) or settings.queries

    try:
        config = build_config(
            {
                "concurrency": concurrency if concurrency is not None else settings.concurrency,
                "duration_secs": duration if duration is not None else settings.duration_secs,
                "timeout_secs": timeout if timeout is not None else settings.timeout_secs,
                "cooldown_ms": cooldown if cooldown is not None else settings.cooldown_ms,
                "parallel_queries": parallel_queries,
                "parallel_endpoints": parallel_endpoints,
                "max_workers": max_workers if max_workers is not None else settings.max_workers,
                "location_id": location_id or settings.location_id,
            }
        )
        validate_run(endpoint_list, query_list, config)
    except ConfigurationError as e:
        console.print(f"❌ Configuration error: {e}", markup=False)
        sys.exit(1)

    influxdb = create_influxdb_client(
        influxdb_url or settings.influxdb.influxdb_url,
        influxdb_token or settings.influxdb.influxdb_token,
        influxdb_org or settings.influxdb.influxdb_org,
        influxdb_database or settings.influxdb.influxdb_database,
    )

    render_banner(console, endpoint_list, query_list, config)

    try:
        reports = run(endpoint_list, query_list, config)
    except KeyboardInterrupt:
        console.print("\n\n🛑 Detection interrupted by user")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n\n❌ Error: {e}", markup=False)
        if verbose:
            console.print_exception()
        sys.exit(1)

    render_summary(console, reports)

    # Save to file if requested
    if output:
        try:
            export_reports(reports, output)
            console.print(f"\n💾 Results exported to: [bright_cyan]{output}[/bright_cyan]")
        except OSError as e:
            console.print(f"\n❌ Failed to write output: {e}", markup=False)

    # Write to InfluxDB if configured
    if influxdb:
        try:
            if influxdb.write_reports(reports):
                console.print("💾 Results written to InfluxDB")
        finally:
            influxdb.close()

    console.print("\n✅ Testing complete!\n")


def main() -> None:
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
