"""
Report assembly and JSON export.
"""

from collections.abc import Sequence
from pathlib import Path

from loguru import logger
from pydantic import TypeAdapter

from .scoring import calculate_flakiness_score
from .types import EndpointReport, QueryResult

_reports_adapter = TypeAdapter(list[EndpointReport])


def assemble_endpoint_report(
    endpoint: str,
    query_results: Sequence[QueryResult],
    test_duration_secs: float,
    start_time: float,
    end_time: float,
    run_id: str,
    location_id: str | None = None,
) -> EndpointReport:
    """
    Merge per-query results into one endpoint report.

    The endpoint failure rate is weighted by request count across queries
    and the endpoint p99 is the worst p99 of any query. The endpoint score
    is computed from those two numbers rather than averaged from the query
    scores.

    Args:
        endpoint: Endpoint base address
        query_results: Frozen results for every configured query
        test_duration_secs: Configured probing duration
        start_time: Wall-clock start of the endpoint run (epoch seconds)
        end_time: Wall-clock end of the endpoint run (epoch seconds)
        run_id: Identifier shared by all endpoints of one run
        location_id: Optional deployment location identifier

    Returns:
        Immutable EndpointReport
    """
    total_requests = sum(r.total_requests for r in query_results)
    total_failures = sum(r.failure_count for r in query_results)
    failure_rate = total_failures / total_requests if total_requests > 0 else 0.0

    p99_values = [r.p99_latency_ms for r in query_results if r.p99_latency_ms is not None]
    worst_p99 = max(p99_values) if p99_values else None

    return EndpointReport(
        endpoint=endpoint,
        overall_success_rate=1.0 - failure_rate,
        overall_failure_rate=failure_rate,
        p99_latency_ms=worst_p99,
        flakiness_score=calculate_flakiness_score(failure_rate, worst_p99),
        total_requests=total_requests,
        test_duration_secs=test_duration_secs,
        queries=list(query_results),
        start_time=start_time,
        end_time=end_time,
        location_id=location_id,
        run_id=run_id,
    )


def export_reports(reports: Sequence[EndpointReport], path: Path) -> Path:
    """Write reports to ``path`` as indented JSON and return the path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(_reports_adapter.dump_json(list(reports), indent=2))
    logger.info(f"💾 Exported {len(reports)} endpoint report(s) to {path}")
    return path
