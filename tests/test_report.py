"""Tests for endpoint report assembly and JSON export."""

import json
from pathlib import Path

import pytest

from flake_detector.report import assemble_endpoint_report, export_reports
from flake_detector.scoring import calculate_flakiness_score
from flake_detector.types import QueryResult


def _result(
    query: str, success: int, failure: int, p99: float | None, kind: str = "timeout"
) -> QueryResult:
    total = success + failure
    rate = failure / total if total else 0.0
    return QueryResult(
        query=query,
        success_count=success,
        failure_count=failure,
        total_requests=total,
        failure_rate=rate,
        failures_by_kind={kind: failure} if failure else {},
        p50_latency_ms=None if p99 is None else p99 / 2,
        p95_latency_ms=None if p99 is None else p99 * 0.9,
        p99_latency_ms=p99,
        flakiness_score=calculate_flakiness_score(rate, p99),
    )


def _assemble(results: list[QueryResult]):
    return assemble_endpoint_report(
        endpoint="https://rpc.example.com",
        query_results=results,
        test_duration_secs=60,
        start_time=1_700_000_000.0,
        end_time=1_700_000_061.5,
        run_id="run-123",
        location_id="fra1",
    )


def test_failure_rate_is_weighted_by_request_count() -> None:
    report = _assemble([_result("health", 90, 10, 50.0), _result("status", 300, 0, 200.0)])

    assert report.total_requests == 400
    assert report.overall_failure_rate == pytest.approx(10 / 400)
    assert report.overall_success_rate == pytest.approx(390 / 400)


def test_endpoint_p99_is_worst_query_p99() -> None:
    report = _assemble(
        [
            _result("health", 100, 0, 50.0),
            _result("genesis", 100, 0, 850.0),
            _result("net_info", 0, 5, None),
        ]
    )

    assert report.p99_latency_ms == 850.0


def test_endpoint_score_uses_aggregates_not_average() -> None:
    results = [_result("health", 90, 10, 50.0), _result("status", 300, 0, 200.0)]
    report = _assemble(results)

    # 0.025 * 0.7 + 0.2 * 0.3 = 0.0775
    assert report.flakiness_score == pytest.approx(7.75)
    average = sum(r.flakiness_score for r in results) / len(results)
    assert report.flakiness_score != pytest.approx(average)


def test_all_failing_queries_saturate_score() -> None:
    report = _assemble([_result("health", 0, 40, None), _result("status", 0, 35, None)])

    assert report.overall_failure_rate == 1.0
    assert report.p99_latency_ms is None
    assert report.flakiness_score == pytest.approx(100.0)


def test_empty_results_have_zero_failure_rate() -> None:
    report = _assemble([_result("health", 0, 0, None)])

    assert report.total_requests == 0
    assert report.overall_failure_rate == 0.0
    assert report.overall_success_rate == 1.0


def test_report_metadata_is_carried() -> None:
    report = _assemble([_result("health", 10, 0, 5.0)])

    assert report.endpoint == "https://rpc.example.com"
    assert report.run_id == "run-123"
    assert report.location_id == "fra1"
    assert report.test_duration_secs == 60
    assert report.end_time - report.start_time == pytest.approx(61.5)


def test_export_reports_writes_json(tmp_path: Path) -> None:
    reports = [_assemble([_result("health", 90, 10, 50.0), _result("status", 0, 0, None)])]
    path = tmp_path / "out" / "zigchain_health.json"

    assert export_reports(reports, path) == path

    data = json.loads(path.read_text())
    assert isinstance(data, list)
    assert data[0]["endpoint"] == "https://rpc.example.com"
    assert data[0]["flakiness_score"] == pytest.approx(reports[0].flakiness_score)
    assert [q["query"] for q in data[0]["queries"]] == ["health", "status"]
    assert data[0]["queries"][1]["p99_latency_ms"] is None
    assert data[0]["queries"][0]["failures_by_kind"] == {"timeout": 10}
