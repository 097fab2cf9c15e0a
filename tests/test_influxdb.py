"""Tests for the InfluxDB report exporter."""

from typing import Any

import pytest

from flake_detector import influxdb
from flake_detector.influxdb import InfluxDBClientWrapper
from flake_detector.report import assemble_endpoint_report
from flake_detector.types import EndpointReport, QueryResult


class FakeInfluxDBClient3:
    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs
        self.written: list[Any] = []
        self.closed = False
        self.fail_with: Exception | None = None

    def write(self, record: Any) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.written.extend(record)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def wrapper(monkeypatch: pytest.MonkeyPatch) -> InfluxDBClientWrapper:
    monkeypatch.setattr(influxdb, "InfluxDBClient3", FakeInfluxDBClient3)
    return InfluxDBClientWrapper(
        url="https://influx.example.com", token="secret", org="default", database="rpc"
    )


@pytest.fixture
def report() -> EndpointReport:
    healthy = QueryResult(
        query="health",
        success_count=99,
        failure_count=1,
        total_requests=100,
        failure_rate=0.01,
        failures_by_kind={"timeout": 1},
        p50_latency_ms=12.0,
        p95_latency_ms=40.0,
        p99_latency_ms=90.0,
        avg_latency_ms=15.0,
        flakiness_score=3.4,
    )
    dead = QueryResult(
        query="genesis",
        success_count=0,
        failure_count=20,
        total_requests=20,
        failure_rate=1.0,
        failures_by_kind={"error_status": 20},
        flakiness_score=100.0,
    )
    return assemble_endpoint_report(
        endpoint="https://rpc.example.com",
        query_results=[healthy, dead],
        test_duration_secs=60,
        start_time=1_700_000_000.0,
        end_time=1_700_000_060.0,
        run_id="run-42",
        location_id="fra1",
    )


def test_client_is_created_with_credentials(wrapper: InfluxDBClientWrapper) -> None:
    assert wrapper.client.kwargs == {
        "host": "https://influx.example.com",
        "token": "secret",
        "org": "default",
        "database": "rpc",
    }


def test_writes_one_point_per_query_and_endpoint(
    wrapper: InfluxDBClientWrapper, report: EndpointReport
) -> None:
    assert wrapper.write_reports([report]) is True

    lines = [point.to_line_protocol() for point in wrapper.client.written]
    assert len(lines) == 3
    health, genesis, summary = lines

    assert health.startswith("query_result,")
    assert "query=health" in health
    assert "run_id=run-42" in health
    assert "location_id=fra1" in health
    assert "p99_latency_ms=90" in health
    assert "failures_timeout=1i" in health

    assert "query=genesis" in genesis
    assert "p99_latency_ms" not in genesis
    assert "failures_error_status=20i" in genesis

    assert summary.startswith("endpoint_report,")
    assert "total_requests=120i" in summary


def test_write_failures_are_reported_not_raised(
    wrapper: InfluxDBClientWrapper, report: EndpointReport
) -> None:
    wrapper.client.fail_with = ConnectionError("influx unreachable")

    assert wrapper.write_reports([report]) is False


def test_close_closes_client(wrapper: InfluxDBClientWrapper) -> None:
    wrapper.close()

    assert wrapper.client.closed
