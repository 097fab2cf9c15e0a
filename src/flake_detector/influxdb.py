"""
Amazon Timestream for InfluxDB 3 export of flakiness reports.
"""

from collections.abc import Sequence
from datetime import datetime, timezone

from influxdb_client_3 import InfluxDBClient3, Point
from loguru import logger

from .types import EndpointReport, QueryResult


class InfluxDBClientWrapper:
    """Client for writing flakiness reports to InfluxDB 3."""

    def __init__(
        self,
        url: str,
        token: str,
        org: str,
        database: str,
    ) -> None:
        """
        Initialize InfluxDB 3 client.

        Args:
            url: InfluxDB endpoint URL
            token: Authentication token
            org: Organization name
            database: Database/bucket name
        """
        self.database = database
        self.client = InfluxDBClient3(
            host=url,
            token=token,
            org=org,
            database=database,
        )

    def write_reports(self, reports: Sequence[EndpointReport]) -> bool:
        """
        Write endpoint reports to InfluxDB.
        Writes one point per query result and one summary point per endpoint.

        Args:
            reports: EndpointReports to store

        Returns:
            True if successful, False otherwise
        """
        try:
            points: list[Point] = []
            for report in reports:
                timestamp = datetime.fromtimestamp(report.end_time, tz=timezone.utc)
                points.extend(
                    self._create_query_point(report, result, timestamp) for result in report.queries
                )
                points.append(self._create_endpoint_point(report, timestamp))

            self.client.write(points)

            logger.info(f"✅ Wrote {len(points)} points for {len(reports)} endpoint(s) to InfluxDB")
            return True

        except Exception as e:
            logger.error(f"Failed to write to InfluxDB: {e}", exc_info=True)
            return False

    def _create_query_point(
        self, report: EndpointReport, result: QueryResult, timestamp: datetime
    ) -> Point:
        """
        Create a point for a single query result.

        Latency fields are omitted when the query had no successful samples.
        """
        point = (
            Point("query_result")
            .tag("endpoint", report.endpoint)
            .tag("query", result.query)
            .tag("location_id", report.location_id or "unknown")
            .tag("run_id", report.run_id)
            .field("success_count", result.success_count)
            .field("failure_count", result.failure_count)
            .field("total_requests", result.total_requests)
            .field("failure_rate", result.failure_rate)
            .field("flakiness_score", result.flakiness_score)
            .time(timestamp)
        )
        for name in ("p50_latency_ms", "p95_latency_ms", "p99_latency_ms", "avg_latency_ms"):
            value = getattr(result, name)
            if value is not None:
                point = point.field(name, value)
        for kind, count in result.failures_by_kind.items():
            point = point.field(f"failures_{kind}", count)
        return point

    def _create_endpoint_point(self, report: EndpointReport, timestamp: datetime) -> Point:
        """Create the endpoint-level summary point."""
        point = (
            Point("endpoint_report")
            .tag("endpoint", report.endpoint)
            .tag("location_id", report.location_id or "unknown")
            .tag("run_id", report.run_id)
            .field("overall_failure_rate", report.overall_failure_rate)
            .field("flakiness_score", report.flakiness_score)
            .field("total_requests", report.total_requests)
            .field("test_duration_secs", report.test_duration_secs)
            .time(timestamp)
        )
        if report.p99_latency_ms is not None:
            point = point.field("p99_latency_ms", report.p99_latency_ms)
        return point

    def close(self) -> None:
        """Close the InfluxDB client connection."""
        try:
            self.client.close()
            logger.info("✅ Closed InfluxDB connection")
        except Exception as e:
            logger.error(f"Failed to close InfluxDB connection: {e}")
