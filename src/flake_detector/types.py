"""
Type definitions for the flake detector.

This module contains the Pydantic models shared by the probing engine,
the report assembler and the exporters.
"""

import uuid
from typing import Literal

from pydantic import BaseModel, Field

FailureKind = Literal["timeout", "connection_error", "error_status", "transport_error"]

FAILURE_KINDS: tuple[FailureKind, ...] = (
    "timeout",
    "connection_error",
    "error_status",
    "transport_error",
)

DEFAULT_QUERIES = ["health", "status", "abci_info", "net_info", "genesis"]


class ProbeOutcome(BaseModel):
    """Result of a single probe against one (endpoint, query) pair."""

    success: bool
    latency_ms: float | None = Field(default=None, description="Elapsed time for successful probes")
    failure_kind: FailureKind | None = None
    status_code: int | None = Field(default=None, description="HTTP status for error_status failures")

    @classmethod
    def ok(cls, latency_ms: float) -> "ProbeOutcome":
        return cls(success=True, latency_ms=latency_ms)

    @classmethod
    def failed(cls, kind: FailureKind, status_code: int | None = None) -> "ProbeOutcome":
        return cls(success=False, failure_kind=kind, status_code=status_code)


class QueryResult(BaseModel):
    """Frozen statistics for one query against one endpoint."""

    query: str
    success_count: int
    failure_count: int
    total_requests: int
    failure_rate: float
    failures_by_kind: dict[str, int] = Field(default_factory=dict)

    # Latency statistics (in milliseconds), None without successful samples
    p50_latency_ms: float | None = None
    p95_latency_ms: float | None = None
    p99_latency_ms: float | None = None
    avg_latency_ms: float | None = None
    min_latency_ms: float | None = None
    max_latency_ms: float | None = None

    flakiness_score: float


class EndpointReport(BaseModel):
    """Aggregated flakiness report for one endpoint."""

    endpoint: str
    overall_success_rate: float
    overall_failure_rate: float
    p99_latency_ms: float | None = Field(
        default=None, description="Worst p99 across all queries of the endpoint"
    )
    flakiness_score: float
    total_requests: int
    test_duration_secs: float
    queries: list[QueryResult]
    start_time: float
    end_time: float
    location_id: str | None = Field(default=None, description="Deployment location identifier")
    run_id: str = Field(
        default_factory=lambda: str(uuid.uuid4()), description="Unique identifier for this run"
    )


class QueryPlan(BaseModel):
    """Load shape for a single query: workers, duration and timeout."""

    concurrency: int = Field(default=10, ge=0, le=1000)
    duration_secs: float = Field(default=60.0, ge=0)
    timeout_secs: float = Field(default=5.0, gt=0, le=300)


class RunConfig(BaseModel):
    """Configuration for a flakiness detection run."""

    concurrency: int = Field(default=10, ge=0, le=1000, description="Workers per query")
    duration_secs: float = Field(default=60.0, gt=0, description="Probing duration per query")
    timeout_secs: float = Field(default=5.0, gt=0, le=300, description="Per-request timeout")
    cooldown_ms: int = Field(default=100, ge=0, le=5000, description="Pause between requests")
    parallel_queries: bool = Field(default=False, description="Run an endpoint's queries at once")
    parallel_endpoints: bool = Field(default=False, description="Probe all endpoints at once")
    max_workers: int = Field(default=1000, ge=1, description="Cap on simultaneously active workers")
    query_overrides: dict[str, QueryPlan] = Field(default_factory=dict)
    location_id: str | None = Field(default=None, description="Deployment location identifier")

    def plan_for(self, query: str) -> QueryPlan:
        """Return the load shape for a query, honouring per-query overrides."""
        override = self.query_overrides.get(query)
        if override is not None:
            return override
        return QueryPlan(
            concurrency=self.concurrency,
            duration_secs=self.duration_secs,
            timeout_secs=self.timeout_secs,
        )
