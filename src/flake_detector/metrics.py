"""
Shared per-query aggregation of probe outcomes.
"""

import asyncio

from .recorder import LatencyRecorder
from .scoring import calculate_flakiness_score
from .types import FAILURE_KINDS, ProbeOutcome, QueryResult


class QueryMetrics:
    """
    Counters and latency histogram for one (endpoint, query) pair.

    All workers probing the pair write here. Every update goes through
    ``record`` which holds the lock only for the in-memory update.
    """

    def __init__(self, query: str) -> None:
        self.query = query
        self.success_count = 0
        self.failure_count = 0
        self.failures_by_kind: dict[str, int] = dict.fromkeys(FAILURE_KINDS, 0)
        self.latencies = LatencyRecorder()
        self._lock = asyncio.Lock()

    @property
    def total_requests(self) -> int:
        return self.success_count + self.failure_count

    async def record(self, outcome: ProbeOutcome) -> None:
        """Fold one probe outcome into the counters."""
        async with self._lock:
            if outcome.success:
                self.success_count += 1
                if outcome.latency_ms is not None:
                    self.latencies.record(outcome.latency_ms)
            else:
                self.failure_count += 1
                kind = outcome.failure_kind or "transport_error"
                self.failures_by_kind[kind] += 1

    def to_result(self) -> QueryResult:
        """
        Snapshot the frozen metrics into a QueryResult.

        Must only be called once every worker writing to these metrics
        has exited.
        """
        total = self.total_requests
        failure_rate = self.failure_count / total if total > 0 else 0.0
        p99 = self.latencies.quantile(0.99)

        return QueryResult(
            query=self.query,
            success_count=self.success_count,
            failure_count=self.failure_count,
            total_requests=total,
            failure_rate=failure_rate,
            failures_by_kind={k: v for k, v in self.failures_by_kind.items() if v},
            p50_latency_ms=self.latencies.quantile(0.5),
            p95_latency_ms=self.latencies.quantile(0.95),
            p99_latency_ms=p99,
            avg_latency_ms=self.latencies.mean_ms,
            min_latency_ms=self.latencies.min_ms,
            max_latency_ms=self.latencies.max_ms,
            flakiness_score=calculate_flakiness_score(failure_rate, p99),
        )
