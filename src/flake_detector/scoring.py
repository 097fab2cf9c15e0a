"""
Flakiness scoring.
"""

import math
from typing import Literal

LATENCY_THRESHOLD_MS = 1000.0
FAILURE_WEIGHT = 0.7
LATENCY_WEIGHT = 0.3

Status = Literal["healthy", "degraded", "flaky", "critical"]


def calculate_flakiness_score(failure_rate: float, p99_latency_ms: float | None) -> float:
    """
    Combine failure rate and tail latency into a 0-100 flakiness score.

    Failures weigh 0.7 and latency 0.3. A p99 at or above one second counts
    as maximally severe. A missing p99 (no successful samples) also counts as
    maximally severe so total failure is never mistaken for a fast endpoint.

    Args:
        failure_rate: Fraction of failed probes (0-1)
        p99_latency_ms: 99th percentile latency in milliseconds, or None

    Returns:
        Score between 0 (solid) and 100 (unusable)
    """
    if math.isnan(failure_rate) or not 0.0 <= failure_rate <= 1.0:
        raise ValueError(f"failure_rate must be within [0, 1], got {failure_rate}")

    if p99_latency_ms is None:
        latency_severity = 1.0
    else:
        if math.isnan(p99_latency_ms) or p99_latency_ms < 0:
            raise ValueError(f"p99_latency_ms must be non-negative, got {p99_latency_ms}")
        latency_severity = min(p99_latency_ms / LATENCY_THRESHOLD_MS, 1.0)

    score = failure_rate * FAILURE_WEIGHT + latency_severity * LATENCY_WEIGHT
    return min(score * 100.0, 100.0)


def score_status(score: float) -> Status:
    """Map a flakiness score onto its status band."""
    if score < 10.0:
        return "healthy"
    if score < 30.0:
        return "degraded"
    if score < 60.0:
        return "flaky"
    return "critical"
