"""Tests for the flakiness score."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from flake_detector.scoring import calculate_flakiness_score, score_status

failure_rates = st.floats(min_value=0.0, max_value=1.0, allow_nan=False)
latencies = st.floats(min_value=0.0, max_value=1e7, allow_nan=False, allow_infinity=False)


@pytest.mark.parametrize(
    ("failure_rate", "p99", "expected"),
    [
        (0.0, 0.0, 0.0),
        (0.0, 100.0, 3.0),
        (0.05, 500.0, 18.5),
        (0.30, 2000.0, 51.0),
        (1.0, 1000.0, 100.0),
        (1.0, 50_000.0, 100.0),
    ],
)
def test_known_scores(failure_rate: float, p99: float, expected: float) -> None:
    assert calculate_flakiness_score(failure_rate, p99) == pytest.approx(expected)


def test_missing_p99_counts_as_worst_latency() -> None:
    assert calculate_flakiness_score(0.0, None) == pytest.approx(30.0)
    assert calculate_flakiness_score(1.0, None) == pytest.approx(100.0)


@pytest.mark.parametrize(
    ("failure_rate", "p99"),
    [(-0.1, 10.0), (1.5, 10.0), (float("nan"), 10.0), (0.5, -1.0), (0.5, float("nan"))],
)
def test_rejects_inputs_outside_domain(failure_rate: float, p99: float) -> None:
    with pytest.raises(ValueError):
        calculate_flakiness_score(failure_rate, p99)


@given(failure_rate=failure_rates, p99=latencies)
def test_score_is_bounded(failure_rate: float, p99: float) -> None:
    assert 0.0 <= calculate_flakiness_score(failure_rate, p99) <= 100.0


@given(a=failure_rates, b=failure_rates, p99=latencies)
def test_score_monotonic_in_failure_rate(a: float, b: float, p99: float) -> None:
    low, high = sorted((a, b))
    assert calculate_flakiness_score(low, p99) <= calculate_flakiness_score(high, p99)


@given(failure_rate=failure_rates, a=latencies, b=latencies)
def test_score_monotonic_in_latency(failure_rate: float, a: float, b: float) -> None:
    low, high = sorted((a, b))
    assert calculate_flakiness_score(failure_rate, low) <= calculate_flakiness_score(
        failure_rate, high
    )


@pytest.mark.parametrize(
    ("score", "status"),
    [
        (0.0, "healthy"),
        (9.99, "healthy"),
        (10.0, "degraded"),
        (29.9, "degraded"),
        (30.0, "flaky"),
        (59.9, "flaky"),
        (60.0, "critical"),
        (100.0, "critical"),
    ],
)
def test_status_bands(score: float, status: str) -> None:
    assert score_status(score) == status
