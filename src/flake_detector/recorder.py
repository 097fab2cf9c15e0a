"""
Bounded-memory latency recorder.

Latencies are stored in a log-linear bucketed histogram in the style of
HdrHistogram: values are tracked at microsecond resolution with a fixed
number of significant figures, so memory does not grow with the number of
samples and every quantile carries the same relative error bound.
"""

import math

MICROS_PER_MS = 1000.0
ONE_HOUR_US = 60 * 60 * 1_000_000


class LatencyRecorder:
    """Histogram of latency samples with constant-time recording."""

    def __init__(
        self,
        highest_trackable_us: int = ONE_HOUR_US,
        significant_figures: int = 3,
    ) -> None:
        """
        Initialize an empty recorder.

        Args:
            highest_trackable_us: Largest latency tracked exactly, in microseconds.
                Larger samples saturate at this value.
            significant_figures: Decimal digits of precision kept per bucket (1-5)
        """
        if not 1 <= significant_figures <= 5:
            raise ValueError(f"significant_figures must be in 1..5, got {significant_figures}")
        if highest_trackable_us < 2:
            raise ValueError(f"highest_trackable_us must be >= 2, got {highest_trackable_us}")

        self.highest_trackable_us = highest_trackable_us
        self.significant_figures = significant_figures

        largest_single_unit = 2 * 10**significant_figures
        self._sub_bucket_magnitude = math.ceil(math.log2(largest_single_unit))
        self._sub_bucket_count = 1 << self._sub_bucket_magnitude
        self._sub_bucket_half_magnitude = self._sub_bucket_magnitude - 1
        self._sub_bucket_half_count = self._sub_bucket_count >> 1
        self._sub_bucket_mask = self._sub_bucket_count - 1

        # Each bucket doubles the covered range of the previous one
        bucket_count = 1
        smallest_untrackable = self._sub_bucket_count
        while smallest_untrackable <= highest_trackable_us:
            smallest_untrackable <<= 1
            bucket_count += 1
        self._bucket_count = bucket_count

        self._counts = [0] * ((bucket_count + 1) * self._sub_bucket_half_count)
        self._total_count = 0
        self._total_us = 0
        self._min_us: int | None = None
        self._max_us: int | None = None

    def record(self, latency_ms: float) -> None:
        """
        Record a single latency sample.

        Args:
            latency_ms: Non-negative latency in milliseconds
        """
        if latency_ms < 0 or math.isnan(latency_ms):
            raise ValueError(f"Latency must be a non-negative number, got {latency_ms}")

        value = min(round(latency_ms * MICROS_PER_MS), self.highest_trackable_us)
        self._counts[self._counts_index_for(value)] += 1
        self._total_count += 1
        self._total_us += value
        if self._min_us is None or value < self._min_us:
            self._min_us = value
        if self._max_us is None or value > self._max_us:
            self._max_us = value

    def quantile(self, q: float) -> float | None:
        """
        Estimate the latency at a quantile.

        Args:
            q: Quantile to estimate (0-1)

        Returns:
            Latency in milliseconds, or None when nothing has been recorded
        """
        if not 0.0 <= q <= 1.0:
            raise ValueError(f"Quantile must be within [0, 1], got {q}")
        if self._total_count == 0:
            return None

        target = min(max(1, int(q * self._total_count + 0.5)), self._total_count)
        running = 0
        for index, count in enumerate(self._counts):
            running += count
            if running >= target:
                value = self._highest_equivalent_value(self._value_from_index(index))
                return min(value, self._max_us or value) / MICROS_PER_MS

        # Unreachable while counts and total agree
        raise RuntimeError("Histogram counts are inconsistent with total count")

    @property
    def count(self) -> int:
        return self._total_count

    @property
    def min_ms(self) -> float | None:
        return None if self._min_us is None else self._min_us / MICROS_PER_MS

    @property
    def max_ms(self) -> float | None:
        return None if self._max_us is None else self._max_us / MICROS_PER_MS

    @property
    def mean_ms(self) -> float | None:
        if self._total_count == 0:
            return None
        return self._total_us / self._total_count / MICROS_PER_MS

    def _bucket_index(self, value: int) -> int:
        return (value | self._sub_bucket_mask).bit_length() - self._sub_bucket_magnitude

    def _counts_index_for(self, value: int) -> int:
        bucket = self._bucket_index(value)
        sub_bucket = value >> bucket
        return ((bucket + 1) << self._sub_bucket_half_magnitude) + (
            sub_bucket - self._sub_bucket_half_count
        )

    def _value_from_index(self, index: int) -> int:
        bucket = (index >> self._sub_bucket_half_magnitude) - 1
        sub_bucket = (index & (self._sub_bucket_half_count - 1)) + self._sub_bucket_half_count
        if bucket < 0:
            sub_bucket -= self._sub_bucket_half_count
            bucket = 0
        return sub_bucket << bucket

    def _highest_equivalent_value(self, value: int) -> int:
        """Largest value that lands in the same bucket slot as ``value``."""
        bucket = self._bucket_index(value)
        sub_bucket = value >> bucket
        adjusted_bucket = bucket + 1 if sub_bucket >= self._sub_bucket_count else bucket
        lowest_equivalent = sub_bucket << bucket
        return lowest_equivalent + (1 << adjusted_bucket) - 1
