"""
Online checkout-latency statistics.

StatsAggregator keeps O(1) state no matter how many samples it sees. Each
metric is its own small estimator with an explicit add(); the aggregator
feeds every sample to each of them in turn.

Low-count conventions:
- no samples: last is NaN, min is +inf, max is -inf, mean is 0.0
- fewer than two samples: variance, error and std_dev are 0.0
"""

import math
from dataclasses import dataclass


class LastValue:
    """Most recent sample."""

    def __init__(self) -> None:
        self.value = math.nan

    def add(self, x: float) -> None:
        self.value = x


class Minimum:
    def __init__(self) -> None:
        self.value = math.inf

    def add(self, x: float) -> None:
        if x < self.value:
            self.value = x


class Maximum:
    def __init__(self) -> None:
        self.value = -math.inf

    def add(self, x: float) -> None:
        if x > self.value:
            self.value = x


class Variance:
    """
    Welford's single-pass mean and variance.

    Carries count, mean and the sum of squared deviations (m2). Avoids the
    cancellation that accumulating sum and sum-of-squares would suffer.
    """

    def __init__(self) -> None:
        self.count = 0
        self.mean = 0.0
        self.m2 = 0.0

    def add(self, x: float) -> None:
        self.count += 1
        delta = x - self.mean
        self.mean += delta / self.count
        self.m2 += delta * (x - self.mean)

    def sample_variance(self) -> float:
        """Bessel-corrected variance; 0.0 below two samples."""
        if self.count < 2:
            return 0.0
        return self.m2 / (self.count - 1)

    def error(self) -> float:
        """Standard error of the mean; 0.0 below two samples."""
        if self.count < 2:
            return 0.0
        return math.sqrt(self.sample_variance() / self.count)


@dataclass(frozen=True)
class RunningStats:
    """
    Read-only view of the aggregator.

    All durations are in milliseconds.
    """
    count: int
    last: float
    min: float
    max: float
    mean: float
    variance: float
    error: float

    @property
    def std_dev(self) -> float:
        return math.sqrt(self.variance)

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "last": self.last,
            "min": self.min,
            "max": self.max,
            "mean": self.mean,
            "variance": self.variance,
            "error": self.error,
            "std_dev": self.std_dev,
        }


class StatsAggregator:
    """
    Running descriptive statistics over a stream of latency samples.

    Usage:
        agg = StatsAggregator()
        for ms in (5, 1, 9, 3):
            agg.sample(ms)
        agg.mean()      # 4.5
        agg.variance()  # 11.666... (35 / 3)
    """

    def __init__(self) -> None:
        self._last = LastValue()
        self._min = Minimum()
        self._max = Maximum()
        self._variance = Variance()

    def sample(self, value: float) -> None:
        """
        Record one sample.

        Raises:
            ValueError: If value is negative or NaN
        """
        value = float(value)
        if math.isnan(value) or value < 0:
            raise ValueError(f"latency sample must be a non-negative number, got {value}")
        self._last.add(value)
        self._min.add(value)
        self._max.add(value)
        self._variance.add(value)

    @property
    def count(self) -> int:
        return self._variance.count

    def last(self) -> float:
        return self._last.value

    def min(self) -> float:
        return self._min.value

    def max(self) -> float:
        return self._max.value

    def mean(self) -> float:
        return self._variance.mean

    def variance(self) -> float:
        return self._variance.sample_variance()

    def error(self) -> float:
        return self._variance.error()

    def std_dev(self) -> float:
        return math.sqrt(self.variance())

    def snapshot(self) -> RunningStats:
        return RunningStats(
            count=self.count,
            last=self.last(),
            min=self.min(),
            max=self.max(),
            mean=self.mean(),
            variance=self.variance(),
            error=self.error(),
        )
