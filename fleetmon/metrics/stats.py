"""Statistics used to build hourly rollups."""

import math
from collections.abc import Iterable
from dataclasses import dataclass


def percentile(values: list[float], p: float) -> float | None:
    """Percentile by linear interpolation between closest ranks.

    The rank is p/100 * (n - 1) over the sorted values; a fractional rank
    interpolates between the values at its floor and ceiling.

    Args:
        values: Data points (any order)
        p: Percentile in [0, 100]

    Returns:
        The interpolated value, None for an empty input.
    """
    if not values:
        return None
    if not 0 <= p <= 100:
        raise ValueError(f"percentile must be within [0, 100], got {p}")

    ordered = sorted(values)
    if len(ordered) == 1:
        return ordered[0]

    rank = p / 100 * (len(ordered) - 1)
    lower = math.floor(rank)
    upper = math.ceil(rank)
    if lower == upper:
        return ordered[lower]

    fraction = rank - lower
    return ordered[lower] + (ordered[upper] - ordered[lower]) * fraction


@dataclass(frozen=True)
class RollupStats:
    """Aggregate for one server over one hour."""

    sample_count: int
    healthy_count: int
    avg_latency_ms: float | None
    min_latency_ms: float | None
    max_latency_ms: float | None
    p95_latency_ms: float | None


def compute_rollup(samples: Iterable[tuple[bool, float | None]]) -> RollupStats:
    """Aggregate (is_healthy, latency_ms) pairs.

    Latency statistics cover healthy samples that carry a latency and are
    None when there are none.
    """
    sample_count = 0
    healthy_count = 0
    latencies: list[float] = []

    for is_healthy, latency_ms in samples:
        sample_count += 1
        if is_healthy:
            healthy_count += 1
            if latency_ms is not None:
                latencies.append(latency_ms)

    if not latencies:
        return RollupStats(
            sample_count=sample_count,
            healthy_count=healthy_count,
            avg_latency_ms=None,
            min_latency_ms=None,
            max_latency_ms=None,
            p95_latency_ms=None,
        )

    low = min(latencies)
    high = max(latencies)
    # Float summation can drift past the extremes for near-identical values
    avg = min(max(sum(latencies) / len(latencies), low), high)

    return RollupStats(
        sample_count=sample_count,
        healthy_count=healthy_count,
        avg_latency_ms=avg,
        min_latency_ms=low,
        max_latency_ms=high,
        p95_latency_ms=percentile(latencies, 95),
    )
