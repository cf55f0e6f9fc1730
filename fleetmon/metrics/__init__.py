"""Metrics persistence and rollup statistics."""

from fleetmon.metrics.stats import RollupStats, compute_rollup, percentile
from fleetmon.metrics.store import MetricsStore, ServerSummary

__all__ = [
    "MetricsStore",
    "RollupStats",
    "ServerSummary",
    "compute_rollup",
    "percentile",
]
