"""Workers package for scheduled aggregation and cleanup."""

from fleetmon.workers.retention import ReapResult, RetentionReaper
from fleetmon.workers.rollup import RollupGenerator

__all__ = [
    "ReapResult",
    "RetentionReaper",
    "RollupGenerator",
]
