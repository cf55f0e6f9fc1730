"""Error types shared across the monitoring pipeline."""


class FleetmonError(Exception):
    """Base exception for fleet monitoring errors."""
    pass


class PlatformUnavailable(FleetmonError):
    """The orchestration API could not be reached or rejected our credentials."""

    def __init__(self, message: str, namespace: str | None = None):
        super().__init__(message)
        self.namespace = namespace


class StoreUnavailable(FleetmonError):
    """A read or write against the metrics store failed."""

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation


class AggregationSkipped(FleetmonError):
    """A rollup or retention run failed partway and will retry on its next tick."""

    def __init__(self, message: str, job: str | None = None):
        super().__init__(message)
        self.job = job
