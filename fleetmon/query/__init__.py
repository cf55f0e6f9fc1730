from fleetmon.query.service import InvalidRange, QueryService, Resolution

__all__ = [
    "InvalidRange",
    "QueryService",
    "Resolution",
]
