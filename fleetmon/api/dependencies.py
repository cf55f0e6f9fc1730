"""FastAPI dependencies for the monitoring services."""

from fastapi import Depends, HTTPException

from fleetmon.query.service import QueryService
from fleetmon.setup import get_services


def current_query_service() -> QueryService | None:
    """The query service, or None before startup has completed."""
    services = get_services()
    if services is None:
        return None
    return services.query


def get_query_service(query: QueryService | None = Depends(current_query_service)) -> QueryService:
    """The query service; 503 while the monitoring services are not initialized."""
    if query is None:
        raise HTTPException(status_code=503, detail="Monitoring services not initialized")
    return query
