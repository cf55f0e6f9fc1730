from fleetmon.models.health import HealthHourly, HealthSample

__all__ = [
    "HealthHourly",
    "HealthSample",
]
