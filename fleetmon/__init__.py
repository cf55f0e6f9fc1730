"""Fleet health monitoring and metrics service."""

__version__ = "0.1.0"
