"""Fleet discovery package."""

from fleetmon.discovery.kubernetes import KubernetesDiscovery
from fleetmon.discovery.models import ServerDescriptor

__all__ = [
    "KubernetesDiscovery",
    "ServerDescriptor",
]
