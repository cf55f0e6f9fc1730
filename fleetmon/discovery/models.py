"""Discovery models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

# Pod phase reported by Kubernetes for a scheduled, started pod
RUNNING_PHASE = "Running"


@dataclass(frozen=True)
class ServerDescriptor:
    """A monitored protocol server as seen by the orchestration platform.

    Attributes:
        name: Stable server name (e.g. "ftp", "nas-input-1")
        protocol: Protocol kind (FTP, SFTP, NFS, HTTP, WebDAV, S3, SMB, Management)
        host: Address probed for reachability (service cluster IP)
        port: Service port probed for reachability
        lifecycle_state: Pod phase (Running, Pending, Failed, ...)
        pod_name: Backing pod name
        service_name: Kubernetes service fronting the pod
        node_port: NodePort exposed outside the cluster, if any
        pod_ready: Whether the pod's Ready condition is True
        is_dynamic: True when the server was created at runtime rather than by Helm
        managed_by: Value of the managed-by label
        discovered_at: When this descriptor was produced
    """

    name: str
    protocol: str
    host: str
    port: int
    lifecycle_state: str
    pod_name: str = ""
    service_name: str = ""
    node_port: int | None = None
    pod_ready: bool = False
    is_dynamic: bool = False
    managed_by: str = "Helm"
    discovered_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_running(self) -> bool:
        """True when the pod is in the Running phase and reports Ready."""
        return self.lifecycle_state == RUNNING_PHASE and self.pod_ready
