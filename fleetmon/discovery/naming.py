"""Helpers that map Kubernetes pods and services to fleet servers."""

from typing import Any

# Order matters: more specific keys first (sftp before ftp, management and
# webdav before http)
PROTOCOL_MAPPINGS: tuple[tuple[str, str], ...] = (
    ("management", "Management"),
    ("sftp", "SFTP"),
    ("ftp", "FTP"),
    ("nas", "NFS"),
    ("webdav", "WebDAV"),
    ("http", "HTTP"),
    ("s3", "S3"),
    ("smb", "SMB"),
)

MANAGED_BY_LABEL = "app.kubernetes.io/managed-by"
INSTANCE_LABEL = "app.kubernetes.io/instance"
DYNAMIC_MANAGER = "control-api"
DEFAULT_MANAGER = "Helm"


def detect_protocol(pod_name: str) -> str | None:
    """Detect the protocol served by a pod from its name.

    Args:
        pod_name: Kubernetes pod name

    Returns:
        Protocol kind, or None if the pod does not belong to a known protocol
    """
    lowered = pod_name.lower()
    for key, protocol in PROTOCOL_MAPPINGS:
        if key in lowered:
            return protocol
    return None


def derive_server_name(pod_name: str) -> str:
    """Extract a stable server name from a generated pod name.

    "file-sim-file-simulator-nas-input-1-5f7d-x2k" -> "nas-input-1"
    "file-sim-file-simulator-sftp-6c9b-q8w" -> "sftp"

    Protocol keys are matched against whole name segments so that "sftp"
    never resolves to "ftp".
    """
    parts = pod_name.split("-")

    for i in range(len(parts) - 1):
        if parts[i] == "nas" and i + 2 < len(parts):
            nas_kind = parts[i + 1]
            if nas_kind == "backup":
                return "nas-backup"
            if parts[i + 2].isdigit():
                return f"nas-{nas_kind}-{parts[i + 2]}"

    segments = {p.lower() for p in parts}
    for key, _ in PROTOCOL_MAPPINGS:
        if key in segments:
            return key

    return pod_name


def resolve_server_name(pod_name: str, labels: dict[str, str]) -> tuple[str, bool, str]:
    """Resolve (name, is_dynamic, managed_by) for a pod.

    Servers created at runtime carry their name in the instance label;
    Helm-managed servers fall back to parsing the pod name.
    """
    managed_by = labels.get(MANAGED_BY_LABEL, DEFAULT_MANAGER)
    is_dynamic = managed_by == DYNAMIC_MANAGER
    if is_dynamic and labels.get(INSTANCE_LABEL):
        return labels[INSTANCE_LABEL], is_dynamic, managed_by
    return derive_server_name(pod_name), is_dynamic, managed_by


def find_matching_service(pod: Any, services: list[Any]) -> Any | None:
    """Return the first service whose selector matches the pod's labels."""
    pod_labels = pod.metadata.labels or {}
    for service in services:
        selector = service.spec.selector if service.spec else None
        if not selector:
            continue
        if all(pod_labels.get(key) == value for key, value in selector.items()):
            return service
    return None


def is_pod_ready(pod: Any) -> bool:
    """True when the pod's Ready condition is True."""
    conditions = (pod.status.conditions if pod.status else None) or []
    for condition in conditions:
        if condition.type == "Ready":
            return condition.status == "True"
    return False
