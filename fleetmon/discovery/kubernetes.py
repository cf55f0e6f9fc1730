"""Kubernetes-backed server discovery.

Wraps the official ``kubernetes`` Python client. All SDK calls are blocking
and run in threads via asyncio.to_thread(). The client is built lazily on the
first discovery so that a cluster that is unreachable at startup only costs
the affected cycles, never the process.

Usage:
    discovery = KubernetesDiscovery(namespace="file-simulator", in_cluster=True)
    servers = await discovery.discover()
"""

import asyncio
import logging
from typing import Any

from fleetmon.discovery.models import ServerDescriptor
from fleetmon.discovery.naming import (
    detect_protocol,
    find_matching_service,
    is_pod_ready,
    resolve_server_name,
)
from fleetmon.errors import PlatformUnavailable

logger = logging.getLogger(__name__)

DEFAULT_LABEL_SELECTOR = "app.kubernetes.io/name=file-simulator"
DEFAULT_REQUEST_TIMEOUT = 10.0


class KubernetesDiscovery:
    """Discovers fleet servers from pods and services carrying the fleet label."""

    def __init__(
        self,
        namespace: str = "file-simulator",
        label_selector: str = DEFAULT_LABEL_SELECTOR,
        self_name: str = "control-api",
        in_cluster: bool = True,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        core_api: Any | None = None,
    ) -> None:
        """Initialize discovery.

        Args:
            namespace: Namespace holding the fleet
            label_selector: Label selector identifying fleet pods and services
            self_name: Pods whose name contains this are the monitor itself and are skipped
            in_cluster: Use the pod service account; otherwise load ~/.kube/config
            request_timeout: Seconds allowed per API list call, connect and read
            core_api: Pre-built CoreV1Api (tests inject a mock here)
        """
        self._namespace = namespace
        self._label_selector = label_selector
        self._self_name = self_name
        self._in_cluster = in_cluster
        self._request_timeout = request_timeout
        self._core_api = core_api

    @property
    def namespace(self) -> str:
        return self._namespace

    def _build_core_api(self) -> Any:
        from kubernetes import client, config

        try:
            if self._in_cluster:
                config.load_incluster_config()
                logger.info("Kubernetes client configured for in-cluster access")
            else:
                config.load_kube_config()
                logger.info("Kubernetes client configured from kubeconfig")
        except config.ConfigException as e:
            raise PlatformUnavailable(
                f"Kubernetes configuration unavailable: {e}", namespace=self._namespace
            ) from e

        return client.CoreV1Api()

    async def _get_core_api(self) -> Any:
        if self._core_api is None:
            self._core_api = await asyncio.to_thread(self._build_core_api)
        return self._core_api

    async def _list(self, method_name: str) -> list[Any]:
        core_api = await self._get_core_api()
        method = getattr(core_api, method_name)
        try:
            result = await asyncio.to_thread(
                method,
                self._namespace,
                label_selector=self._label_selector,
                _request_timeout=self._request_timeout,
            )
        except Exception as e:
            # ApiException for auth/HTTP errors, urllib3 errors for transport and timeouts
            status = getattr(e, "status", None)
            detail = f"HTTP {status}" if status else type(e).__name__
            raise PlatformUnavailable(
                f"Kubernetes API call {method_name} failed ({detail}): {e}",
                namespace=self._namespace,
            ) from e
        return list(result.items or [])

    async def discover(self) -> list[ServerDescriptor]:
        """List fleet servers currently known to the platform.

        Returns:
            Descriptors for every labelled pod with a recognised protocol and
            a matching service. Empty if nothing matches.

        Raises:
            PlatformUnavailable: The API could not be reached or rejected the request
        """
        pods = await self._list("list_namespaced_pod")
        services = await self._list("list_namespaced_service")

        logger.debug(f"Found {len(pods)} pods, {len(services)} services in {self._namespace}")

        servers: list[ServerDescriptor] = []
        for pod in pods:
            descriptor = self._to_descriptor(pod, services)
            if descriptor is not None:
                servers.append(descriptor)

        logger.debug(f"Discovered {len(servers)} protocol servers")
        return servers

    def _to_descriptor(self, pod: Any, services: list[Any]) -> ServerDescriptor | None:
        pod_name = pod.metadata.name

        if self._self_name and self._self_name in pod_name:
            return None

        protocol = detect_protocol(pod_name)
        if protocol is None:
            logger.debug(f"Skipping pod {pod_name} - unknown protocol")
            return None

        service = find_matching_service(pod, services)
        if service is None:
            logger.warning(f"No service found for pod {pod_name}")
            return None

        ports = service.spec.ports or []
        first_port = ports[0] if ports else None
        labels = pod.metadata.labels or {}
        name, is_dynamic, managed_by = resolve_server_name(pod_name, labels)

        return ServerDescriptor(
            name=name,
            protocol=protocol,
            host=service.spec.cluster_ip or "",
            port=first_port.port if first_port else 0,
            lifecycle_state=(pod.status.phase if pod.status else None) or "Unknown",
            pod_name=pod_name,
            service_name=service.metadata.name,
            node_port=first_port.node_port if first_port else None,
            pod_ready=is_pod_ready(pod),
            is_dynamic=is_dynamic,
            managed_by=managed_by,
        )

    async def get_server(self, name: str) -> ServerDescriptor | None:
        """Look up a single server by name (case-insensitive).

        Raises:
            PlatformUnavailable: The API could not be reached
        """
        servers = await self.discover()
        wanted = name.lower()
        for server in servers:
            if server.name.lower() == wanted:
                return server
        return None
