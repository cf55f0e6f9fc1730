"""Tests for pod name and label interpretation."""

import pytest
from kubernetes.client import (
    V1ObjectMeta,
    V1Pod,
    V1PodCondition,
    V1PodStatus,
    V1Service,
    V1ServiceSpec,
)

from fleetmon.discovery.naming import (
    derive_server_name,
    detect_protocol,
    find_matching_service,
    is_pod_ready,
    resolve_server_name,
)


class TestDetectProtocol:
    @pytest.mark.parametrize(
        "pod_name,expected",
        [
            ("file-sim-file-simulator-ftp-7d9f-abcde", "FTP"),
            ("file-sim-file-simulator-sftp-7d9f-abcde", "SFTP"),
            ("file-sim-file-simulator-nas-input-1-7d9f-abcde", "NFS"),
            ("file-sim-file-simulator-webdav-7d9f-abcde", "WebDAV"),
            ("file-sim-file-simulator-http-7d9f-abcde", "HTTP"),
            ("file-sim-file-simulator-s3-7d9f-abcde", "S3"),
            ("file-sim-file-simulator-smb-7d9f-abcde", "SMB"),
            ("file-sim-file-simulator-management-7d9f-abcde", "Management"),
        ],
    )
    def test_known_protocols(self, pod_name, expected):
        assert detect_protocol(pod_name) == expected

    def test_unknown_protocol(self):
        assert detect_protocol("file-sim-file-simulator-kafka-0") is None


class TestDeriveServerName:
    @pytest.mark.parametrize(
        "pod_name,expected",
        [
            ("file-sim-file-simulator-nas-input-1-5f7d8-x2k4q", "nas-input-1"),
            ("file-sim-file-simulator-nas-output-3-5f7d8-x2k4q", "nas-output-3"),
            ("file-sim-file-simulator-nas-backup-5f7d8-x2k4q", "nas-backup"),
            ("file-sim-file-simulator-sftp-6c9b-q8w2z", "sftp"),
            ("file-sim-file-simulator-ftp-6c9b-q8w2z", "ftp"),
            ("file-sim-file-simulator-s3-6c9b-q8w2z", "s3"),
        ],
    )
    def test_helm_pod_names(self, pod_name, expected):
        assert derive_server_name(pod_name) == expected

    def test_unparseable_name_falls_back_to_pod_name(self):
        assert derive_server_name("ftpserver-0") == "ftpserver-0"


class TestResolveServerName:
    def test_dynamic_server_uses_instance_label(self):
        labels = {
            "app.kubernetes.io/managed-by": "control-api",
            "app.kubernetes.io/instance": "my-ftp",
        }

        assert resolve_server_name("file-sim-ftp-my-ftp-abc", labels) == ("my-ftp", True, "control-api")

    def test_helm_server_parses_pod_name(self):
        labels = {"app.kubernetes.io/managed-by": "Helm"}

        assert resolve_server_name("file-sim-file-simulator-ftp-abc-123", labels) == ("ftp", False, "Helm")

    def test_missing_managed_by_defaults_to_helm(self):
        assert resolve_server_name("file-sim-file-simulator-smb-abc", {})[2] == "Helm"


class TestServiceMatching:
    def test_selector_subset_matches(self):
        pod = V1Pod(metadata=V1ObjectMeta(name="p", labels={"app": "ftp", "tier": "sim", "extra": "x"}))
        other = V1Service(metadata=V1ObjectMeta(name="sftp"), spec=V1ServiceSpec(selector={"app": "sftp"}))
        match = V1Service(
            metadata=V1ObjectMeta(name="ftp"), spec=V1ServiceSpec(selector={"app": "ftp", "tier": "sim"})
        )

        assert find_matching_service(pod, [other, match]) is match

    def test_service_without_selector_never_matches(self):
        pod = V1Pod(metadata=V1ObjectMeta(name="p", labels={"app": "ftp"}))
        headless = V1Service(metadata=V1ObjectMeta(name="x"), spec=V1ServiceSpec(selector=None))

        assert find_matching_service(pod, [headless]) is None


class TestPodReadiness:
    def test_ready_condition_true(self):
        pod = V1Pod(status=V1PodStatus(conditions=[V1PodCondition(type="Ready", status="True")]))
        assert is_pod_ready(pod) is True

    def test_ready_condition_false(self):
        pod = V1Pod(status=V1PodStatus(conditions=[V1PodCondition(type="Ready", status="False")]))
        assert is_pod_ready(pod) is False

    def test_no_conditions(self):
        assert is_pod_ready(V1Pod(status=V1PodStatus())) is False
