"""
测试 KubectlResourceReader: JSON 解析与错误映射
"""

import asyncio

import pytest

from participant_status.collectors.k8s_client import KubectlWrapper
from participant_status.collectors.models import Resource, ResourceKind
from participant_status.collectors.reader import KubectlResourceReader
from participant_status.utils.errors import (
    BackingUnavailableError,
    CollectionError,
    ResourceNotFoundError,
    StatusErrorCode,
)


class StubKubectl(KubectlWrapper):
    """按命令返回预设结果, 不启动子进程"""

    def __init__(self, results, context=None):
        super().__init__(context=context)
        self.results = results
        self.commands = []

    async def run(self, cmd, timeout=None):
        self.commands.append(cmd)
        key = " ".join(cmd[1:])
        return self.results[key]


DEPLOYMENT = {
    "metadata": {"name": "controlplane", "namespace": "alice"},
    "spec": {"replicas": 2},
    "status": {"replicas": 2, "readyReplicas": 1, "unavailableReplicas": 1},
}

STATEFULSET = {
    "metadata": {"name": "postgres", "namespace": "alice"},
    "spec": {},
    "status": {"replicas": 1, "readyReplicas": 1},
}


def test_from_manifest_deployment():
    resource = Resource.from_manifest(ResourceKind.DEPLOYMENT, DEPLOYMENT)

    assert resource.name == "controlplane"
    assert resource.namespace == "alice"
    assert resource.desired_replicas == 2
    assert resource.current_replicas == 2
    assert resource.ready_replicas == 1
    assert resource.unavailable_replicas == 1
    assert resource.is_deleting is False


def test_from_manifest_statefulset_without_replicas():
    resource = Resource.from_manifest(ResourceKind.STATEFULSET, STATEFULSET)

    assert resource.desired_replicas is None
    assert resource.unavailable_replicas is None


def test_from_manifest_empty_status():
    resource = Resource.from_manifest(ResourceKind.DEPLOYMENT, {"metadata": {"name": "x"}})

    assert (resource.current_replicas, resource.ready_replicas, resource.unavailable_replicas) == (0, 0, 0)


def test_get_namespace_with_deletion_timestamp():
    stub = StubKubectl({
        "get namespace alice -o json": {
            "success": True,
            "data": {"metadata": {"name": "alice", "deletionTimestamp": "2026-01-01T12:00:00Z"}},
        },
    })

    resource = asyncio.run(KubectlResourceReader(stub).get(None, ResourceKind.NAMESPACE, "alice"))

    assert resource.kind == ResourceKind.NAMESPACE
    assert resource.is_deleting is True


def test_list_deployments():
    stub = StubKubectl({
        "get deployment -n alice -o json": {"success": True, "data": {"items": [DEPLOYMENT]}},
    })

    resources = asyncio.run(KubectlResourceReader(stub).list("alice", ResourceKind.DEPLOYMENT))

    assert [r.name for r in resources] == ["controlplane"]


def test_context_is_passed_to_kubectl():
    stub = StubKubectl(
        {"--context kind-dev get namespaces -o json": {"success": True, "data": {"items": []}}},
        context="kind-dev",
    )

    asyncio.run(KubectlResourceReader(stub).list(None, ResourceKind.NAMESPACE))

    assert stub.commands[0][:3] == ["kubectl", "--context", "kind-dev"]


def test_not_found_is_mapped():
    stub = StubKubectl({
        "get namespace ghost -o json": {
            "success": False,
            "error": 'Error from server (NotFound): namespaces "ghost" not found',
        },
    })

    with pytest.raises(ResourceNotFoundError) as exc_info:
        asyncio.run(KubectlResourceReader(stub).get(None, ResourceKind.NAMESPACE, "ghost"))

    assert exc_info.value.details["name"] == "ghost"


@pytest.mark.parametrize("error,timeout", [
    ("The connection to the server 127.0.0.1:6443 was refused - did you specify the right host or port?", False),
    ("Unable to connect to the server: dial tcp 10.0.0.1:6443: i/o timeout", False),
    ("Command timed out after 10s", True),
])
def test_connectivity_errors_are_mapped(error, timeout):
    stub = StubKubectl({"get namespaces -o json": {"success": False, "error": error}})

    with pytest.raises(BackingUnavailableError) as exc_info:
        asyncio.run(KubectlResourceReader(stub).list(None, ResourceKind.NAMESPACE))

    expected = StatusErrorCode.TIMEOUT if timeout else StatusErrorCode.API_UNAVAILABLE
    assert exc_info.value.code == expected


def test_other_errors_are_collection_errors():
    stub = StubKubectl({
        "get statefulset -n alice -o json": {
            "success": False,
            "error": 'Error from server (Forbidden): statefulsets.apps is forbidden',
            "cmd": "kubectl get statefulset -n alice -o json",
        },
    })

    with pytest.raises(CollectionError) as exc_info:
        asyncio.run(KubectlResourceReader(stub).list("alice", ResourceKind.STATEFULSET))

    assert exc_info.value.details["resource_type"] == "statefulset"


def test_events_timestamp_fallbacks():
    stub = StubKubectl({
        "get events -n alice -o json": {"success": True, "data": {"items": [
            {"type": "Normal", "message": "core", "lastTimestamp": "2026-01-01T11:58:00Z"},
            {"type": "Warning", "message": "series", "lastTimestamp": None,
             "eventTime": "2026-01-01T11:59:00.123456Z"},
            {"type": "Normal", "message": "created",
             "metadata": {"creationTimestamp": "2026-01-01T11:57:00Z"}},
            {"type": "Normal", "message": "no time"},
        ]}},
    })

    events = asyncio.run(KubectlResourceReader(stub).list_events("alice"))

    assert [e.message for e in events] == ["core", "series", "created"]
    assert events[1].timestamp.microsecond == 123456
    assert events[0].timestamp.tzinfo is not None


def test_events_with_null_fields():
    stub = StubKubectl({
        "get events -n alice -o json": {"success": True, "data": {"items": [
            {"type": None, "message": None, "lastTimestamp": "2026-01-01T11:58:00Z"},
        ]}},
    })

    events = asyncio.run(KubectlResourceReader(stub).list_events("alice"))

    assert len(events) == 1
    assert events[0].type == ""
    assert events[0].message == ""
