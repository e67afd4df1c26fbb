"""
资源读取接口

StatusChecker 只依赖 ResourceReader 协议; KubectlResourceReader 是基于
kubectl 的默认实现, 负责把 kubectl 的失败结果转换为结构化异常。
"""

from datetime import datetime
from typing import Dict, List, Optional, Protocol

from .k8s_client import KubectlWrapper
from .models import Event, Resource, ResourceKind
from ..utils.errors import (
    BackingUnavailableError,
    CollectionError,
    ResourceNotFoundError,
    is_backing_unavailable_error,
)


class ResourceReader(Protocol):
    """集群只读访问能力

    namespace 为 None 时表示集群级资源 (Namespace 本身)
    """

    async def get(self, namespace: Optional[str], kind: ResourceKind, name: str) -> Resource:
        """获取单个资源, 不存在时抛出 ResourceNotFoundError"""
        ...

    async def list(self, namespace: Optional[str], kind: ResourceKind) -> List[Resource]:
        ...

    async def list_events(self, namespace: str) -> List[Event]:
        ...


class KubectlResourceReader:
    """基于 kubectl 的 ResourceReader 实现"""

    def __init__(self, client: Optional[KubectlWrapper] = None):
        self.client = client or KubectlWrapper()

    async def get(self, namespace: Optional[str], kind: ResourceKind, name: str) -> Resource:
        if kind == ResourceKind.NAMESPACE:
            result = await self.client.get_namespace(name)
        else:
            result = await self.client.get_resource(kind.value, name, namespace)

        data = _unwrap(result, kind, namespace, name)
        return Resource.from_manifest(kind, data)

    async def list(self, namespace: Optional[str], kind: ResourceKind) -> List[Resource]:
        if kind == ResourceKind.NAMESPACE:
            result = await self.client.get_namespaces()
        else:
            result = await self.client.get_resources(kind.value, namespace)

        data = _unwrap(result, kind, namespace)
        return [Resource.from_manifest(kind, item) for item in data.get("items", [])]

    async def list_events(self, namespace: str) -> List[Event]:
        result = await self.client.get_events(namespace)
        data = _unwrap(result, "event", namespace)

        events = []
        for item in data.get("items", []):
            timestamp = _event_timestamp(item)
            if timestamp is None:
                continue
            events.append(Event(
                timestamp=timestamp,
                type=item.get("type") or "",
                message=item.get("message") or "",
            ))
        return events


def _unwrap(result: Dict, kind, namespace: Optional[str], name: Optional[str] = None) -> Dict:
    """检查 kubectl 结果, 失败时按错误类型抛出异常"""
    if result.get("success"):
        return result.get("data") or {}

    error = result.get("error", "")
    kind_name = kind.value if isinstance(kind, ResourceKind) else kind

    if "NotFound" in error or "not found" in error.lower():
        raise ResourceNotFoundError(error, kind=kind_name, name=name, namespace=namespace)

    details = {"cmd": result["cmd"]} if result.get("cmd") else None
    if is_backing_unavailable_error(Exception(error)):
        raise BackingUnavailableError(error, timeout="timed out" in error, details=details)

    raise CollectionError(error, resource_type=kind_name, namespace=namespace, details=details)


def _parse_timestamp(value) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _event_timestamp(item: Dict) -> Optional[datetime]:
    """事件时间: lastTimestamp > eventTime > creationTimestamp"""
    return (
        _parse_timestamp(item.get("lastTimestamp"))
        or _parse_timestamp(item.get("eventTime"))
        or _parse_timestamp((item.get("metadata") or {}).get("creationTimestamp"))
    )
