"""
状态数据模型定义

- 枚举和常量: 状态、资源类型、默认的关键组件列表
- Resource: 从 kubectl JSON 解析出的副本信息 (内部使用)
- Pydantic 模型: 对外导出的状态快照, 创建后不可修改
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class ProvisioningStatus(str, Enum):
    """参与者整体状态枚举"""
    PROVISIONING = "PROVISIONING"
    READY = "READY"
    DEGRADED = "DEGRADED"
    FAILED = "FAILED"
    DELETING = "DELETING"
    NOT_FOUND = "NOT_FOUND"


class ResourceKind(str, Enum):
    """资源类型枚举"""
    NAMESPACE = "namespace"
    DEPLOYMENT = "deployment"
    STATEFULSET = "statefulset"


# 参与组件状态评估的资源类型 (按顺序列出, 同名时后者覆盖前者)
COMPONENT_KINDS = (ResourceKind.DEPLOYMENT, ResourceKind.STATEFULSET)

# 关键组件: control plane / data plane / identity hub / PostgreSQL
DEFAULT_CRITICAL_COMPONENTS = [
    "controlplane",
    "dataplane",
    "identityhub",
    "postgres",
]

# 基础设施命名空间, 列表查询时跳过
DEFAULT_RESERVED_NAMESPACES = [
    "kube-system",
    "kube-public",
    "kube-node-lease",
    "default",
]


@dataclass(frozen=True)
class Resource:
    """一个集群资源的副本视图

    desired_replicas 为 None 表示 spec.replicas 未设置;
    unavailable_replicas 只有 Deployment 提供, 其他类型为 None
    """

    kind: ResourceKind
    name: str
    namespace: Optional[str] = None
    desired_replicas: Optional[int] = None
    current_replicas: int = 0
    ready_replicas: int = 0
    unavailable_replicas: Optional[int] = None
    deletion_timestamp: Optional[str] = None

    @property
    def is_deleting(self) -> bool:
        return self.deletion_timestamp is not None

    @classmethod
    def from_manifest(cls, kind: ResourceKind, manifest: Dict[str, Any]) -> "Resource":
        """从 kubectl -o json 的单个对象解析

        Args:
            kind: 资源类型
            manifest: Kubernetes 对象 (dict)

        Returns:
            Resource 实例
        """
        metadata = manifest.get("metadata") or {}
        spec = manifest.get("spec") or {}
        status = manifest.get("status") or {}

        unavailable = None
        if kind == ResourceKind.DEPLOYMENT:
            unavailable = status.get("unavailableReplicas", 0)

        return cls(
            kind=kind,
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace"),
            desired_replicas=spec.get("replicas"),
            current_replicas=status.get("replicas", 0),
            ready_replicas=status.get("readyReplicas", 0),
            unavailable_replicas=unavailable,
            deletion_timestamp=metadata.get("deletionTimestamp"),
        )


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class ReplicaStatus(_FrozenModel):
    desired: int = Field(ge=0)
    current: int = Field(ge=0)
    ready: int = Field(ge=0)


class ComponentStatus(_FrozenModel):
    """单个组件的归一化状态

    status 取值: Running | Pending | Starting | Degraded | Unknown
    """

    status: str
    ready: bool
    replicas: ReplicaStatus
    message: str = ""


class Event(_FrozenModel):
    timestamp: datetime
    type: str
    message: str


class ParticipantSummary(_FrozenModel):
    participant_name: str = Field(alias="participantName")
    status: ProvisioningStatus
    last_updated: datetime = Field(alias="lastUpdated")


class ParticipantStatusResponse(_FrozenModel):
    """参与者状态快照

    缓存中保存的就是这个对象, 多个调用方共享同一实例, 因此 components
    保存为只读映射, events 保存为 tuple; 每次重新评估都会新建实例
    """

    participant_name: str = Field(alias="participantName")
    status: ProvisioningStatus
    last_updated: datetime = Field(alias="lastUpdated")
    components: Mapping[str, ComponentStatus] = Field(default_factory=dict, validate_default=True)
    message: str = ""
    events: Tuple[Event, ...] = ()

    @field_validator("components")
    @classmethod
    def _freeze_components(cls, value: Mapping[str, ComponentStatus]) -> Mapping[str, ComponentStatus]:
        return MappingProxyType(dict(value))

    @field_serializer("components", mode="wrap")
    def _dump_components(self, value: Mapping[str, ComponentStatus], handler):
        return handler(dict(value))

    def to_summary(self) -> ParticipantSummary:
        return ParticipantSummary(
            participant_name=self.participant_name,
            status=self.status,
            last_updated=self.last_updated,
        )

    def to_dict(self) -> Dict[str, Any]:
        """转换为 JSON 兼容的字典 (camelCase 字段, 空 events/message 省略)"""
        data = self.model_dump(mode="json", by_alias=True)

        for component in data["components"].values():
            if not component.get("message"):
                component.pop("message", None)

        if not data["events"]:
            del data["events"]

        return data


class ParticipantListResponse(_FrozenModel):
    items: List[ParticipantSummary] = Field(default_factory=list)
    total: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
