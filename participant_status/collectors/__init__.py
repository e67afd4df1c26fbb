"""
收集器模块 - 从集群读取资源状态

提供 kubectl 客户端、资源读取接口、状态缓存和事件收集
"""

from .k8s_client import KubectlWrapper
from .reader import ResourceReader, KubectlResourceReader
from .cache import StatusCache
from .event_collector import collect_recent_events, select_recent_events
from .models import (
    ProvisioningStatus,
    ResourceKind,
    Resource,
    ReplicaStatus,
    ComponentStatus,
    Event,
    ParticipantStatusResponse,
    ParticipantSummary,
    ParticipantListResponse,
    COMPONENT_KINDS,
    DEFAULT_CRITICAL_COMPONENTS,
    DEFAULT_RESERVED_NAMESPACES,
)

__all__ = [
    # K8s 客户端
    "KubectlWrapper",
    "ResourceReader",
    "KubectlResourceReader",
    # 缓存
    "StatusCache",
    # 事件
    "collect_recent_events",
    "select_recent_events",
    # 模型
    "ProvisioningStatus",
    "ResourceKind",
    "Resource",
    "ReplicaStatus",
    "ComponentStatus",
    "Event",
    "ParticipantStatusResponse",
    "ParticipantSummary",
    "ParticipantListResponse",
    "COMPONENT_KINDS",
    "DEFAULT_CRITICAL_COMPONENTS",
    "DEFAULT_RESERVED_NAMESPACES",
]
