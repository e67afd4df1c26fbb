"""
组件状态评估

把单个 Deployment / StatefulSet 的副本数映射为 ComponentStatus。
判定顺序 (先匹配者生效):
1. ready == desired 且 desired > 0  -> Running
2. current == 0                     -> Pending
3. ready < desired                  -> Starting
4. unavailable > 0 (仅 Deployment)  -> Degraded
5. 其他                             -> Unknown
"""

from ..collectors.models import (
    ComponentStatus,
    ReplicaStatus,
    Resource,
    ResourceKind,
)

# 提供 unavailableReplicas 字段的资源类型
KINDS_WITH_UNAVAILABLE = {ResourceKind.DEPLOYMENT}


def evaluate_component(resource: Resource) -> ComponentStatus:
    """评估单个组件的状态

    Args:
        resource: Deployment 或 StatefulSet

    Returns:
        ComponentStatus
    """
    # spec.replicas 未设置时 Kubernetes 默认 1 个副本
    desired = resource.desired_replicas if resource.desired_replicas is not None else 1
    current = resource.current_replicas
    ready = resource.ready_replicas

    status = "Unknown"
    is_ready = False
    message = ""

    if ready == desired and desired > 0:
        status = "Running"
        is_ready = True
    elif current == 0:
        status = "Pending"
        message = "No pods are running"
    elif ready < desired:
        status = "Starting"
        message = f"{ready} of {desired} replicas ready"
    elif resource.kind in KINDS_WITH_UNAVAILABLE and (resource.unavailable_replicas or 0) > 0:
        status = "Degraded"
        message = f"{resource.unavailable_replicas} replicas unavailable"

    return ComponentStatus(
        status=status,
        ready=is_ready,
        replicas=ReplicaStatus(desired=desired, current=current, ready=ready),
        message=message,
    )
