"""
整体状态归约

根据组件状态映射计算参与者的 ProvisioningStatus 和说明文字。
结果只取决于输入的组件映射和关键组件列表。
"""

from typing import Dict, Mapping, Sequence, Tuple

from ..collectors.models import (
    ComponentStatus,
    DEFAULT_CRITICAL_COMPONENTS,
    ProvisioningStatus,
)


def determine_overall_status(
    components: Mapping[str, ComponentStatus],
    critical_components: Sequence[str] = tuple(DEFAULT_CRITICAL_COMPONENTS),
) -> Tuple[ProvisioningStatus, str]:
    """
    计算整体状态

    决策顺序:
    1. 没有任何组件                      -> PROVISIONING
    2. 关键组件全部就绪, 非关键组件也就绪 -> READY
    3. 关键组件全部就绪, 有非关键组件未就绪 -> DEGRADED
    4. 关键组件全部未就绪 (或缺失)        -> PROVISIONING
    5. 部分关键组件未就绪                -> DEGRADED, 附带第一条问题描述

    Args:
        components: 组件名 -> ComponentStatus
        critical_components: 关键组件名称列表 (有序)

    Returns:
        (状态, 说明)
    """
    if not components:
        return ProvisioningStatus.PROVISIONING, "No components found, provisioning may be in progress"

    critical_not_ready = 0
    messages = []

    for name in critical_components:
        component = components.get(name)
        if component is None:
            critical_not_ready += 1
            messages.append(f"Critical component {name} not found")
            continue

        if not component.ready:
            critical_not_ready += 1
            if component.message:
                messages.append(f"{name}: {component.message}")

    critical_names = set(critical_components)
    any_non_critical_not_ready = any(
        not component.ready
        for name, component in components.items()
        if name not in critical_names
    )

    all_critical_ready = critical_not_ready == 0

    if all_critical_ready and not any_non_critical_not_ready:
        return ProvisioningStatus.READY, "All components are running and ready"

    if all_critical_ready:
        return (
            ProvisioningStatus.DEGRADED,
            "All critical components ready, but some non-critical components are not ready",
        )

    if critical_not_ready == len(critical_components):
        # 关键组件一个都没起来, 大概率仍在创建中
        return ProvisioningStatus.PROVISIONING, "Critical components are not yet ready"

    msg = f"{critical_not_ready} of {len(critical_components)} critical components not ready"
    if messages:
        msg = msg + ": " + messages[0]
    return ProvisioningStatus.DEGRADED, msg


def summarize_components(components: Mapping[str, ComponentStatus]) -> Dict[str, int]:
    """按 status 标签统计组件数量"""
    counts: Dict[str, int] = {}
    for component in components.values():
        counts[component.status] = counts.get(component.status, 0) + 1
    return counts
