"""
参与者状态检查 - 从 Kubernetes 读取参与者部署的资源状态并汇总为整体状态
"""

from .checker import StatusChecker, paginate
from .config import StatusConfig
from .collectors.models import (
    ProvisioningStatus,
    ComponentStatus,
    ParticipantStatusResponse,
    ParticipantSummary,
    ParticipantListResponse,
)
from .utils.errors import (
    StatusCheckError,
    BackingUnavailableError,
    is_backing_unavailable_error,
)

__version__ = "1.0.0"

__all__ = [
    "StatusChecker",
    "StatusConfig",
    "paginate",
    "ProvisioningStatus",
    "ComponentStatus",
    "ParticipantStatusResponse",
    "ParticipantSummary",
    "ParticipantListResponse",
    "StatusCheckError",
    "BackingUnavailableError",
    "is_backing_unavailable_error",
]
