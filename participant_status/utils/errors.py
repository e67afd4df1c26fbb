"""
状态检查错误类型定义

提供结构化的错误处理机制, 以及控制面不可达错误的识别
"""

import asyncio
from enum import Enum
from typing import Dict, Any, Optional


class StatusErrorCode(Enum):
    """状态检查错误码枚举"""

    TIMEOUT = "TIMEOUT"

    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    API_ERROR = "API_ERROR"
    API_UNAVAILABLE = "API_UNAVAILABLE"

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"

    UNKNOWN = "UNKNOWN"


class StatusCheckError(Exception):
    """状态检查异常基类

    Attributes:
        message: 错误消息
        code: 错误码
        details: 额外的错误详情
    """

    def __init__(
        self,
        message: str,
        code: StatusErrorCode = StatusErrorCode.UNKNOWN,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式"""
        return {
            "error": self.message,
            "code": self.code.value,
            "details": self.details
        }

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"[{self.code.value}] {self.message} ({details_str})"
        return f"[{self.code.value}] {self.message}"


class ResourceNotFoundError(StatusCheckError):
    """资源不存在 (kubectl 返回 NotFound)"""

    def __init__(
        self,
        message: str,
        kind: Optional[str] = None,
        name: Optional[str] = None,
        namespace: Optional[str] = None
    ):
        details: Dict[str, Any] = {}
        if kind:
            details["kind"] = kind
        if name:
            details["name"] = name
        if namespace:
            details["namespace"] = namespace

        super().__init__(message, StatusErrorCode.RESOURCE_NOT_FOUND, details)


class BackingUnavailableError(StatusCheckError):
    """控制面不可达 (连接失败、超时等)

    调用方可据此区分 "集群 API 不可用" 与程序逻辑错误, 并自行决定重试策略
    """

    def __init__(
        self,
        message: str,
        timeout: bool = False,
        details: Optional[Dict[str, Any]] = None
    ):
        code = StatusErrorCode.TIMEOUT if timeout else StatusErrorCode.API_UNAVAILABLE
        super().__init__(message, code, details)


class CollectionError(StatusCheckError):
    """数据收集错误

    用于 kubectl 调用失败但不属于连接问题的情况 (权限不足、输出无法解析等)
    """

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        namespace: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        all_details = details or {}
        if resource_type:
            all_details["resource_type"] = resource_type
        if namespace:
            all_details["namespace"] = namespace

        super().__init__(message, StatusErrorCode.API_ERROR, all_details)


class ConfigurationError(StatusCheckError):
    """配置错误"""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else None
        super().__init__(message, StatusErrorCode.CONFIGURATION_ERROR, details)


# 常见的 Kubernetes 连接错误特征 (区分大小写)
UNAVAILABLE_PATTERNS = [
    "connection refused",
    "connection reset",
    "no such host",
    "timeout",
    "timed out",
    "unable to connect",
    "dial tcp",
    "i/o timeout",
    "context deadline exceeded",
    "server is currently unable",
    "TLS handshake",
    "network is unreachable",
    "EOF",
    # kubectl 自身的连接失败提示
    "The connection to the server",
]


def is_backing_unavailable_error(err: Optional[BaseException]) -> bool:
    """判断错误是否由 Kubernetes API 不可达引起

    Args:
        err: 任意异常 (None 返回 False)

    Returns:
        是否为连接类/超时类错误
    """
    if err is None:
        return False

    if isinstance(err, BackingUnavailableError):
        return True

    if isinstance(err, (ConnectionError, TimeoutError, asyncio.TimeoutError)):
        return True

    if isinstance(err, StatusCheckError):
        err_msg = err.message
    else:
        err_msg = str(err)

    return any(pattern in err_msg for pattern in UNAVAILABLE_PATTERNS)
