"""
工具模块
"""

from .errors import (
    StatusCheckError,
    StatusErrorCode,
    ResourceNotFoundError,
    BackingUnavailableError,
    CollectionError,
    ConfigurationError,
    is_backing_unavailable_error,
)
from .retry import retry_on_backing_unavailable

__all__ = [
    "StatusCheckError",
    "StatusErrorCode",
    "ResourceNotFoundError",
    "BackingUnavailableError",
    "CollectionError",
    "ConfigurationError",
    "is_backing_unavailable_error",
    "retry_on_backing_unavailable",
]
