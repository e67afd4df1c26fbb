"""
配置

默认值对应参考部署; 可通过环境变量 (支持 .env) 或 YAML 文件覆盖。

环境变量:
    PARTICIPANT_STATUS_CRITICAL_COMPONENTS   逗号分隔
    PARTICIPANT_STATUS_RESERVED_NAMESPACES   逗号分隔
    PARTICIPANT_STATUS_CACHE_TTL             秒
    PARTICIPANT_STATUS_REAP_INTERVAL         秒
    PARTICIPANT_STATUS_TIMEOUT               秒
    PARTICIPANT_STATUS_EVENT_WINDOW          分钟
    PARTICIPANT_STATUS_MAX_EVENTS
    PARTICIPANT_STATUS_KUBE_CONTEXT
    PARTICIPANT_STATUS_KUBECTL_TIMEOUT       秒
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .collectors.models import DEFAULT_CRITICAL_COMPONENTS, DEFAULT_RESERVED_NAMESPACES
from .utils.errors import ConfigurationError

ENV_PREFIX = "PARTICIPANT_STATUS_"

_ENV_FIELDS = {
    "CRITICAL_COMPONENTS": "critical_components",
    "RESERVED_NAMESPACES": "reserved_namespaces",
    "CACHE_TTL": "cache_ttl_seconds",
    "REAP_INTERVAL": "reap_interval_seconds",
    "TIMEOUT": "default_timeout_seconds",
    "EVENT_WINDOW": "event_window_minutes",
    "MAX_EVENTS": "max_events",
    "KUBE_CONTEXT": "kubectl_context",
    "KUBECTL_TIMEOUT": "kubectl_timeout_seconds",
}


class StatusConfig(BaseModel):
    """状态检查配置"""

    model_config = ConfigDict(frozen=True, extra="forbid")

    critical_components: List[str] = Field(default_factory=lambda: list(DEFAULT_CRITICAL_COMPONENTS))
    reserved_namespaces: List[str] = Field(default_factory=lambda: list(DEFAULT_RESERVED_NAMESPACES))
    cache_ttl_seconds: float = Field(default=10, gt=0)
    reap_interval_seconds: float = Field(default=60, gt=0)
    default_timeout_seconds: float = Field(default=30, gt=0)
    event_window_minutes: float = Field(default=30, gt=0)
    max_events: int = Field(default=10, ge=0)
    kubectl_context: Optional[str] = None
    kubectl_timeout_seconds: float = Field(default=10, gt=0)

    @field_validator("critical_components", "reserved_namespaces", mode="before")
    @classmethod
    def _split_names(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("critical_components")
    @classmethod
    def _require_critical(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("at least one critical component is required")
        return value

    @classmethod
    def load(cls, values: Dict[str, Any]) -> "StatusConfig":
        """校验并构建配置, 失败时抛出 ConfigurationError"""
        try:
            return cls(**values)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(loc) for loc in first["loc"]) or None
            raise ConfigurationError(f"Invalid configuration: {first['msg']}", field=field) from e

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "StatusConfig":
        """从环境变量读取配置"""
        if dotenv:
            load_dotenv()

        values = {}
        for env_suffix, field in _ENV_FIELDS.items():
            val = os.getenv(ENV_PREFIX + env_suffix)
            if val:
                values[field] = val
        return cls.load(values)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "StatusConfig":
        """从 YAML 文件读取配置 (键名与字段名一致)"""
        try:
            text = Path(path).read_text(encoding="utf-8")
            data = yaml.safe_load(text) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return cls.load(data)
