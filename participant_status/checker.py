"""
参与者状态检查

组合资源读取、组件评估、整体状态归约和事件收集, 并通过缓存限制对
Kubernetes API 的访问频率。

流程 (get_status):
1. 查缓存, 命中直接返回
2. Namespace 不存在 -> NOT_FOUND (同样缓存)
3. Namespace 正在删除 -> DELETING
4. 列出 Deployment / StatefulSet -> 组件状态 -> 整体状态 -> 最近事件 -> 写缓存
"""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Coroutine, Dict, List, Optional, Tuple, TypeVar, Union

from .analyzers.evaluator import evaluate_component
from .analyzers.reducer import determine_overall_status
from .collectors.cache import StatusCache
from .collectors.event_collector import collect_recent_events
from .collectors.k8s_client import KubectlWrapper
from .collectors.models import (
    COMPONENT_KINDS,
    ComponentStatus,
    Event,
    ParticipantStatusResponse,
    ParticipantSummary,
    ProvisioningStatus,
    ResourceKind,
)
from .collectors.reader import KubectlResourceReader, ResourceReader
from .config import StatusConfig
from .utils.errors import (
    BackingUnavailableError,
    ResourceNotFoundError,
    StatusCheckError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def paginate(items: List[T], page: int, limit: int) -> List[T]:
    """按页截取 (page 从 1 开始), 越界返回空列表"""
    total = len(items)
    start = min(max((page - 1) * limit, 0), total)
    end = min(max(start + limit, start), total)
    return items[start:end]


class StatusChecker:
    """参与者状态检查器

    Example:
        checker = StatusChecker()
        response = await checker.get_status("alice")
        items, total = await checker.list_participants(status_filter="READY", page=1, limit=20)
        checker.close()
    """

    def __init__(
        self,
        reader: Optional[ResourceReader] = None,
        config: Optional[StatusConfig] = None,
        cache: Optional[StatusCache] = None,
        now: Callable[[], datetime] = _utcnow,
    ):
        """
        Args:
            reader: 资源读取实现 (默认基于 kubectl)
            config: 配置 (默认使用参考部署的值)
            cache: 状态缓存 (默认按配置创建)
            now: 当前时间函数, 用于 last_updated 和事件时间窗口
        """
        self.config = config if config is not None else StatusConfig()
        self.reader = reader if reader is not None else KubectlResourceReader(
            KubectlWrapper(
                context=self.config.kubectl_context,
                timeout=self.config.kubectl_timeout_seconds,
            )
        )
        self.cache = cache if cache is not None else StatusCache(
            ttl_seconds=self.config.cache_ttl_seconds,
            reap_interval_seconds=self.config.reap_interval_seconds,
        )
        self._now = now

    # === 单个参与者 ===

    async def get_status(
        self,
        participant_name: str,
        timeout: Optional[float] = None
    ) -> ParticipantStatusResponse:
        """
        获取参与者状态

        Args:
            participant_name: 参与者名称 (即 Namespace 名称)
            timeout: 截止时间 (秒), 默认使用配置中的 default_timeout_seconds

        Returns:
            ParticipantStatusResponse

        Raises:
            BackingUnavailableError: 集群不可达或超时
            StatusCheckError: 其他读取失败
        """
        deadline = self._deadline(timeout, f"get status of {participant_name}")
        return await self._get_status(participant_name, deadline)

    async def _get_status(self, participant_name: str, deadline: "_Deadline") -> ParticipantStatusResponse:
        cached = self.cache.get(participant_name)
        if cached is not None:
            logger.debug(f"Cache hit for participant {participant_name}")
            return cached
        logger.debug(f"Cache miss for participant {participant_name}")

        try:
            namespace = await deadline.run(
                self.reader.get(None, ResourceKind.NAMESPACE, participant_name)
            )
        except ResourceNotFoundError:
            # NOT_FOUND 也缓存, 避免反复查询不存在的参与者
            return self._store(self._empty_response(
                participant_name,
                ProvisioningStatus.NOT_FOUND,
                f"Namespace {participant_name} does not exist",
            ))

        if namespace.is_deleting:
            return self._store(self._empty_response(
                participant_name,
                ProvisioningStatus.DELETING,
                f"Namespace {participant_name} is being deleted",
            ))

        components = await deadline.run(self._get_component_statuses(participant_name))
        status, message = determine_overall_status(components, self.config.critical_components)

        events = await self._get_recent_events(participant_name, deadline)

        return self._store(ParticipantStatusResponse(
            participant_name=participant_name,
            status=status,
            last_updated=self._now(),
            components=components,
            message=message,
            events=events,
        ))

    async def _get_component_statuses(self, namespace: str) -> Dict[str, ComponentStatus]:
        components: Dict[str, ComponentStatus] = {}
        for kind in COMPONENT_KINDS:
            for resource in await self.reader.list(namespace, kind):
                components[resource.name] = evaluate_component(resource)
        return components

    async def _get_recent_events(self, namespace: str, deadline: "_Deadline") -> List[Event]:
        """最近事件; 任何失败 (包括超过截止时间) 都只记录警告并返回空列表"""
        remaining = deadline.remaining()
        if remaining <= 0:
            logger.warning(f"获取命名空间 {namespace} 的事件前已超过截止时间, 跳过事件")
            return []

        try:
            return await asyncio.wait_for(
                collect_recent_events(
                    self.reader,
                    namespace,
                    window=timedelta(minutes=self.config.event_window_minutes),
                    max_events=self.config.max_events,
                    now=self._now,
                ),
                timeout=remaining,
            )
        except asyncio.TimeoutError:
            logger.warning(f"获取命名空间 {namespace} 的事件超时, 跳过事件")
            return []
        except Exception as e:
            logger.warning(f"获取命名空间 {namespace} 的事件失败: {e}")
            return []

    def _empty_response(
        self,
        participant_name: str,
        status: ProvisioningStatus,
        message: str
    ) -> ParticipantStatusResponse:
        return ParticipantStatusResponse(
            participant_name=participant_name,
            status=status,
            last_updated=self._now(),
            components={},
            message=message,
        )

    def _store(self, response: ParticipantStatusResponse) -> ParticipantStatusResponse:
        self.cache.set(response.participant_name, response)
        return response

    # === 参与者列表 ===

    async def list_participants(
        self,
        status_filter: Optional[Union[str, ProvisioningStatus]] = None,
        page: int = 1,
        limit: int = 10,
        timeout: Optional[float] = None,
    ) -> Tuple[List[ParticipantSummary], int]:
        """
        列出所有参与者

        Args:
            status_filter: 只保留该状态 (精确匹配), None/空字符串表示不过滤
            page: 页码 (从 1 开始)
            limit: 每页条数
            timeout: 截止时间 (秒)

        Returns:
            (当前页的摘要列表, 过滤后的总数)
        """
        deadline = self._deadline(timeout, "list participants")
        wanted = getattr(status_filter, "value", status_filter) or None

        namespaces = await deadline.run(self.reader.list(None, ResourceKind.NAMESPACE))

        # 单个命名空间失败 (包括超过截止时间) 只跳过该命名空间
        participants: List[ParticipantSummary] = []
        for ns in namespaces:
            if self.is_reserved_namespace(ns.name):
                continue

            try:
                is_participant = await deadline.run(self._has_participant_components(ns.name))
            except StatusCheckError as e:
                logger.warning(f"检查命名空间 {ns.name} 的组件失败: {e}")
                continue

            if not is_participant:
                continue

            try:
                response = await self._get_status(ns.name, deadline)
            except StatusCheckError as e:
                logger.warning(f"获取命名空间 {ns.name} 的状态失败: {e}")
                continue

            if wanted is not None and response.status.value != wanted:
                continue

            participants.append(response.to_summary())

        return paginate(participants, page, limit), len(participants)

    async def _has_participant_components(self, namespace: str) -> bool:
        """命名空间内是否至少有一个关键组件 (否则不是参与者)"""
        critical = set(self.config.critical_components)
        for kind in COMPONENT_KINDS:
            resources = await self.reader.list(namespace, kind)
            if any(resource.name in critical for resource in resources):
                return True
        return False

    def is_reserved_namespace(self, name: str) -> bool:
        return name in self.config.reserved_namespaces

    # === 缓存管理 ===

    def invalidate(self, participant_name: str):
        self.cache.invalidate(participant_name)

    def clear(self):
        self.cache.clear()

    def close(self):
        """停止缓存后台清理线程"""
        self.cache.stop()

    def get_cache_stats(self) -> Dict:
        return self.cache.get_stats()

    def _deadline(self, timeout: Optional[float], operation: str) -> "_Deadline":
        if timeout is None:
            timeout = self.config.default_timeout_seconds
        return _Deadline(timeout, operation)


class _Deadline:
    """一次调用的截止时间, 调用内的所有后端请求共享剩余时间"""

    def __init__(self, timeout: float, operation: str):
        self.timeout = timeout
        self.operation = operation
        self._loop = asyncio.get_running_loop()
        self._expires_at = self._loop.time() + timeout

    def remaining(self) -> float:
        return self._expires_at - self._loop.time()

    def exceeded(self) -> BackingUnavailableError:
        return BackingUnavailableError(
            f"context deadline exceeded: {self.operation} did not finish within {self.timeout}s",
            timeout=True,
        )

    async def run(self, coro: Coroutine[None, None, T]) -> T:
        """在剩余时间内执行, 超时抛出 BackingUnavailableError(TIMEOUT)"""
        remaining = self.remaining()
        if remaining <= 0:
            coro.close()
            raise self.exceeded()
        try:
            return await asyncio.wait_for(coro, timeout=remaining)
        except asyncio.TimeoutError as e:
            raise self.exceeded() from e
