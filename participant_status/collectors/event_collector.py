"""
最近事件收集

只保留时间窗口内 (默认 30 分钟) 的事件, 按时间倒序, 最多返回 10 条
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from .models import Event
from .reader import ResourceReader

DEFAULT_EVENT_WINDOW = timedelta(minutes=30)
DEFAULT_MAX_EVENTS = 10


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def select_recent_events(
    events: List[Event],
    now: datetime,
    window: timedelta = DEFAULT_EVENT_WINDOW,
    max_events: int = DEFAULT_MAX_EVENTS,
) -> List[Event]:
    """过滤、排序并截断事件列表"""
    cutoff = now - window
    recent = [event for event in events if _as_aware(event.timestamp) > cutoff]
    recent.sort(key=lambda event: _as_aware(event.timestamp), reverse=True)
    return recent[:max_events]


async def collect_recent_events(
    reader: ResourceReader,
    namespace: str,
    window: timedelta = DEFAULT_EVENT_WINDOW,
    max_events: int = DEFAULT_MAX_EVENTS,
    now: Optional[Callable[[], datetime]] = None,
) -> List[Event]:
    """
    查询命名空间内的最近事件

    Args:
        reader: 事件来源
        namespace: 参与者命名空间
        window: 时间窗口
        max_events: 最多返回条数
        now: 当前时间函数 (测试时可替换)

    Returns:
        最新的事件在前

    Raises:
        StatusCheckError: 查询失败, 由调用方决定是否降级
    """
    events = await reader.list_events(namespace)
    return select_recent_events(events, (now or _utcnow)(), window, max_events)


def _as_aware(timestamp: datetime) -> datetime:
    # kubectl 时间戳都带时区, 无时区的按 UTC 处理
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp
