"""
参与者状态缓存模块

以参与者名称为键缓存 ParticipantStatusResponse, 降低对 Kubernetes API 的重复查询。

特性:
- 统一 TTL (默认 10 秒), 读取时检查过期, 过期条目视为不存在
- 后台线程定期清理过期条目 (默认每 60 秒), 仅用于回收内存
- 读写锁: 读操作可并发, 写/删除/清空/清理互斥
- 缓存统计
"""

import logging
import threading
import time
from typing import Callable, Dict, Any, NamedTuple, Optional

from .models import ParticipantStatusResponse

logger = logging.getLogger(__name__)


class _ReadWriteLock:
    """读写锁 (写者优先)"""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    def acquire_read(self):
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1

    def release_read(self):
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self):
        with self._cond:
            self._waiting_writers += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._waiting_writers -= 1
            self._writer = True

    def release_write(self):
        with self._cond:
            self._writer = False
            self._cond.notify_all()


class _CacheEntry(NamedTuple):
    response: ParticipantStatusResponse
    expires_at: float


class StatusCache:
    """参与者状态缓存

    Example:
        cache = StatusCache(ttl_seconds=10)

        response = cache.get("alice")
        if response is None:
            response = await build_status("alice")
            cache.set("alice", response)

        cache.stop()
    """

    def __init__(
        self,
        ttl_seconds: float = 10,
        reap_interval_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
        start_reaper: bool = True,
    ):
        """初始化缓存

        Args:
            ttl_seconds: 缓存过期时间 (秒, 默认 10)
            reap_interval_seconds: 后台清理间隔 (秒, 默认 60)
            clock: 单调时钟, 测试时可替换
            start_reaper: 是否启动后台清理线程
        """
        self.ttl = ttl_seconds
        self.reap_interval = reap_interval_seconds
        self._clock = clock

        # participant name -> (response, expires_at)
        self._data: Dict[str, _CacheEntry] = {}
        self._lock = _ReadWriteLock()

        # 统计信息 (读操作并发执行, 计数单独加锁)
        self._stats_lock = threading.Lock()
        self._hits = 0
        self._misses = 0

        self._stop_event = threading.Event()
        self._stop_lock = threading.Lock()
        self._stopped = False
        self._reaper: Optional[threading.Thread] = None
        if start_reaper:
            self._reaper = threading.Thread(
                target=self._reap_loop,
                name="status-cache-reaper",
                daemon=True,
            )
            self._reaper.start()

    def get(self, key: str) -> Optional[ParticipantStatusResponse]:
        """获取缓存值

        Returns:
            缓存的响应, 不存在或已过期则返回 None
        """
        self._lock.acquire_read()
        try:
            entry = self._data.get(key)
            fresh = entry is not None and self._clock() <= entry.expires_at
        finally:
            self._lock.release_read()

        with self._stats_lock:
            if fresh:
                self._hits += 1
            else:
                self._misses += 1

        return entry.response if fresh else None

    def set(self, key: str, response: ParticipantStatusResponse):
        """写入缓存 (整条替换)"""
        entry = _CacheEntry(response, self._clock() + self.ttl)
        self._lock.acquire_write()
        try:
            self._data[key] = entry
        finally:
            self._lock.release_write()

    def invalidate(self, key: str) -> bool:
        """删除指定条目

        Returns:
            是否存在并被删除
        """
        self._lock.acquire_write()
        try:
            return self._data.pop(key, None) is not None
        finally:
            self._lock.release_write()

    def clear(self):
        """清空缓存"""
        self._lock.acquire_write()
        try:
            self._data = {}
        finally:
            self._lock.release_write()

    def cleanup_expired(self) -> int:
        """清理所有过期的缓存条目

        Returns:
            清理的条目数
        """
        self._lock.acquire_write()
        try:
            now = self._clock()
            expired_keys = [
                key for key, entry in self._data.items()
                if now > entry.expires_at
            ]
            for key in expired_keys:
                del self._data[key]
        finally:
            self._lock.release_write()

        return len(expired_keys)

    def _reap_loop(self):
        while not self._stop_event.wait(self.reap_interval):
            removed = self.cleanup_expired()
            if removed:
                logger.debug(f"清理过期缓存条目: {removed}")

    def stop(self):
        """停止后台清理线程 (只应调用一次)"""
        with self._stop_lock:
            already_stopped = self._stopped
            self._stopped = True

        if already_stopped:
            logger.warning("StatusCache.stop() 被重复调用, 已忽略")
            return
        self._stop_event.set()

    @property
    def stopped(self) -> bool:
        return self._stopped

    def get_stats(self) -> Dict[str, Any]:
        """获取缓存统计信息

        Returns:
            {
                "size": 当前条目数 (含未清理的过期条目),
                "hits": 命中次数,
                "misses": 未命中次数,
                "hit_rate": 命中率 (0.0-1.0),
                "ttl_seconds": 过期时间
            }
        """
        self._lock.acquire_read()
        try:
            size = len(self._data)
        finally:
            self._lock.release_read()

        with self._stats_lock:
            total_requests = self._hits + self._misses
            hit_rate = self._hits / total_requests if total_requests > 0 else 0.0
            return {
                "size": size,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": hit_rate,
                "ttl_seconds": self.ttl,
            }

    def __len__(self) -> int:
        return self.get_stats()["size"]

    def __repr__(self) -> str:
        stats = self.get_stats()
        return (
            f"StatusCache(size={stats['size']}, "
            f"hit_rate={stats['hit_rate']:.1%}, "
            f"ttl={stats['ttl_seconds']}s)"
        )
