"""
测试状态缓存: 读取时过期、失效、清理、后台线程
"""

import logging
import threading
import time

from participant_status.collectors.cache import StatusCache
from participant_status.collectors.models import ParticipantStatusResponse, ProvisioningStatus

from conftest import BASE_TIME, FakeClock


def _response(name: str = "alice") -> ParticipantStatusResponse:
    return ParticipantStatusResponse(
        participant_name=name,
        status=ProvisioningStatus.READY,
        last_updated=BASE_TIME,
        message="All components are running and ready",
    )


def _cache(clock: FakeClock, ttl: float = 10) -> StatusCache:
    return StatusCache(ttl_seconds=ttl, clock=clock.monotonic, start_reaper=False)


def test_get_returns_stored_response():
    cache = _cache(FakeClock())
    response = _response()
    cache.set("alice", response)

    assert cache.get("alice") is response
    assert cache.get("bob") is None


def test_entry_expires_on_read_without_reaping():
    clock = FakeClock()
    cache = _cache(clock)
    cache.set("alice", _response())

    clock.advance(10)
    assert cache.get("alice") is not None

    clock.advance(0.001)
    assert cache.get("alice") is None
    # 过期条目仍在, 等待清理
    assert len(cache) == 1


def test_set_replaces_entry_and_refreshes_expiry():
    clock = FakeClock()
    cache = _cache(clock)
    cache.set("alice", _response())

    clock.advance(8)
    newer = _response()
    cache.set("alice", newer)

    clock.advance(8)
    assert cache.get("alice") is newer


def test_invalidate_and_clear():
    cache = _cache(FakeClock())
    cache.set("alice", _response("alice"))
    cache.set("bob", _response("bob"))

    assert cache.invalidate("alice") is True
    assert cache.invalidate("alice") is False
    assert cache.get("alice") is None
    assert cache.get("bob") is not None

    cache.clear()
    assert cache.get("bob") is None
    assert len(cache) == 0


def test_cleanup_expired_removes_only_expired():
    clock = FakeClock()
    cache = _cache(clock)
    cache.set("old", _response("old"))
    clock.advance(6)
    cache.set("new", _response("new"))
    clock.advance(6)

    assert cache.cleanup_expired() == 1
    assert len(cache) == 1
    assert cache.get("new") is not None


def test_stats_count_hits_and_misses():
    cache = _cache(FakeClock())
    cache.set("alice", _response())

    cache.get("alice")
    cache.get("alice")
    cache.get("bob")

    stats = cache.get_stats()
    assert stats["hits"] == 2
    assert stats["misses"] == 1
    assert abs(stats["hit_rate"] - 2 / 3) < 1e-9
    assert stats["ttl_seconds"] == 10


def test_stop_twice_is_ignored():
    cache = StatusCache(ttl_seconds=10, reap_interval_seconds=60)
    cache.stop()
    cache.stop()

    assert cache.stopped is True


def test_concurrent_stop_warns_for_all_but_one(caplog):
    cache = StatusCache(ttl_seconds=10, reap_interval_seconds=60)
    barrier = threading.Barrier(8)

    def worker():
        barrier.wait()
        cache.stop()

    with caplog.at_level(logging.WARNING, logger="participant_status.collectors.cache"):
        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

    warnings = [r for r in caplog.records if "重复调用" in r.getMessage()]
    assert len(warnings) == 7
    assert cache.stopped is True


def test_reaper_removes_expired_entries():
    clock = FakeClock()
    cache = StatusCache(ttl_seconds=1, reap_interval_seconds=0.01, clock=clock.monotonic)
    try:
        cache.set("alice", _response())
        clock.advance(5)

        deadline = time.monotonic() + 2
        while len(cache) and time.monotonic() < deadline:
            time.sleep(0.01)

        assert len(cache) == 0
    finally:
        cache.stop()


def test_concurrent_access():
    cache = StatusCache(ttl_seconds=10, start_reaper=False)
    errors = []

    def worker(index: int):
        try:
            for i in range(200):
                name = f"p{(index + i) % 5}"
                cache.set(name, _response(name))
                cached = cache.get(name)
                assert cached is None or cached.participant_name == name
                if i % 50 == 0:
                    cache.invalidate(name)
        except AssertionError as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert not errors
    assert len(cache) <= 5
