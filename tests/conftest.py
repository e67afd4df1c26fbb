"""
测试公共夹具 - 内存中的 ResourceReader 实现
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

import pytest

from participant_status.checker import StatusChecker
from participant_status.collectors.cache import StatusCache
from participant_status.collectors.models import Event, Resource, ResourceKind
from participant_status.utils.errors import ResourceNotFoundError

BASE_TIME = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """可手动推进的时钟 (同时提供 monotonic 秒数和 UTC datetime)"""

    def __init__(self, start: datetime = BASE_TIME):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def monotonic(self) -> float:
        return self.current.timestamp()

    def advance(self, seconds: float):
        self.current = self.current + timedelta(seconds=seconds)


class FakeReader:
    """内存中的集群视图, 记录每一次调用"""

    def __init__(self):
        self.namespaces: Dict[str, Resource] = {}
        self.resources: Dict[Tuple[str, ResourceKind], List[Resource]] = {}
        self.events: Dict[str, List[Event]] = {}
        # (namespace, kind | "event") -> 要抛出的异常
        self.errors: Dict[Tuple[Optional[str], object], Exception] = {}
        self.delay = 0.0
        # (namespace, kind | "event") -> 该调用单独的延迟 (秒)
        self.delays: Dict[Tuple[Optional[str], object], float] = {}
        self.calls: List[tuple] = []

    def add_namespace(self, name: str, deleting: bool = False):
        self.namespaces[name] = Resource(
            kind=ResourceKind.NAMESPACE,
            name=name,
            deletion_timestamp="2026-01-01T11:59:00Z" if deleting else None,
        )

    def add_component(
        self,
        namespace: str,
        name: str,
        kind: ResourceKind = ResourceKind.DEPLOYMENT,
        desired: Optional[int] = 1,
        current: int = 1,
        ready: int = 1,
        unavailable: Optional[int] = None,
    ):
        if kind == ResourceKind.DEPLOYMENT and unavailable is None:
            unavailable = 0
        self.resources.setdefault((namespace, kind), []).append(Resource(
            kind=kind,
            name=name,
            namespace=namespace,
            desired_replicas=desired,
            current_replicas=current,
            ready_replicas=ready,
            unavailable_replicas=unavailable,
        ))

    def add_participant(self, name: str, ready: bool = True):
        """创建带 4 个关键组件的参与者"""
        self.add_namespace(name)
        for component in ("controlplane", "dataplane", "identityhub"):
            self.add_component(name, component, ready=1 if ready else 0)
        self.add_component(name, "postgres", kind=ResourceKind.STATEFULSET, ready=1 if ready else 0)

    async def _enter(self, call: tuple, error_key):
        self.calls.append(call)
        delay = self.delays.get(error_key, self.delay)
        if delay:
            await asyncio.sleep(delay)
        if error_key in self.errors:
            raise self.errors[error_key]

    async def get(self, namespace, kind, name):
        await self._enter(("get", namespace, kind, name), (namespace, kind))
        if kind == ResourceKind.NAMESPACE:
            if name not in self.namespaces:
                raise ResourceNotFoundError(f'namespaces "{name}" not found', kind="namespace", name=name)
            return self.namespaces[name]
        for resource in self.resources.get((namespace, kind), []):
            if resource.name == name:
                return resource
        raise ResourceNotFoundError(f"{kind.value} {name} not found")

    async def list(self, namespace, kind):
        await self._enter(("list", namespace, kind), (namespace, kind))
        if kind == ResourceKind.NAMESPACE:
            return list(self.namespaces.values())
        return list(self.resources.get((namespace, kind), []))

    async def list_events(self, namespace):
        await self._enter(("events", namespace), (namespace, "event"))
        return list(self.events.get(namespace, []))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def reader():
    return FakeReader()


@pytest.fixture
def checker(reader, clock):
    cache = StatusCache(ttl_seconds=10, clock=clock.monotonic, start_reaper=False)
    checker = StatusChecker(reader=reader, cache=cache, now=clock.now)
    yield checker
    checker.close()
