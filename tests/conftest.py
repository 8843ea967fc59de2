"""Pytest configuration and fixtures for neo-cache tests."""

import re
from typing import Any, Dict, List, Optional, Set

import pytest
import pytest_asyncio

from neo_cache.infrastructure.strategies.memory_strategy import MemoryCacheStrategy
from neo_cache.infrastructure.strategies.redis_strategy import RedisCacheStrategy
from neo_cache.infrastructure.strategies.sqlite_strategy import SqliteCacheStrategy

STRATEGY_NAMES = ["memory", "redis", "sqlite"]

START_MILLIS = 1_700_000_000_000


class FakeClock:
    """Manually advanced epoch-millisecond clock."""

    def __init__(self, now: int = START_MILLIS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


def redis_glob_to_regex(pattern: str) -> str:
    """Translate a Redis MATCH glob (``*``, ``?``, ``[...]``, ``\\x``)."""
    parts: List[str] = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "\\" and i + 1 < len(pattern):
            parts.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        elif char == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                parts.append(re.escape(char))
            else:
                parts.append(f"[{pattern[i + 1:end]}]")
                i = end
        else:
            parts.append(re.escape(char))
        i += 1
    return "^" + "".join(parts) + "$"


class FakeRedis:
    """In-process stand-in for redis.asyncio.Redis with decoded responses.

    Supports the string, set, SCAN and pipeline commands the Redis strategy
    issues. Expiry passed via ``ex`` is recorded but never enforced, so
    logical expiry is what tests observe.
    """

    def __init__(self):
        self.strings: Dict[str, str] = {}
        self.sets: Dict[str, Set[str]] = {}
        self.expirations: Dict[str, int] = {}
        self.pipelines_executed = 0
        self.closed = False

    async def get(self, key: str) -> Optional[str]:
        return self.strings.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self._set(key, value, ex)
        return True

    async def delete(self, *keys: str) -> int:
        return self._delete(*keys)

    async def exists(self, *keys: str) -> int:
        return sum(1 for key in keys if key in self.strings or key in self.sets)

    async def smembers(self, key: str) -> Set[str]:
        return set(self.sets.get(key, set()))

    async def scan_iter(self, match: Optional[str] = None, count: Optional[int] = None):
        regex = re.compile(redis_glob_to_regex(match or "*"), re.DOTALL)
        for key in list(self.strings) + list(self.sets):
            if regex.match(key):
                yield key

    def pipeline(self, transaction: bool = True) -> "FakePipeline":
        return FakePipeline(self)

    async def aclose(self) -> None:
        self.closed = True

    def expire_now(self, key: str) -> None:
        """Drop a string key the way server-side EX expiry does, leaving sets."""
        self.strings.pop(key, None)
        self.expirations.pop(key, None)

    def _set(self, key: str, value: str, ex: Optional[int] = None) -> None:
        self.strings[key] = value
        if ex is not None:
            self.expirations[key] = ex
        else:
            self.expirations.pop(key, None)

    def _delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.strings.pop(key, None) is not None:
                removed += 1
            elif self.sets.pop(key, None) is not None:
                removed += 1
            self.expirations.pop(key, None)
        return removed

    def _sadd(self, key: str, *members: str) -> int:
        current = self.sets.setdefault(key, set())
        before = len(current)
        current.update(members)
        return len(current) - before

    def _srem(self, key: str, *members: str) -> int:
        current = self.sets.get(key)
        if not current:
            return 0
        before = len(current)
        current.difference_update(members)
        if not current:
            del self.sets[key]
        return before - len(current)


class FakePipeline:
    """Buffered MULTI/EXEC batch applied on execute()."""

    def __init__(self, client: FakeRedis):
        self._client = client
        self._commands: List[tuple] = []

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self._commands.clear()

    def set(self, key: str, value: str, ex: Optional[int] = None) -> "FakePipeline":
        self._commands.append(("set", key, value, ex))
        return self

    def delete(self, *keys: str) -> "FakePipeline":
        self._commands.append(("delete", *keys))
        return self

    def sadd(self, key: str, *members: str) -> "FakePipeline":
        self._commands.append(("sadd", key, *members))
        return self

    def srem(self, key: str, *members: str) -> "FakePipeline":
        self._commands.append(("srem", key, *members))
        return self

    async def execute(self) -> List[Any]:
        results = []
        for name, *args in self._commands:
            results.append(getattr(self._client, f"_{name}")(*args))
        self._commands.clear()
        self._client.pipelines_executed += 1
        return results


@pytest.fixture
def clock():
    """Controllable clock shared by a strategy under test."""
    return FakeClock()


@pytest.fixture
def redis_client_factory():
    """Factory producing fresh Redis client doubles."""
    return FakeRedis


@pytest.fixture
def fake_redis(redis_client_factory):
    """Redis client double."""
    return redis_client_factory()


@pytest.fixture
def memory_strategy(clock):
    return MemoryCacheStrategy(clock=clock)


@pytest.fixture
def redis_strategy(fake_redis, clock):
    return RedisCacheStrategy(redis_client=fake_redis, clock=clock)


@pytest_asyncio.fixture
async def sqlite_strategy(tmp_path, clock):
    strategy = SqliteCacheStrategy(db_path=str(tmp_path / "cache" / "cache.db"), clock=clock)
    yield strategy
    await strategy.close()


@pytest.fixture(params=STRATEGY_NAMES)
def strategy(request):
    """Each backend strategy in turn, sharing the ``clock`` fixture."""
    return request.getfixturevalue(f"{request.param}_strategy")


@pytest_asyncio.fixture(params=STRATEGY_NAMES)
async def make_strategy(request, tmp_path, clock):
    """Factory building each backend strategy with custom options."""
    created = []

    def build(**kwargs):
        if request.param == "memory":
            instance = MemoryCacheStrategy(clock=clock, **kwargs)
        elif request.param == "redis":
            instance = RedisCacheStrategy(redis_client=FakeRedis(), clock=clock, **kwargs)
        else:
            db_path = tmp_path / f"cache-{len(created)}.db"
            instance = SqliteCacheStrategy(db_path=str(db_path), clock=clock, **kwargs)
        created.append(instance)
        return instance

    yield build
    for instance in created:
        await instance.close()
