import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("REDIS_URL", "localhost")
os.environ.setdefault("OTP_TTL_IN_SECONDS", "10")
os.environ.setdefault("LOG_LEVEL", "INFO")

from cgn_otp.core.config import get_settings
from cgn_otp.core.kv_store import InMemoryKeyValueStore

get_settings.cache_clear()

A_FISCAL_CODE = "DNLLSS99S20H501F"
AN_OTP_CODE = "AAAAAAAA123"
AN_OTP_TTL = 10

PASSTHROUGH = object()


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def timestamp(self) -> float:
        return self.now.timestamp()

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingStore(InMemoryKeyValueStore):
    """In-memory store that records calls and can replay scripted outcomes.

    A scripted outcome is an exception to raise, PASSTHROUGH to run the real
    operation, or any other value to return without touching the data.
    """

    def __init__(self, clock: FakeClock):
        super().__init__(clock=clock.timestamp)
        self.calls: list[tuple[str, str]] = []
        self.outcomes: dict[str, list[object]] = {}

    def script(self, operation: str, *outcomes: object) -> None:
        self.outcomes.setdefault(operation, []).extend(outcomes)

    def _next(self, operation: str, key: str) -> object:
        self.calls.append((operation, key))
        queue = self.outcomes.get(operation)
        if not queue:
            return PASSTHROUGH
        outcome = queue.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def operations(self, operation: str) -> list[str]:
        return [key for op, key in self.calls if op == operation]

    async def get(self, key):
        outcome = self._next("get", key)
        return await super().get(key) if outcome is PASSTHROUGH else outcome

    async def set_with_expiry(self, key, value, ttl_seconds):
        outcome = self._next("set", key)
        return await super().set_with_expiry(key, value, ttl_seconds) if outcome is PASSTHROUGH else outcome

    async def delete(self, key):
        outcome = self._next("delete", key)
        return await super().delete(key) if outcome is PASSTHROUGH else outcome

    async def exists(self, key):
        outcome = self._next("exists", key)
        return await super().exists(key) if outcome is PASSTHROUGH else outcome


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(clock):
    return RecordingStore(clock)


@pytest.fixture
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
