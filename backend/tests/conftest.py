import httpx
import pytest

from bmtc_resolver.core.bmtc_client import BmtcClient
from factories import FakeUpstream


class MemoryStore:
    """In-memory KeyValueStore that records every call."""

    def __init__(self) -> None:
        self.data: dict[str, bytes] = {}
        self.calls: list[tuple[str, str]] = []

    async def get(self, key: str) -> bytes | None:
        self.calls.append(("get", key))
        return self.data.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self.calls.append(("set", key))
        self.data[key] = value

    async def delete(self, key: str) -> None:
        self.calls.append(("delete", key))
        self.data.pop(key, None)


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def client(upstream) -> BmtcClient:
    return BmtcClient(base_url="https://bmtc.test/api", transport=httpx.MockTransport(upstream.handler))
