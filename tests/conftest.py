"""Pytest configuration and shared fakes for the Bison client tests."""

import asyncio
import sys
from pathlib import Path
from typing import Any, Callable, List, Optional

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

pytest_plugins = ["pytest_asyncio"]

_CLOSE = object()


class FakeTransport:
    """In-memory stand-in for a websockets client connection."""

    def __init__(self, url: str):
        self.url = url
        self.sent: List[str] = []
        self.closed = False
        self.close_calls = 0
        self._inbox: asyncio.Queue = asyncio.Queue()

    # Server side -------------------------------------------------------

    def feed(self, raw: Any) -> None:
        """Queue a frame as if the server sent it."""
        self._inbox.put_nowait(raw)

    def drop(self) -> None:
        """Server closes the connection."""
        self.closed = True
        self._inbox.put_nowait(_CLOSE)

    def fail(self, exc: Exception) -> None:
        """Reading raises ``exc`` (abrupt transport failure)."""
        self._inbox.put_nowait(exc)

    # Client side -------------------------------------------------------

    async def send(self, message: str) -> None:
        if self.closed:
            raise ConnectionError("transport closed")
        self.sent.append(message)

    async def close(self) -> None:
        self.close_calls += 1
        if not self.closed:
            self.closed = True
            self._inbox.put_nowait(_CLOSE)

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self._inbox.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        if isinstance(item, Exception):
            raise item
        return item


class FakeConnector:
    """Connector recording every connection attempt."""

    def __init__(self):
        self.calls: List[str] = []
        self.transports: List[FakeTransport] = []
        self.fail_with: Optional[Exception] = None
        self.on_connect: Optional[Callable[[FakeTransport], None]] = None

    async def __call__(self, url: str) -> FakeTransport:
        self.calls.append(url)
        if self.fail_with is not None:
            raise self.fail_with
        transport = FakeTransport(url)
        self.transports.append(transport)
        if self.on_connect is not None:
            self.on_connect(transport)
        return transport

    @property
    def latest(self) -> FakeTransport:
        return self.transports[-1]


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0, interval: float = 0.002) -> None:
    """Poll ``predicate`` on the running loop until it holds or time runs out."""
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(interval)


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def wait_for():
    return wait_until


@pytest.fixture
def silent_logger():
    """Logger stub with the unified_logger .log() surface."""

    class _Recorder:
        def __init__(self):
            self.records = []

        def log(self, message, level="INFO"):
            self.records.append((level, message))

        def messages(self, level: str):
            return [message for record_level, message in self.records if record_level == level]

    return _Recorder()
