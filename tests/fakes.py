from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, Optional

from klipper_timeout.core.ports import ClipboardSourceError

_END = object()


class FakeChangeStream:
    def __init__(self) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def notify(self) -> None:
        self._queue.put_nowait(None)

    def end(self) -> None:
        self._queue.put_nowait(_END)

    def __aiter__(self) -> "FakeChangeStream":
        return self

    async def __anext__(self) -> None:
        item = await self._queue.get()
        if item is _END:
            raise StopAsyncIteration

    async def aclose(self) -> None:
        self.closed = True


class FakeClipboardSource:
    """In-memory Klipper: inserts push to the front of the history."""

    def __init__(self, history: Optional[Iterable[str]] = None, supports_notifications: bool = True) -> None:
        self.history: list[str] = list(history or [])
        self.calls: list[tuple] = []
        self.supports_notifications = supports_notifications
        self.changes: Optional[FakeChangeStream] = None
        self.fail_list = False
        self.fail_clear = False
        self.fail_inserts: set[str] = set()
        # Awaited on every list call with the 1-based call number.
        self.list_hook: Optional[Callable[[int], Awaitable[None]]] = None

    async def list_history(self) -> list[str]:
        self.calls.append(("list",))
        if self.list_hook is not None:
            await self.list_hook(self.calls.count(("list",)))
        if self.fail_list:
            raise ClipboardSourceError("list failed")
        return list(self.history)

    async def clear_history(self) -> None:
        self.calls.append(("clear",))
        if self.fail_clear:
            raise ClipboardSourceError("clear failed")
        self.history = []

    async def insert(self, content: str) -> None:
        self.calls.append(("insert", content))
        if content in self.fail_inserts:
            raise ClipboardSourceError("insert failed")
        self.history.insert(0, content)

    async def subscribe_to_changes(self) -> FakeChangeStream:
        self.calls.append(("subscribe",))
        if not self.supports_notifications:
            raise ClipboardSourceError("signals unavailable")
        self.changes = FakeChangeStream()
        return self.changes

    def writes(self) -> list[tuple]:
        return [call for call in self.calls if call[0] in {"clear", "insert"}]


class FakeClock:
    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds
