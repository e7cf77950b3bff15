"""Expiry daemon: the single task that owns the entry store.

This module is integration-agnostic. It only relies on the clipboard source
port, so the same loop runs against Klipper or an in-memory fake.

The loop multiplexes four triggers (shutdown, resync timer, expiry timer,
change notifications) and runs exactly one handler at a time, so the store
needs no locking. Timers use delay semantics: the next tick is scheduled
from the moment the previous handler finished, missed ticks never burst.

Store mutation and the external rewrite are separate steps. If a rewrite
fails the store keeps its new contents and Klipper stays out of step until
the next resync reconciles the two.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from typing import AsyncIterator, Awaitable, Callable, Optional

from klipper_timeout.core.config import ExpiryConfig
from klipper_timeout.core.expiry import expire
from klipper_timeout.core.history_sync import rewrite_history
from klipper_timeout.core.models import EntryStore
from klipper_timeout.core.ports import ClipboardSourceError, ClipboardSourcePort
from klipper_timeout.core.reconciler import reconcile

LOGGER = logging.getLogger(__name__)


class DaemonState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"


class ExpiryDaemon:
    """Tracks clipboard entries and rewrites Klipper when they expire."""

    def __init__(
        self,
        config: ExpiryConfig,
        source: ClipboardSourcePort,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._source = source
        self._clock = clock
        self._store = EntryStore()
        self.state = DaemonState.IDLE

    @property
    def store(self) -> EntryStore:
        return self._store

    async def sync_history(self) -> bool:
        """Fetch the history, reconcile it, and rewrite Klipper if filtered."""

        snapshot = await self._source.list_history()
        result = reconcile(self._store, snapshot, self._config.patterns, self._clock())
        self._store = result.store
        if result.changed:
            await rewrite_history(self._source, self._store)
        return result.changed

    async def expire_due_entries(self) -> bool:
        """Drop aged entries and rewrite Klipper if anything was removed."""

        if not self._store:
            return False

        result = expire(self._store, self._clock(), self._config.expiry, self._config.patterns)
        self._store = result.store
        if result.changed:
            await rewrite_history(self._source, self._store)
        return result.changed

    async def run(self, shutdown: asyncio.Event) -> None:
        """Run the baseline sync, then serve triggers until `shutdown` is set.

        A failure of the baseline sync propagates to the caller; failures
        inside the loop are logged and the loop carries on.
        """

        await self.sync_history()
        self.state = DaemonState.RUNNING
        LOGGER.info(
            "Starting clipboard expiry daemon (expiry=%ss, resync=%ss, %s entries tracked)",
            self._config.expiry,
            self._config.resync_interval,
            len(self._store),
        )

        changes = await self._subscribe()
        loop = asyncio.get_running_loop()
        resync_at = loop.time() + self._config.resync_interval
        expiry_at = loop.time() + self._config.expiry_tick

        shutdown_task = asyncio.ensure_future(shutdown.wait())
        change_task = self._watch(changes)
        try:
            while not shutdown.is_set():
                waiters: set[asyncio.Future] = {shutdown_task}
                if change_task is not None:
                    waiters.add(change_task)
                timeout = max(0.0, min(resync_at, expiry_at) - loop.time())
                done, _ = await asyncio.wait(
                    waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
                )

                # Shutdown pre-empts everything else that became ready.
                if shutdown.is_set():
                    break

                now = loop.time()
                if resync_at <= now:
                    await self._guarded(self.sync_history, "refreshing clipboard history")
                    resync_at = loop.time() + self._config.resync_interval
                elif expiry_at <= now:
                    await self._guarded(self.expire_due_entries, "expiring clipboard entries")
                    expiry_at = loop.time() + self._config.expiry_tick
                elif change_task is not None and change_task in done:
                    if self._notification_received(change_task):
                        await self._guarded(self.sync_history, "processing clipboard update")
                        change_task = self._watch(changes)
                    else:
                        changes = None
                        change_task = None
        finally:
            self.state = DaemonState.SHUTTING_DOWN
            shutdown_task.cancel()
            if change_task is not None:
                change_task.cancel()
                await asyncio.gather(change_task, return_exceptions=True)
            await self._close(changes)
            LOGGER.info("Clipboard expiry daemon stopped")

    async def _subscribe(self) -> Optional[AsyncIterator[None]]:
        try:
            return await self._source.subscribe_to_changes()
        except ClipboardSourceError as exc:
            LOGGER.warning(
                "Failed to subscribe to clipboard change notifications: %s; "
                "falling back to polling only",
                exc,
            )
            return None

    @staticmethod
    def _watch(changes: Optional[AsyncIterator[None]]) -> Optional[asyncio.Future]:
        if changes is None:
            return None
        return asyncio.ensure_future(anext(changes))

    @staticmethod
    def _notification_received(change_task: asyncio.Future) -> bool:
        """Return True for a wake-up; False when the stream is gone for good."""

        exc = change_task.exception()
        if exc is None:
            return True
        if isinstance(exc, StopAsyncIteration):
            LOGGER.warning("Clipboard change notifications ended; polling only from now on")
        else:
            LOGGER.warning(
                "Clipboard change notifications failed: %s; polling only from now on", exc
            )
        return False

    @staticmethod
    async def _guarded(handler: Callable[[], Awaitable[bool]], action: str) -> None:
        try:
            await handler()
        except ClipboardSourceError:
            LOGGER.warning("%s failed", action.capitalize(), exc_info=True)

    @staticmethod
    async def _close(changes: Optional[AsyncIterator[None]]) -> None:
        aclose = getattr(changes, "aclose", None)
        if aclose is not None:
            await aclose()
