"""Klipper clipboard source adapter.

Implements the core ClipboardSourcePort on top of Klipper's D-Bus interface
using dbus-fast. Every D-Bus or connection failure is wrapped into
ClipboardSourceError so the core never sees transport-specific exceptions.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from dbus_fast import DBusError
from dbus_fast.aio import MessageBus
from dbus_fast.errors import (
    AuthError,
    InterfaceNotFoundError,
    InvalidIntrospectionError,
    InvalidMessageError,
    InvalidSignatureError,
    SignatureBodyMismatchError,
)

from klipper_timeout.core.ports import ClipboardSourceError

LOGGER = logging.getLogger(__name__)

KLIPPER_SERVICE = "org.kde.klipper"
KLIPPER_PATH = "/klipper"
KLIPPER_INTERFACE = "org.kde.klipper.klipper"

# Error replies, malformed or mismatched messages, and a dropped connection.
_TRANSPORT_ERRORS = (
    DBusError,
    AuthError,
    InvalidIntrospectionError,
    InvalidMessageError,
    InvalidSignatureError,
    SignatureBodyMismatchError,
    OSError,
    EOFError,
)


class KlipperChangeStream:
    """Async iterator of wake-ups fed by the clipboardHistoryUpdated signal."""

    def __init__(self, interface: Any) -> None:
        self._interface = interface
        self._queue: asyncio.Queue[None] = asyncio.Queue()
        self._closed = False
        interface.on_clipboard_history_updated(self._on_signal)

    def _on_signal(self, *_args: Any) -> None:
        if not self._closed:
            self._queue.put_nowait(None)

    def __aiter__(self) -> "KlipperChangeStream":
        return self

    async def __anext__(self) -> None:
        if self._closed:
            raise StopAsyncIteration
        await self._queue.get()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._interface.off_clipboard_history_updated(self._on_signal)


class KlipperClipboardSource:
    """Thin wrapper around the org.kde.klipper.klipper proxy interface."""

    def __init__(self, interface: Any, bus: Optional[MessageBus] = None) -> None:
        self._interface = interface
        self._bus = bus

    @classmethod
    async def connect(cls, bus: MessageBus) -> "KlipperClipboardSource":
        """Introspect Klipper on an already connected bus."""

        try:
            introspection = await bus.introspect(KLIPPER_SERVICE, KLIPPER_PATH)
            proxy = bus.get_proxy_object(KLIPPER_SERVICE, KLIPPER_PATH, introspection)
            interface = proxy.get_interface(KLIPPER_INTERFACE)
        except InterfaceNotFoundError as exc:
            raise ClipboardSourceError(f"Klipper does not expose {KLIPPER_INTERFACE}") from exc
        except _TRANSPORT_ERRORS as exc:
            raise ClipboardSourceError(f"connecting to Klipper over D-Bus: {exc}") from exc

        LOGGER.info("Connected to Klipper at %s%s", KLIPPER_SERVICE, KLIPPER_PATH)
        return cls(interface, bus)

    async def list_history(self) -> list[str]:
        try:
            history = await self._interface.call_get_clipboard_history_menu()
        except _TRANSPORT_ERRORS as exc:
            raise ClipboardSourceError(f"fetching clipboard history from Klipper: {exc}") from exc
        return list(history)

    async def clear_history(self) -> None:
        try:
            await self._interface.call_clear_clipboard_history()
        except _TRANSPORT_ERRORS as exc:
            raise ClipboardSourceError(f"clearing clipboard history: {exc}") from exc

    async def insert(self, content: str) -> None:
        try:
            await self._interface.call_set_clipboard_contents(content)
        except _TRANSPORT_ERRORS as exc:
            raise ClipboardSourceError(f"restoring clipboard entry: {exc}") from exc

    async def subscribe_to_changes(self) -> KlipperChangeStream:
        try:
            return KlipperChangeStream(self._interface)
        except AttributeError as exc:
            # The proxy only grows on_<signal> helpers for signals it introspected.
            raise ClipboardSourceError("Klipper does not emit clipboardHistoryUpdated") from exc

    def close(self) -> None:
        if self._bus is not None:
            self._bus.disconnect()
            self._bus = None
