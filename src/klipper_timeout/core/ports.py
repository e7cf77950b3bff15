"""Ports (interfaces) used by the core daemon.

Ports define the minimal contract for the clipboard history service so the
core can run against Klipper over D-Bus or against an in-memory fake.
"""

from __future__ import annotations

from typing import AsyncIterator, Protocol


class ClipboardSourceError(RuntimeError):
    """Raised when talking to the clipboard history service fails."""


class ClipboardSourcePort(Protocol):
    """History operations required by the core daemon."""

    async def list_history(self) -> list[str]:
        ...

    async def clear_history(self) -> None:
        ...

    async def insert(self, content: str) -> None:
        ...

    async def subscribe_to_changes(self) -> AsyncIterator[None]:
        ...
