"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any D-Bus specific types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple


@dataclass(frozen=True)
class TrackedEntry:
    """A clipboard value and the monotonic time it was first observed."""

    content: str
    first_seen: float

    def age(self, now: float) -> float:
        return now - self.first_seen


@dataclass(frozen=True)
class EntryStore:
    """Ordered tracked entries, most recent first like the Klipper history."""

    entries: Tuple[TrackedEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[TrackedEntry]:
        return iter(self.entries)

    def contents(self) -> list[str]:
        return [entry.content for entry in self.entries]

    def oldest_first(self) -> Iterator[TrackedEntry]:
        return reversed(self.entries)


@dataclass(frozen=True)
class LifecycleResult:
    """Outcome of a reconcile or expire pass."""

    store: EntryStore
    changed: bool
