from __future__ import annotations

import asyncio

import pytest

from fakes import FakeClipboardSource
from klipper_timeout.core.history_sync import rewrite_history
from klipper_timeout.core.models import EntryStore, TrackedEntry
from klipper_timeout.core.ports import ClipboardSourceError


def _store(*contents: str) -> EntryStore:
    return EntryStore(tuple(TrackedEntry(content, 0.0) for content in contents))


def test_reinserts_oldest_first_so_history_keeps_order() -> None:
    source = FakeClipboardSource(history=["C", "stale", "B", "A"])

    failures = asyncio.run(rewrite_history(source, _store("C", "B", "A")))

    assert failures == 0
    assert source.writes() == [("clear",), ("insert", "A"), ("insert", "B"), ("insert", "C")]
    assert source.history == ["C", "B", "A"]


def test_empty_store_only_clears() -> None:
    source = FakeClipboardSource(history=["a", "b"])

    asyncio.run(rewrite_history(source, EntryStore()))

    assert source.writes() == [("clear",)]
    assert source.history == []


def test_failed_insert_does_not_stop_the_rest() -> None:
    source = FakeClipboardSource()
    source.fail_inserts = {"B"}

    failures = asyncio.run(rewrite_history(source, _store("C", "B", "A")))

    assert failures == 1
    assert source.writes() == [("clear",), ("insert", "A"), ("insert", "B"), ("insert", "C")]
    assert source.history == ["C", "A"]


def test_failed_clear_aborts_rewrite() -> None:
    source = FakeClipboardSource(history=["a"])
    source.fail_clear = True

    with pytest.raises(ClipboardSourceError):
        asyncio.run(rewrite_history(source, _store("a")))

    assert source.writes() == [("clear",)]
