"""Snapshot reconciliation (core domain).

Klipper only exposes the history as a list of strings, so content is the
join key between snapshots. Duplicate values are paired in snapshot order
against store order: the first unmatched entry with identical content keeps
its timestamp, any further copies count as new.
"""

from __future__ import annotations

import logging
from typing import Iterable

from klipper_timeout.core.models import EntryStore, LifecycleResult, TrackedEntry
from klipper_timeout.core.patterns import PatternFilter

LOGGER = logging.getLogger(__name__)


def reconcile(
    store: EntryStore,
    snapshot: Iterable[str],
    patterns: PatternFilter,
    now: float,
) -> LifecycleResult:
    """Merge a fresh history snapshot into the store.

    `changed` is only set when content was filtered out, since that is the
    one case where Klipper's own list must be rewritten. Entries that simply
    vanished from the snapshot are dropped without a rewrite.
    """

    old_entries = store.entries
    matched = [False] * len(old_entries)
    merged: list[TrackedEntry] = []
    changed = False

    for content in snapshot:
        if patterns.should_always_remove(content):
            LOGGER.info("Dropping filtered clipboard entry (%s chars)", len(content))
            changed = True
            continue

        for index, entry in enumerate(old_entries):
            if not matched[index] and entry.content == content:
                matched[index] = True
                merged.append(entry)
                break
        else:
            LOGGER.debug("Tracking new clipboard entry")
            merged.append(TrackedEntry(content=content, first_seen=now))

    return LifecycleResult(store=EntryStore(tuple(merged)), changed=changed)
