"""Age-based expiry of tracked entries (core domain)."""

from __future__ import annotations

import logging

from klipper_timeout.core.models import EntryStore, LifecycleResult, TrackedEntry
from klipper_timeout.core.patterns import PatternFilter

LOGGER = logging.getLogger(__name__)


def expire(
    store: EntryStore,
    now: float,
    expiry: float,
    patterns: PatternFilter,
) -> LifecycleResult:
    """Drop entries whose age reached `expiry`, keeping survivors in order.

    The threshold is inclusive. Content matching a never-remove pattern is
    kept regardless of age.
    """

    survivors: list[TrackedEntry] = []
    changed = False

    for entry in store:
        age = entry.age(now)
        if age < expiry or patterns.should_never_remove(entry.content):
            survivors.append(entry)
            continue
        LOGGER.info("Expiring clipboard entry (age %.1fs)", age)
        changed = True

    if not changed:
        return LifecycleResult(store=store, changed=False)
    return LifecycleResult(store=EntryStore(tuple(survivors)), changed=True)
