"""Rewrite of the external history from the in-memory store."""

from __future__ import annotations

import logging

from klipper_timeout.core.models import EntryStore
from klipper_timeout.core.ports import ClipboardSourceError, ClipboardSourcePort

LOGGER = logging.getLogger(__name__)


async def rewrite_history(source: ClipboardSourcePort, store: EntryStore) -> int:
    """Clear the external history and push the store back, oldest first.

    Klipper treats every insert as "push to front", so walking the store in
    reverse leaves the external list in the store's newest-first order.
    A failed clear propagates. Failed inserts are logged and skipped; the
    number of failures is returned.
    """

    await source.clear_history()

    failures = 0
    for entry in store.oldest_first():
        try:
            await source.insert(entry.content)
        except ClipboardSourceError:
            failures += 1
            LOGGER.warning(
                "Failed to restore clipboard entry (%s chars)",
                len(entry.content),
                exc_info=True,
            )

    if failures:
        LOGGER.warning("Restored %s of %s clipboard entries", len(store) - failures, len(store))
    return failures
