"""D-Bus client factory for klipper-timeout.

We explicitly manage the bus lifecycle (connect here, disconnect in the app
on shutdown) so it is obvious when the connection exists for a long-running
daemon.
"""

from __future__ import annotations

import logging
import os

from dbus_fast import BusType
from dbus_fast.aio import MessageBus
from dotenv import load_dotenv

from klipper_timeout.adapters.klipper_dbus import KlipperClipboardSource
from klipper_timeout.core.ports import ClipboardSourceError


async def connect_klipper() -> KlipperClipboardSource:
    """Connect to the session bus and bind the Klipper interface.

    KLIPPER_TIMEOUT_BUS_ADDRESS (read via python-dotenv) overrides the
    session bus address, which is handy for nested or remote sessions.
    """

    load_dotenv()
    bus_address = os.getenv("KLIPPER_TIMEOUT_BUS_ADDRESS") or None

    logging.getLogger(__name__).info("Connecting to the D-Bus session bus")

    try:
        bus = await MessageBus(bus_address=bus_address, bus_type=BusType.SESSION).connect()
    except Exception as exc:
        # Address parsing, auth and socket errors all mean the same thing here.
        raise ClipboardSourceError(f"connecting to D-Bus session bus: {exc}") from exc

    try:
        return await KlipperClipboardSource.connect(bus)
    except ClipboardSourceError:
        bus.disconnect()
        raise
