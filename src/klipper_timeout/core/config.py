"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so the settings layer can build them safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from klipper_timeout.core.patterns import PatternFilter, build_pattern_filter

DEFAULT_EXPIRY_SECONDS = 10 * 60
DEFAULT_RESYNC_SECONDS = 30


@dataclass(frozen=True)
class ExpiryConfig:
    """Validated runtime parameters for the expiry daemon."""

    expiry: float
    resync_interval: float
    patterns: PatternFilter = field(default_factory=PatternFilter)
    expiry_tick: float = 1.0


def build_expiry_config(
    expiry_seconds: float,
    resync_interval_seconds: float,
    always_remove: Iterable[str] = (),
    never_remove: Iterable[str] = (),
) -> ExpiryConfig:
    """Validate durations and compile patterns into an ExpiryConfig."""

    if expiry_seconds <= 0:
        raise ValueError("expiry_seconds must be greater than zero")
    if resync_interval_seconds <= 0:
        raise ValueError("resync_interval_seconds must be greater than zero")

    return ExpiryConfig(
        expiry=float(expiry_seconds),
        resync_interval=float(resync_interval_seconds),
        patterns=build_pattern_filter(always_remove, never_remove),
    )
