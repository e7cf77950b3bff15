"""Pattern compilation and matching for clipboard content (core domain)."""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Iterable, List


@dataclass(frozen=True)
class PatternFilter:
    """Compiled always-remove and never-remove pattern sets."""

    always_remove: List[re.Pattern] = field(default_factory=list)
    never_remove: List[re.Pattern] = field(default_factory=list)

    def should_always_remove(self, content: str) -> bool:
        return any(pattern.search(content) for pattern in self.always_remove)

    def should_never_remove(self, content: str) -> bool:
        return any(pattern.search(content) for pattern in self.never_remove)


def compile_patterns(patterns: Iterable[str]) -> List[re.Pattern]:
    """Compile raw regex strings, failing on the first malformed one.

    Matching is case-sensitive and unanchored: a pattern hits if it matches
    anywhere in the clipboard content.
    """

    compiled: List[re.Pattern] = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern))
        except re.error as exc:
            raise ValueError(f"invalid regex: {pattern!r} ({exc})") from exc
    return compiled


def build_pattern_filter(always_remove: Iterable[str], never_remove: Iterable[str]) -> PatternFilter:
    return PatternFilter(
        always_remove=compile_patterns(always_remove),
        never_remove=compile_patterns(never_remove),
    )
