"""
Origin allow-list for cross-origin callers.

Entries are either exact origins ("https://zenith-ai.tech") or patterns
with a single "*" that stands for exactly one DNS label
("https://*.netlify.app" matches "https://zenith.netlify.app" but not
"https://a.b.netlify.app" or "https://netlify.app").
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Pattern, Tuple

from backend.app.core.errors import ConfigurationError

_LABEL = r"[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?"


def _compile_wildcard(entry: str) -> Pattern[str]:
    head, tail = entry.split("*")
    return re.compile(f"^{re.escape(head)}{_LABEL}{re.escape(tail)}$")


class OriginAllowList:
    """Immutable set of allowed origins (exact + single-wildcard)."""

    def __init__(self, entries: Iterable[str]):
        exact: List[str] = []
        patterns: List[Pattern[str]] = []
        for raw in entries:
            entry = raw.strip().rstrip("/")
            if not entry:
                continue
            stars = entry.count("*")
            if stars == 0:
                exact.append(entry)
            elif stars == 1:
                patterns.append(_compile_wildcard(entry))
            else:
                raise ConfigurationError(
                    f"CORS origin '{raw}' may contain at most one wildcard"
                )
        self._exact: Tuple[str, ...] = tuple(exact)
        self._patterns: Tuple[Pattern[str], ...] = tuple(patterns)

    @property
    def exact(self) -> Tuple[str, ...]:
        return self._exact

    def is_allowed(self, origin: Optional[str]) -> bool:
        if not origin:
            return False
        if origin in self._exact:
            return True
        return any(p.match(origin) for p in self._patterns)

    def as_regex(self) -> Optional[str]:
        """Single anchored regex for Starlette's ``allow_origin_regex``."""
        if not self._patterns:
            return None
        return "|".join(f"(?:{p.pattern})" for p in self._patterns)

    def __len__(self) -> int:
        return len(self._exact) + len(self._patterns)
