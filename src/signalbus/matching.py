"""
Wildcard matching for SignalBus event keys.

A key may contain ``*`` (any run of characters, including none) and ``?``
(exactly one character). Every other character matches itself literally, so
keys like ``"price.(usd)+"`` need no escaping by the caller.
"""

import re
from functools import lru_cache
from typing import Pattern

WILDCARD_CHARS = ("*", "?")

# Upper bound on memoised compiled patterns
PATTERN_CACHE_SIZE = 256


def has_wildcards(key: str) -> bool:
    """Return True if ``key`` contains a wildcard metacharacter."""
    return any(char in key for char in WILDCARD_CHARS)


def compile_pattern(pattern: str) -> Pattern[str]:
    """Compile a wildcard key into an anchored regular expression.

    Args:
        pattern: Event key, possibly containing ``*`` and ``?``

    Returns:
        Pattern: Compiled regex that must match the whole event name
    """
    parts = []
    for char in pattern:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
    # DOTALL: wildcards match newlines too
    return re.compile("".join(parts), re.DOTALL)


_cached_compile = lru_cache(maxsize=PATTERN_CACHE_SIZE)(compile_pattern)


def is_wildcard_match(pattern: str, event_name: str, cache: bool = True) -> bool:
    """Check whether ``event_name`` matches ``pattern`` end to end.

    Args:
        pattern: Event key to interpret as a wildcard pattern
        event_name: Concrete event name being dispatched
        cache: Reuse previously compiled patterns

    Returns:
        bool: True if the whole event name matches
    """
    compiled = _cached_compile(pattern) if cache else compile_pattern(pattern)
    return compiled.fullmatch(event_name) is not None


def clear_pattern_cache() -> None:
    """Drop all memoised compiled patterns."""
    _cached_compile.cache_clear()


def pattern_cache_info():
    """Hit/miss statistics of the compiled pattern cache."""
    return _cached_compile.cache_info()
