"""
SignalBus: in-process publish/subscribe with wildcard event keys.
"""

from .bus import OnceListener, SignalBus
from .config import SignalBusConfig, configure_logging, load_config
from .matching import (
    clear_pattern_cache,
    compile_pattern,
    has_wildcards,
    is_wildcard_match,
    pattern_cache_info,
)
from .payloads import ListenerErrorPayload

__version__ = "0.1.0"

__all__ = [
    "SignalBus",
    "OnceListener",
    "SignalBusConfig",
    "ListenerErrorPayload",
    "load_config",
    "configure_logging",
    "compile_pattern",
    "has_wildcards",
    "is_wildcard_match",
    "clear_pattern_cache",
    "pattern_cache_info",
]
