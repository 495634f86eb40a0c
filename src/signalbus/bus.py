"""
Event bus implementation for SignalBus.

Listeners are stored per event key in registration order. A key is either a
literal event name or a wildcard pattern (``*`` and ``?``); patterns are only
interpreted when an event is dispatched.

Listener faults are routed through a ``pyee.EventEmitter`` under its
``"error"`` event. With no error handler registered a failing listener aborts
the dispatch and its exception propagates to the caller. Once a handler is
registered, faults are reported to it and the remaining listeners still run.
"""

import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Set, Union

from pyee import EventEmitter

from .config import SignalBusConfig
from .matching import has_wildcards, is_wildcard_match
from .payloads import ListenerErrorPayload

# Configure logging
logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]
ErrorHandler = Callable[[ListenerErrorPayload], None]

ERROR_EVENT = "error"


def _describe(listener: Callable) -> str:
    return getattr(listener, "__qualname__", None) or repr(listener)


def _same_listener(entry: Callable, listener: Callable) -> bool:
    if entry is listener:
        return True
    # Bound methods are recreated on every attribute access
    return (
        inspect.ismethod(entry)
        and inspect.ismethod(listener)
        and entry.__self__ is listener.__self__
        and entry.__func__ is listener.__func__
    )


def _check_key(key: Any, name: str = "key") -> None:
    if not isinstance(key, str):
        raise ValueError(f"{name} must be a string, got {type(key)}")


def _check_listener(listener: Any, name: str = "listener") -> None:
    if not callable(listener):
        raise ValueError(f"{name} must be callable, got {type(listener)}")


class OnceListener:
    """Adapter stored in place of a listener subscribed with ``subscribe_once``.

    Runs the wrapped listener for the first dispatch that reaches it and then
    removes itself from its key. ``subscribe_once`` returns the adapter so it can
    be passed to ``unsubscribe`` to cancel a subscription that has not fired.
    """

    def __init__(self, bus: "SignalBus", key: str, listener: Listener):
        self.bus = bus
        self.key = key
        self.listener = listener
        self.fired = False

    def __call__(self, payload: Any = None) -> None:
        if self.fired:
            return
        self.fired = True
        try:
            self.listener(payload)
        finally:
            self.bus.unsubscribe(self.key, self)

    def __repr__(self) -> str:
        return f"<OnceListener {_describe(self.listener)} on '{self.key}'>"


class SignalBus:
    """
    In-process publish/subscribe registry with wildcard subscriptions.

    Instances are independent; applications that want a shared bus create one
    and pass it around explicitly.
    """

    def __init__(
        self,
        config: Optional[Union[SignalBusConfig, Dict[str, Any]]] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        """Initialize the bus.

        Args:
            config: Settings model, or a dict of its fields
            error_handler: Optional fault handler, same as calling ``on_error``
        """
        if isinstance(config, dict):
            config = SignalBusConfig(**config)
        self.config = config or SignalBusConfig()
        self._events: Dict[str, List[Listener]] = {}
        self._faults = EventEmitter()

        if error_handler is not None:
            self.on_error(error_handler)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------
    def subscribe(self, key: str, listener: Optional[Listener] = None):
        """Subscribe a listener to an event name or wildcard pattern.

        The same listener may be subscribed several times; each subscription is
        a separate entry. When ``listener`` is omitted a decorator is returned.

        Args:
            key: Event name or pattern (``*`` any run, ``?`` one character)
            listener: Callable receiving the dispatched payload

        Returns:
            The listener, or a decorator when no listener was given
        """
        _check_key(key)

        if listener is None:
            def decorator(func: Listener) -> Listener:
                return self.subscribe(key, func)
            return decorator

        _check_listener(listener)
        self._events.setdefault(key, []).append(listener)
        logger.debug(f"Subscribed {_describe(listener)} to '{key}'")
        return listener

    def subscribe_once(self, key: str, listener: Listener) -> OnceListener:
        """Subscribe a listener that is removed after its first invocation.

        Unsubscribing the original listener does not cancel the subscription;
        pass the returned handle to ``unsubscribe`` instead.

        Args:
            key: Event name or pattern
            listener: Callable receiving the dispatched payload

        Returns:
            OnceListener: The stored adapter, usable as a cancellation handle
        """
        _check_key(key)
        _check_listener(listener)
        adapter = OnceListener(self, key, listener)
        self.subscribe(key, adapter)
        return adapter

    def unsubscribe(self, key: str, listener: Optional[Listener] = None) -> None:
        """Remove a listener, or every listener, from a key.

        Every entry that is ``listener`` is removed, not only the first one. A bound
        method matches another bound method of the same object and function.
        Unknown keys and listeners are ignored.

        Args:
            key: Event name or pattern exactly as subscribed
            listener: Listener to remove (optional, removes all listeners if not provided)
        """
        entries = self._events.get(key)
        if entries is None:
            return

        if listener is None:
            del self._events[key]
            logger.debug(f"Removed all listeners from '{key}'")
            return

        remaining = [entry for entry in entries if not _same_listener(entry, listener)]
        if len(remaining) == len(entries):
            return
        if remaining:
            self._events[key] = remaining
        else:
            del self._events[key]
        logger.debug(f"Unsubscribed {_describe(listener)} from '{key}'")

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def dispatch(self, event_name: str, payload: Any = None) -> None:
        """Invoke every listener whose key matches ``event_name``.

        Listeners under the exact key run first, then listeners under every
        other key whose pattern matches the whole name. Within a key listeners
        run in registration order. Keys and their listener lists are captured
        before the first listener runs, so changes made by listeners apply from
        the next dispatch on.

        Args:
            event_name: Concrete event name
            payload: Optional data passed to each listener
        """
        _check_key(event_name, "event_name")
        trace = self.config.trace_dispatch
        cache = self.config.cache_patterns

        batches = []
        exact = self._events.get(event_name)
        if exact:
            batches.append((event_name, tuple(exact)))
        for key, entries in self._events.items():
            # The exact key was handled above; other literal keys cannot match
            if key == event_name or not entries or not has_wildcards(key):
                continue
            if is_wildcard_match(key, event_name, cache=cache):
                batches.append((key, tuple(entries)))

        if trace:
            logger.debug(
                f"Dispatching '{event_name}' to {len(batches)} key(s): "
                f"{[key for key, _ in batches]}"
            )

        for key, entries in batches:
            for listener in entries:
                self._invoke(event_name, key, listener, payload)

    def _invoke(self, event_name: str, key: str, listener: Listener, payload: Any) -> None:
        try:
            listener(payload)
        except Exception as e:
            if not self._faults.listeners(ERROR_EVENT):
                logger.error(
                    f"Listener {_describe(listener)} on '{key}' failed "
                    f"while dispatching '{event_name}': {e}"
                )
                raise

            logger.warning(
                f"Listener {_describe(listener)} on '{key}' failed "
                f"while dispatching '{event_name}': {e}"
            )
            self._faults.emit(
                ERROR_EVENT,
                ListenerErrorPayload(
                    event_name=event_name,
                    key=key,
                    listener=listener,
                    error=e,
                ),
            )

    # ------------------------------------------------------------------
    # Error handlers
    # ------------------------------------------------------------------
    def on_error(self, handler: Optional[ErrorHandler] = None):
        """Register a handler for listener faults.

        While at least one handler is registered, a listener that raises no
        longer aborts the dispatch. Works as a decorator when called without a
        handler.

        Args:
            handler: Callable receiving a ListenerErrorPayload

        Returns:
            The handler, or a decorator when no handler was given
        """
        if handler is None:
            def decorator(func: ErrorHandler) -> ErrorHandler:
                return self.on_error(func)
            return decorator

        _check_listener(handler, "handler")
        self._faults.on(ERROR_EVENT, handler)
        return handler

    def remove_error_handler(self, handler: ErrorHandler) -> None:
        """Remove a fault handler registered with ``on_error``."""
        if handler in self._faults.listeners(ERROR_EVENT):
            self._faults.remove_listener(ERROR_EVENT, handler)

    # ------------------------------------------------------------------
    # Introspection and cleanup
    # ------------------------------------------------------------------
    def listener_count(self, key: str) -> int:
        """Number of listeners stored under exactly ``key``."""
        return len(self._events.get(key, ()))

    def listeners(self, key: str) -> List[Listener]:
        """Copy of the listeners stored under exactly ``key``."""
        return list(self._events.get(key, ()))

    def event_names(self) -> Set[str]:
        """Keys that currently hold at least one listener."""
        return {key for key, entries in self._events.items() if entries}

    def clear_event(self, key: str) -> None:
        """Remove every listener stored under ``key``."""
        if self._events.pop(key, None) is not None:
            logger.debug(f"Cleared listeners for '{key}'")

    def clear_all(self) -> None:
        """Remove every listener for every key. Error handlers are kept."""
        self._events.clear()
        logger.debug("Cleared all listeners")

    # Aliases
    on = subscribe
    off = unsubscribe
    once = subscribe_once
    emit = dispatch
    publish = dispatch
