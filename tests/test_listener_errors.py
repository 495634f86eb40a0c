"""
Tests for listener fault handling.

Without an error handler a failing listener aborts the dispatch. With one,
faults are reported and the remaining listeners still run.
"""

import logging

import pytest
from unittest.mock import Mock

from signalbus import ListenerErrorPayload, SignalBus


def test_fault_propagates_without_handler(bus):
    """Test that the exception reaches the caller and later listeners are skipped."""
    after = Mock()
    bus.subscribe("x", Mock(side_effect=ValueError("bad payload")))
    bus.subscribe("x", after)

    with pytest.raises(ValueError, match="bad payload"):
        bus.dispatch("x", 1)

    after.assert_not_called()


def test_fault_is_logged_before_propagating(bus, caplog):
    """Test that a propagating fault is logged at ERROR."""
    bus.subscribe("x", Mock(side_effect=RuntimeError("boom")))

    with caplog.at_level(logging.ERROR, logger="signalbus"):
        with pytest.raises(RuntimeError):
            bus.dispatch("x")

    assert any("boom" in record.getMessage() for record in caplog.records)
    assert caplog.records[-1].levelno == logging.ERROR


def test_handler_isolates_faults(bus):
    """Test that registered handlers receive faults and dispatch continues."""
    handler = Mock()
    after = Mock()
    error = RuntimeError("boom")
    failing = Mock(side_effect=error)
    bus.on_error(handler)
    bus.subscribe("job.*", failing)
    bus.subscribe("job.*", after)

    bus.dispatch("job.done", {"id": 1})

    after.assert_called_once_with({"id": 1})
    handler.assert_called_once()
    payload = handler.call_args.args[0]
    assert isinstance(payload, ListenerErrorPayload)
    assert payload.event_name == "job.done"
    assert payload.key == "job.*"
    assert payload.listener is failing
    assert payload.error is error
    assert payload.error_message == "boom"


def test_handler_from_constructor():
    """Test passing an error handler when creating the bus."""
    handler = Mock()
    bus = SignalBus(error_handler=handler)
    bus.subscribe("x", Mock(side_effect=KeyError("missing")))

    bus.dispatch("x")

    handler.assert_called_once()


def test_handler_decorator(bus):
    """Test registering an error handler with the decorator form."""
    faults = []

    @bus.on_error()
    def record(payload):
        faults.append(payload.error_message)

    bus.subscribe("x", Mock(side_effect=RuntimeError("first")))
    bus.subscribe("y", Mock(side_effect=RuntimeError("second")))
    bus.dispatch("x")
    bus.dispatch("y")

    assert faults == ["first", "second"]


def test_removing_handler_restores_propagation(bus):
    """Test that faults propagate again once every handler is removed."""
    handler = Mock()
    bus.on_error(handler)
    bus.subscribe("x", Mock(side_effect=RuntimeError("boom")))

    bus.dispatch("x")
    bus.remove_error_handler(handler)
    bus.remove_error_handler(handler)

    with pytest.raises(RuntimeError):
        bus.dispatch("x")
    handler.assert_called_once()


def test_isolated_fault_in_once_listener(bus):
    """Test that a failing once listener is reported as its stored handle and removed."""
    handler = Mock()
    bus.on_error(handler)
    handle = bus.subscribe_once("x", Mock(side_effect=RuntimeError("boom")))

    bus.dispatch("x")

    assert handler.call_args.args[0].listener is handle
    assert bus.listener_count("x") == 0


def test_isolated_fault_logged_as_warning(bus, caplog):
    """Test that an isolated fault is logged at WARNING."""
    bus.on_error(Mock())
    bus.subscribe("x", Mock(side_effect=RuntimeError("boom")))

    with caplog.at_level(logging.WARNING, logger="signalbus"):
        bus.dispatch("x")

    assert [record.levelno for record in caplog.records] == [logging.WARNING]


def test_clear_all_keeps_error_handlers(bus):
    """Test that clearing listeners leaves error handlers registered."""
    handler = Mock()
    bus.on_error(handler)

    bus.clear_all()
    bus.subscribe("x", Mock(side_effect=RuntimeError("boom")))
    bus.dispatch("x")

    handler.assert_called_once()


def test_non_callable_handler_rejected(bus):
    """Test that on_error rejects non-callables."""
    with pytest.raises(ValueError):
        bus.on_error("not callable")


def test_base_exception_propagates_with_handler(bus):
    """Test that KeyboardInterrupt is never reported to error handlers."""
    handler = Mock()
    after = Mock()
    bus.on_error(handler)
    bus.subscribe("x", Mock(side_effect=KeyboardInterrupt))
    bus.subscribe("x", after)

    with pytest.raises(KeyboardInterrupt):
        bus.dispatch("x")

    handler.assert_not_called()
    after.assert_not_called()


def test_failing_error_handler_propagates(bus):
    """Test that an exception raised by an error handler reaches the dispatch caller."""
    after = Mock()
    bus.on_error(Mock(side_effect=RuntimeError("handler broke")))
    bus.subscribe("x", Mock(side_effect=ValueError("listener broke")))
    bus.subscribe("x", after)

    with pytest.raises(RuntimeError, match="handler broke"):
        bus.dispatch("x")

    after.assert_not_called()
