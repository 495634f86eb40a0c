"""
Common test fixtures for SignalBus tests.
"""

import logging
import os

import pytest
from unittest.mock import Mock

from signalbus import SignalBus, clear_pattern_cache


@pytest.fixture
def bus():
    """Create a fresh bus for each test."""
    bus = SignalBus()
    yield bus
    bus.clear_all()


@pytest.fixture
def listener():
    """Create a mock listener that records every payload it receives."""
    return Mock(name="listener")


@pytest.fixture(autouse=True)
def reset_pattern_cache():
    """Start every test with an empty compiled pattern cache."""
    clear_pattern_cache()
    yield
    clear_pattern_cache()


@pytest.fixture
def clean_env():
    """Remove SIGNALBUS_* variables set during a test."""
    yield
    for name in list(os.environ):
        if name.startswith("SIGNALBUS_"):
            del os.environ[name]


@pytest.fixture
def signalbus_logger():
    """Give access to the package logger and restore its level afterwards."""
    logger = logging.getLogger("signalbus")
    level = logger.level
    yield logger
    logger.setLevel(level)
