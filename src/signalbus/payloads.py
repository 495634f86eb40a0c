"""
Event Payloads for SignalBus

Pydantic models for the data the bus hands to its own error handlers.
"""

import time
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ListenerErrorPayload(BaseModel):
    """Describes a listener that raised while an event was being dispatched."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    event_name: str = Field(..., description="Name of the event being dispatched")
    key: str = Field(
        ..., description="Registry key the failing listener is stored under"
    )
    listener: Callable[..., Any] = Field(
        ..., description="The stored listener entry that raised"
    )
    error: Exception = Field(..., description="The exception raised by the listener")
    timestamp: float = Field(
        default_factory=time.time,
        description="Unix timestamp of the failure"
    )

    @computed_field
    @property
    def error_message(self) -> str:
        """String form of the exception."""
        return str(self.error)
