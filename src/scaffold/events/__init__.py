"""Provisioning event emission.

Event Emitters:
- EventEmitter: Abstract base class for event emission
- LoggingEventEmitter: Emits events as structured log entries
- CompositeEventEmitter: Emits to multiple sinks simultaneously
- NullEventEmitter: Discards events (for testing)
"""

from src.scaffold.events.emitter import (
    CompositeEventEmitter,
    EventEmitter,
    LoggingEventEmitter,
    NullEventEmitter,
)
from src.scaffold.events.models import EventType, ProvisioningEvent

__all__ = [
    "EventType",
    "ProvisioningEvent",
    "EventEmitter",
    "LoggingEventEmitter",
    "CompositeEventEmitter",
    "NullEventEmitter",
]
