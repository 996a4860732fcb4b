"""Event emitter implementations for provisioning progress.

This module provides the event emission infrastructure for the pipeline.
It defines an abstract EventEmitter interface and concrete implementations:

- LoggingEventEmitter: Emits events as structlog entries
- CompositeEventEmitter: Emits to multiple sinks simultaneously
- NullEventEmitter: Discards events

The console renderer used by the CLI lives in src/scaffold/cli/output.py.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional

import structlog

from src.scaffold.events.models import EventType, ProvisioningEvent

logger = structlog.get_logger(__name__)


class EventEmitter(ABC):
    """Abstract base class for provisioning event emitters.

    Implementations should be fault-tolerant: emit() failures must not
    abort a provisioning run.
    """

    @abstractmethod
    async def emit(self, event: ProvisioningEvent) -> None:
        """Emit a provisioning event.

        Args:
            event: The event to emit.
        """
        pass

    async def close(self) -> None:
        """Release resources held by the emitter. Default does nothing."""
        pass


class LoggingEventEmitter(EventEmitter):
    """Event emitter that writes events as structured log entries.

    Events are logged at different levels based on event type:

    - STEP_FAILED: ERROR level
    - STEP_SKIPPED: WARNING level
    - everything else: INFO level
    """

    def __init__(self, logger_name: Optional[str] = None):
        self._logger = (
            structlog.get_logger(logger_name) if logger_name else logger
        )
        self._log_level_map = {
            EventType.STEP_FAILED: logging.ERROR,
            EventType.STEP_SKIPPED: logging.WARNING,
        }

    async def emit(self, event: ProvisioningEvent) -> None:
        log_level = self._log_level_map.get(event.event_type, logging.INFO)
        self._logger.log(
            log_level,
            "Provisioning event",
            **event.to_log_dict(),
        )


class CompositeEventEmitter(EventEmitter):
    """Event emitter that delegates to multiple child emitters.

    Each child is called independently; a failing child is logged and
    does not prevent delivery to the others.
    """

    def __init__(self, emitters: Optional[List[EventEmitter]] = None):
        self._emitters: List[EventEmitter] = emitters or []

    @property
    def emitters(self) -> List[EventEmitter]:
        """Get a copy of the child emitter list."""
        return list(self._emitters)

    async def emit(self, event: ProvisioningEvent) -> None:
        for emitter in self._emitters:
            try:
                await emitter.emit(event)
            except Exception as e:
                logger.error(
                    "Failed to emit event",
                    emitter_type=type(emitter).__name__,
                    event_type=event.event_type.value,
                    project_name=event.project_name,
                    error=str(e),
                )

    async def close(self) -> None:
        for emitter in self._emitters:
            try:
                await emitter.close()
            except Exception as e:
                logger.error(
                    "Failed to close emitter",
                    emitter_type=type(emitter).__name__,
                    error=str(e),
                )


class NullEventEmitter(EventEmitter):
    """Event emitter that discards all events."""

    async def emit(self, event: ProvisioningEvent) -> None:
        pass
