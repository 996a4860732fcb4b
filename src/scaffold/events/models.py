"""Provisioning event models.

This module defines the data models for provisioning progress events:
- EventType: Enum of all event types emitted by the pipeline
- ProvisioningEvent: Structured event with step, project and details

Events drive both the structured log trail and the CLI's console output.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from src.scaffold.models import PipelineStep


class EventType(str, Enum):
    """Types of events emitted by the provisioning pipeline.

    Attributes:
        STARTED: A provisioning run began.
        STEP_STARTED: A pipeline step began.
        STEP_COMPLETED: A pipeline step finished successfully.
        STEP_SKIPPED: A step had nothing to do (e.g., no metadata file).
        STEP_FAILED: A step failed; fatal for steps 1-4, reported for install.
        COMPLETION: The run finished; details carry the install outcome.
    """

    STARTED = "started"
    STEP_STARTED = "step_started"
    STEP_COMPLETED = "step_completed"
    STEP_SKIPPED = "step_skipped"
    STEP_FAILED = "step_failed"
    COMPLETION = "completion"


class ProvisioningEvent(BaseModel):
    """Structured event emitted during a provisioning run.

    Details Field Conventions:
        For STARTED events:
            - template_url: Template being cloned
            - target_directory: Directory being created

        For STEP_FAILED events:
            - error_message: Human-readable error description
            - error_type: Exception class name or failure category
            - stderr: Captured error output (install step)

        For COMPLETION events:
            - install_outcome: "ok" or "failed"
            - metadata_patched: Whether package.json was rewritten
    """

    event_type: EventType = Field(
        ...,
        description="The category of event being emitted",
    )

    project_name: str = Field(
        ...,
        min_length=1,
        description="Name of the project being provisioned",
    )

    step: Optional[PipelineStep] = Field(
        default=None,
        description="Pipeline step the event refers to, if any",
    )

    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC timezone)",
    )

    details: Dict[str, Any] = Field(
        default_factory=dict,
        description="Additional context specific to the event type",
    )

    def to_log_dict(self) -> Dict[str, Any]:
        """Convert event to a flat dictionary for structured logging.

        Returns:
            Dict[str, Any]: Flat dictionary representation of the event.
        """
        return {
            "event_type": self.event_type.value,
            "project_name": self.project_name,
            "step": self.step.value if self.step else None,
            "timestamp": self.timestamp.isoformat(),
            **self.details,
        }
