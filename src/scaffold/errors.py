"""Provisioning pipeline errors.

Every pipeline failure is a ProvisioningError subclass tagged with the
PipelineStep it came from and carrying the underlying cause, so callers
can handle failures uniformly or by kind.
"""

from typing import Optional

from src.scaffold.models import PipelineStep


class ProvisioningError(Exception):
    """Base class for provisioning pipeline failures.

    Attributes:
        step: The pipeline step that failed.
        cause: The underlying exception, if any.
    """

    step: PipelineStep

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class CloneFailedError(ProvisioningError):
    """Raised when the template cannot be cloned into the target."""

    step = PipelineStep.CLONE


class HistoryStripFailedError(ProvisioningError):
    """Raised when the template's .git directory cannot be removed."""

    step = PipelineStep.STRIP_HISTORY


class ReinitFailedError(ProvisioningError):
    """Raised when git init fails in the project directory."""

    step = PipelineStep.REINITIALIZE


class MetadataPatchFailedError(ProvisioningError):
    """Raised when the metadata file cannot be read, parsed or written."""

    step = PipelineStep.PATCH_METADATA


class InstallFailedError(ProvisioningError):
    """Raised by strict callers when the dependency install failed."""

    step = PipelineStep.INSTALL


class GitCommandError(Exception):
    """Raised when a git subprocess fails, times out, or cannot start."""

    def __init__(self, command: str, returncode: int, stderr: str):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"git {command} failed ({returncode}): {stderr}")
