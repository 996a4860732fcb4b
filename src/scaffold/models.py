"""Provisioning pipeline models.

This module defines the data models for the provisioning pipeline:
- PipelineStep: Enum of the five ordered pipeline steps
- InstallOutcome: State of the dependency install step
- ProvisioningRequest: Validated input for a single provisioning run
- ProvisioningResult: What a run produced, including the install outcome

The models use Pydantic for validation, consistent with the settings in
config.py and the event models in events/models.py.
"""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from src.scaffold.config import DEFAULT_TEMPLATE_URL
from src.scaffold.runner.package_manager import InstallResult


class PipelineStep(str, Enum):
    """Ordered steps of the provisioning pipeline.

    Step Flow:
        clone → strip_history → reinitialize → patch_metadata → install

    Steps 1-4 are fatal on failure. The install step is reported but
    never aborts or rolls back the pipeline.
    """

    CLONE = "clone"
    STRIP_HISTORY = "strip_history"
    REINITIALIZE = "reinitialize"
    PATCH_METADATA = "patch_metadata"
    INSTALL = "install"


class InstallOutcome(str, Enum):
    """Outcome of the dependency install step.

    Attributes:
        PENDING: The repository is ready but install has not finished.
        OK: The install command exited with code 0.
        FAILED: The install command failed, timed out, or could not start.
    """

    PENDING = "pending"
    OK = "ok"
    FAILED = "failed"


class ProvisioningRequest(BaseModel):
    """Input for a single provisioning run.

    Attributes:
        project_name: Destination directory name and new package name.
        target_directory: Absolute path of the project directory.
        template_url: Git URL of the template repository.
    """

    project_name: str = Field(
        ...,
        min_length=1,
        description="Name of the new project",
    )

    target_directory: Path = Field(
        ...,
        description="Absolute path of the directory to create",
    )

    template_url: str = Field(
        default=DEFAULT_TEMPLATE_URL,
        min_length=1,
        description="Template repository to clone",
    )

    @field_validator("project_name")
    @classmethod
    def validate_project_name(cls, v: str) -> str:
        """Validate that the name is usable as a single directory name."""
        name = v.strip()
        if not name:
            raise ValueError("project_name cannot be empty")
        if name in (".", ".."):
            raise ValueError("project_name cannot be '.' or '..'")
        if "/" in name or "\\" in name:
            raise ValueError(
                "project_name cannot contain path separators. Scoped npm names "
                "such as @scope/app are not supported: create the project with "
                "a plain name and set the scope in package.json afterwards"
            )
        if "\x00" in name:
            raise ValueError("project_name cannot contain NUL characters")
        return name

    @field_validator("target_directory")
    @classmethod
    def validate_target_directory(cls, v: Path) -> Path:
        """Validate that the target directory is absolute."""
        if not v.is_absolute():
            raise ValueError("target_directory must be an absolute path")
        return v

    @classmethod
    def from_project_name(
        cls,
        project_name: str,
        template_url: str = DEFAULT_TEMPLATE_URL,
        base_directory: Optional[Path] = None,
    ) -> "ProvisioningRequest":
        """Build a request by resolving the name against a base directory.

        Args:
            project_name: Name supplied on the command line.
            template_url: Template repository to clone.
            base_directory: Directory to create the project in. Defaults
                            to the current working directory.

        Returns:
            A validated ProvisioningRequest.

        Raises:
            pydantic.ValidationError: If the project name is invalid.
        """
        base = (base_directory or Path.cwd()).resolve()
        return cls(
            project_name=project_name,
            target_directory=base / project_name.strip(),
            template_url=template_url,
        )


class ProvisioningResult(BaseModel):
    """Result of a provisioning run that got past the fatal steps.

    Attributes:
        project_name: Name written into the metadata file.
        target_directory: The provisioned project directory.
        repo_ready: True once clone, history strip, reinit and patch ran.
        metadata_patched: False when no metadata file was present.
        install_outcome: Outcome of the dependency install step.
        install_result: Captured output of the install command, if it ran.
    """

    project_name: str
    target_directory: Path
    repo_ready: bool = False
    metadata_patched: bool = False
    install_outcome: InstallOutcome = InstallOutcome.PENDING
    install_result: Optional[InstallResult] = None

    def succeeded(self, strict_install: bool = False) -> bool:
        """Whether the run counts as successful.

        Args:
            strict_install: Also require the install step to have passed.

        Returns:
            True if the repository is ready (and installed, when strict).
        """
        if not self.repo_ready:
            return False
        if strict_install:
            return self.install_outcome == InstallOutcome.OK
        return True
