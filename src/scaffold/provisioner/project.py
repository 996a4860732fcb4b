"""Project provisioning pipeline.

Turns a ProvisioningRequest into a ready-to-use project directory by
running five ordered steps:

1. Clone the template repository into the target directory
2. Remove the template's .git directory
3. Initialize a fresh Git repository
4. Patch the project name into the metadata file
5. Install dependencies with the package manager

Steps 1-4 are fatal: the first failure is raised as a ProvisioningError
subclass and, when enabled, the target directory is restored to its
pre-run state. Step 5 is awaited but never fatal; its outcome is
recorded on the returned ProvisioningResult.
"""

import shutil
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import structlog

from src.scaffold.errors import (
    CloneFailedError,
    GitCommandError,
    HistoryStripFailedError,
    ProvisioningError,
    ReinitFailedError,
)
from src.scaffold.events.emitter import EventEmitter, NullEventEmitter
from src.scaffold.events.models import EventType, ProvisioningEvent
from src.scaffold.models import (
    InstallOutcome,
    PipelineStep,
    ProvisioningRequest,
    ProvisioningResult,
)
from src.scaffold.provisioner.metadata import (
    METADATA_FILENAME,
    patch_project_metadata,
)
from src.scaffold.runner.package_manager import PackageManagerRunner
from src.scaffold.vcs.git import GitClient

logger = structlog.get_logger(__name__)

GIT_METADATA_DIRNAME = ".git"


class ProjectProvisioner:
    """Creates project directories from a template repository.

    All collaborators are injected so the pipeline can be driven against
    fakes in tests.

    Attributes:
        git_client: Runs git clone and git init.
        package_manager: Runs the dependency install command.
        event_emitter: Receives progress events for every step.
        metadata_filename: Metadata file patched in step 4.
        cleanup_on_failure: Restore the target directory when steps 1-4 fail.
    """

    def __init__(
        self,
        git_client: GitClient,
        package_manager: PackageManagerRunner,
        event_emitter: Optional[EventEmitter] = None,
        metadata_filename: str = METADATA_FILENAME,
        cleanup_on_failure: bool = True,
    ):
        self.git_client = git_client
        self.package_manager = package_manager
        self.event_emitter = event_emitter or NullEventEmitter()
        self.metadata_filename = metadata_filename
        self.cleanup_on_failure = cleanup_on_failure

    async def provision(
        self,
        request: ProvisioningRequest,
        log_callback: Optional[Callable[[str], None]] = None,
    ) -> ProvisioningResult:
        """Run the full pipeline for a request.

        Args:
            request: Validated provisioning request.
            log_callback: Optional function receiving install output lines.

        Returns:
            ProvisioningResult with repo_ready set and the install outcome.

        Raises:
            CloneFailedError: If the target is occupied or the clone fails.
            HistoryStripFailedError: If the template history cannot be removed.
            ReinitFailedError: If git init fails.
            MetadataPatchFailedError: If the metadata file cannot be patched.
        """
        log = logger.bind(
            project_name=request.project_name,
            target=str(request.target_directory),
        )
        log.info("Starting provisioning", template_url=request.template_url)

        await self._emit(
            EventType.STARTED,
            request,
            details={
                "template_url": request.template_url,
                "target_directory": str(request.target_directory),
            },
        )

        target_existed = request.target_directory.exists()

        try:
            await self._clone(request)
            await self._strip_history(request)
            await self._reinitialize(request)
            metadata_patched = await self._patch_metadata(request)
        except ProvisioningError as exc:
            log.error(
                "Provisioning aborted",
                step=exc.step.value,
                error=str(exc),
            )
            await self._emit(
                EventType.STEP_FAILED,
                request,
                step=exc.step,
                details={
                    "error_message": str(exc),
                    "error_type": type(exc).__name__,
                },
            )
            # A pre-existing target that fails at clone was occupied or is
            # left as git found it; it is never touched.
            if self.cleanup_on_failure and (
                exc.step != PipelineStep.CLONE or not target_existed
            ):
                self._rollback(request.target_directory, target_existed)
            raise

        result = ProvisioningResult(
            project_name=request.project_name,
            target_directory=request.target_directory,
            repo_ready=True,
            metadata_patched=metadata_patched,
        )

        await self._install(request, result, log_callback)

        log.info(
            "Provisioning finished",
            install_outcome=result.install_outcome.value,
        )
        await self._emit(
            EventType.COMPLETION,
            request,
            details={
                "install_outcome": result.install_outcome.value,
                "metadata_patched": result.metadata_patched,
            },
        )
        return result

    async def _clone(self, request: ProvisioningRequest) -> None:
        """Step 1: clone the template into an absent or empty target.

        Raises:
            CloneFailedError: If the target is occupied or git clone fails.
        """
        target = request.target_directory
        await self._emit(
            EventType.STEP_STARTED,
            request,
            step=PipelineStep.CLONE,
            details={"template_url": request.template_url},
        )

        if not self._is_available_target(target):
            raise CloneFailedError(
                f"Destination path '{target}' already exists and is not "
                "an empty directory"
            )

        try:
            await self.git_client.clone(request.template_url, target)
        except GitCommandError as exc:
            raise CloneFailedError(
                f"Failed to clone {request.template_url}: {exc.stderr}",
                cause=exc,
            ) from exc

        await self._emit(EventType.STEP_COMPLETED, request, step=PipelineStep.CLONE)

    async def _strip_history(self, request: ProvisioningRequest) -> None:
        """Step 2: delete the template's .git directory if present.

        Raises:
            HistoryStripFailedError: If the directory cannot be removed.
        """
        git_dir = request.target_directory / GIT_METADATA_DIRNAME

        if not git_dir.exists() and not git_dir.is_symlink():
            await self._emit(
                EventType.STEP_SKIPPED,
                request,
                step=PipelineStep.STRIP_HISTORY,
                details={"reason": "no Git history in template"},
            )
            return

        await self._emit(
            EventType.STEP_STARTED, request, step=PipelineStep.STRIP_HISTORY
        )

        try:
            if git_dir.is_dir() and not git_dir.is_symlink():
                shutil.rmtree(git_dir)
            else:
                git_dir.unlink()
        except OSError as exc:
            raise HistoryStripFailedError(
                f"Failed to remove {git_dir}: {exc}", cause=exc
            ) from exc

        logger.info("Removed template history", path=str(git_dir))
        await self._emit(
            EventType.STEP_COMPLETED, request, step=PipelineStep.STRIP_HISTORY
        )

    async def _reinitialize(self, request: ProvisioningRequest) -> None:
        """Step 3: create a fresh repository in the target directory.

        Raises:
            ReinitFailedError: If git init fails.
        """
        await self._emit(
            EventType.STEP_STARTED, request, step=PipelineStep.REINITIALIZE
        )
        try:
            await self.git_client.init(request.target_directory)
        except GitCommandError as exc:
            raise ReinitFailedError(
                f"Failed to initialize repository in "
                f"{request.target_directory}: {exc.stderr}",
                cause=exc,
            ) from exc
        await self._emit(
            EventType.STEP_COMPLETED, request, step=PipelineStep.REINITIALIZE
        )

    async def _patch_metadata(self, request: ProvisioningRequest) -> bool:
        """Step 4: write the project name into the metadata file.

        Returns:
            True if the file was patched, False if it was absent.

        Raises:
            MetadataPatchFailedError: If the file cannot be patched.
        """
        await self._emit(
            EventType.STEP_STARTED,
            request,
            step=PipelineStep.PATCH_METADATA,
            details={"filename": self.metadata_filename},
        )

        patched = patch_project_metadata(
            request.target_directory,
            request.project_name,
            self.metadata_filename,
        )

        await self._emit(
            EventType.STEP_COMPLETED if patched else EventType.STEP_SKIPPED,
            request,
            step=PipelineStep.PATCH_METADATA,
            details={"filename": self.metadata_filename},
        )
        return patched

    async def _install(
        self,
        request: ProvisioningRequest,
        result: ProvisioningResult,
        log_callback: Optional[Callable[[str], None]],
    ) -> None:
        """Step 5: install dependencies and record the outcome on result."""
        await self._emit(
            EventType.STEP_STARTED,
            request,
            step=PipelineStep.INSTALL,
            details={"command": self.package_manager.display_command},
        )

        install_result = await self.package_manager.run(
            request.target_directory, log_callback
        )
        result.install_result = install_result

        if install_result.success:
            result.install_outcome = InstallOutcome.OK
            await self._emit(
                EventType.STEP_COMPLETED,
                request,
                step=PipelineStep.INSTALL,
                details={"stdout": install_result.stdout},
            )
            return

        result.install_outcome = InstallOutcome.FAILED
        await self._emit(
            EventType.STEP_FAILED,
            request,
            step=PipelineStep.INSTALL,
            details={
                "error_message": (
                    f"{self.package_manager.display_command} exited with "
                    f"code {install_result.exit_code}"
                ),
                "error_type": "InstallFailed",
                "exit_code": install_result.exit_code,
                "stderr": install_result.stderr,
            },
        )

    def _is_available_target(self, target: Path) -> bool:
        """Whether target is absent or an empty directory."""
        if not target.exists():
            return True
        if not target.is_dir():
            return False
        return not any(target.iterdir())

    def _rollback(self, target: Path, target_existed: bool) -> None:
        """Restore the target directory to its pre-run state.

        A directory created by this run is removed. A directory that
        already existed (and was therefore empty) is emptied but kept.
        Rollback failures are logged and do not replace the original error.
        """
        if not target.exists():
            return

        try:
            if target_existed:
                for entry in target.iterdir():
                    if entry.is_dir() and not entry.is_symlink():
                        shutil.rmtree(entry)
                    else:
                        entry.unlink()
            else:
                shutil.rmtree(target)
            logger.info(
                "Rolled back project directory",
                target=str(target),
                removed_directory=not target_existed,
            )
        except OSError:
            logger.exception(
                "Failed to roll back project directory",
                target=str(target),
            )

    async def _emit(
        self,
        event_type: EventType,
        request: ProvisioningRequest,
        step: Optional[PipelineStep] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Emit a progress event; emitter failures never abort the run."""
        event = ProvisioningEvent(
            event_type=event_type,
            project_name=request.project_name,
            step=step,
            details=details or {},
        )
        try:
            await self.event_emitter.emit(event)
        except Exception:
            logger.exception(
                "Failed to emit provisioning event",
                event_type=event_type.value,
            )
