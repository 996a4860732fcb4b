"""Rich console output utilities for the scaffold CLI."""

from rich.console import Console
from rich.markup import escape

from src.scaffold.events.emitter import EventEmitter
from src.scaffold.events.models import EventType, ProvisioningEvent
from src.scaffold.models import PipelineStep


console = Console(soft_wrap=True, highlight=False)
error_console = Console(stderr=True, soft_wrap=True, highlight=False)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]![/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]→[/blue] {message}")


class ConsoleEventEmitter(EventEmitter):
    """Renders provisioning events as human-readable progress lines.

    Fatal step failures are left to the CLI's top-level error handler so
    each abort is reported exactly once.
    """

    async def emit(self, event: ProvisioningEvent) -> None:
        name = escape(event.project_name)
        details = event.details

        if event.event_type == EventType.STARTED:
            print_info(f'Creating a new project named "{name}"...')
            return

        if event.event_type == EventType.COMPLETION:
            if details.get("install_outcome") == "ok":
                print_success(
                    "Dependencies installed successfully! Project setup complete!"
                )
            else:
                print_warning(
                    f'Project "{name}" created, but dependencies were not installed.'
                )
            return

        step = event.step
        if event.event_type == EventType.STEP_STARTED:
            self._render_started(step, name, details)
        elif event.event_type == EventType.STEP_COMPLETED:
            self._render_completed(step, details)
        elif event.event_type == EventType.STEP_SKIPPED:
            self._render_skipped(step, details)
        elif event.event_type == EventType.STEP_FAILED and step == PipelineStep.INSTALL:
            print_error(
                "Error installing dependencies: "
                f"{escape(str(details.get('error_message', '')))}"
            )
            stderr = details.get("stderr")
            if stderr:
                error_console.print(escape(stderr), style="dim")

    def _render_started(self, step, name, details) -> None:
        if step == PipelineStep.CLONE:
            url = escape(str(details.get("template_url", "")))
            print_info(f'Cloning repository from {url} into "{name}"...')
        elif step == PipelineStep.STRIP_HISTORY:
            print_info("Removing old Git history...")
        elif step == PipelineStep.REINITIALIZE:
            print_info("Initializing a new Git repository...")
        elif step == PipelineStep.PATCH_METADATA:
            print_info("Customizing the project...")
        elif step == PipelineStep.INSTALL:
            command = escape(str(details.get("command", "")))
            print_info(f"Installing dependencies using {command}...")

    def _render_completed(self, step, details) -> None:
        if step == PipelineStep.STRIP_HISTORY:
            print_success("Old Git history removed.")
        elif step == PipelineStep.REINITIALIZE:
            print_success("New Git repository initialized.")
        elif step == PipelineStep.PATCH_METADATA:
            filename = escape(str(details.get("filename", "")))
            print_success(f"Updated {filename} with the new project name.")
        elif step == PipelineStep.INSTALL:
            stdout = details.get("stdout")
            if stdout:
                console.print(escape(stdout), style="dim")

    def _render_skipped(self, step, details) -> None:
        if step == PipelineStep.PATCH_METADATA:
            filename = escape(str(details.get("filename", "")))
            print_warning(f"No {filename} found. Skipping customization.")
