"""nextjs-base-cli command-line interface.

Creates a new project from the configured template repository.
"""

import asyncio
from typing import Optional

import typer
from pydantic import ValidationError
from rich.markup import escape

from src.scaffold import __version__
from src.scaffold.cli.output import ConsoleEventEmitter, print_error, print_warning
from src.scaffold.config import ScaffoldSettings, get_settings
from src.scaffold.errors import InstallFailedError, ProvisioningError
from src.scaffold.events.emitter import CompositeEventEmitter, LoggingEventEmitter
from src.scaffold.logging_config import configure_logging
from src.scaffold.models import ProvisioningRequest, ProvisioningResult
from src.scaffold.provisioner.project import ProjectProvisioner
from src.scaffold.runner.package_manager import PackageManagerRunner
from src.scaffold.vcs.git import GitClient

PROGRAM_NAME = "nextjs-base-cli"

app = typer.Typer(
    name=PROGRAM_NAME,
    help="A CLI to create a new project based on a predefined GitHub template",
    no_args_is_help=True,
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{PROGRAM_NAME} {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """A CLI to create a new project based on a predefined GitHub template."""


def _format_validation_error(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'value'}: {error['msg']}"
        for error in exc.errors()
    )


def build_provisioner(settings: ScaffoldSettings) -> ProjectProvisioner:
    """Wire the pipeline collaborators from settings.

    Args:
        settings: Validated scaffold settings.

    Returns:
        ProjectProvisioner emitting to the console and the log.
    """
    return ProjectProvisioner(
        git_client=GitClient(
            git_executable=settings.git_executable,
            clone_timeout_seconds=settings.clone_timeout_seconds,
        ),
        package_manager=PackageManagerRunner(
            command=settings.install_argv,
            timeout_seconds=settings.install_timeout_seconds,
        ),
        event_emitter=CompositeEventEmitter(
            [LoggingEventEmitter(), ConsoleEventEmitter()]
        ),
        metadata_filename=settings.metadata_filename,
        cleanup_on_failure=settings.cleanup_on_failure,
    )


async def run_create(
    request: ProvisioningRequest,
    settings: ScaffoldSettings,
) -> ProvisioningResult:
    """Provision a project and apply the strict-install policy.

    Raises:
        ProvisioningError: If a fatal step fails, or the install failed
            while strict_install is enabled.
    """
    provisioner = build_provisioner(settings)
    try:
        result = await provisioner.provision(request)
    finally:
        await provisioner.event_emitter.close()

    if not result.succeeded(strict_install=settings.strict_install):
        exit_code = result.install_result.exit_code if result.install_result else -1
        raise InstallFailedError(
            f"Dependency installation failed with exit code {exit_code}"
        )
    return result


@app.command()
def create(
    project_name: str = typer.Argument(..., help="Name of the project to create"),
) -> None:
    """Create a new project using a predefined GitHub repository."""
    try:
        settings = get_settings()
    except ValidationError as exc:
        print_error(f"Invalid configuration: {escape(_format_validation_error(exc))}")
        raise typer.Exit(2)

    configure_logging(settings.log_level, settings.log_json)

    try:
        request = ProvisioningRequest.from_project_name(
            project_name, template_url=settings.template_url
        )
    except ValidationError as exc:
        print_error(f"Invalid project name: {escape(_format_validation_error(exc))}")
        raise typer.Exit(2)

    try:
        asyncio.run(run_create(request, settings))
    except ProvisioningError as exc:
        print_error(f"Failed to create the project: {escape(str(exc))}")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        print_warning("Project creation interrupted by user")
        raise typer.Exit(130)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
