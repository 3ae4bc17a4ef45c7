"""Command-line interface for the SharePoint Embedded tool server.

Usage:
    python -m spe_mcp serve
    python -m spe_mcp validate-config
    python -m spe_mcp upload-folder <container-id> ./docs --dest archive
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.table import Table

from spe_mcp.config import validate_config_file
from spe_mcp.core.logging import configure_logging

if TYPE_CHECKING:
    from spe_mcp.dependencies import Services

console = Console()
err_console = Console(stderr=True)


def _init_cli_services() -> Services:
    """Load config and build services, exiting with an actionable message on failure."""
    from spe_mcp.config import get_config
    from spe_mcp.core.errors import AuthenticationError, ConfigLoadError, ConfigValidationError
    from spe_mcp.dependencies import init_services

    try:
        config = get_config()
    except (ConfigLoadError, ConfigValidationError) as e:
        err_console.print(
            f"[red]Config error:[/red] {e}\n\n"
            "Create config/config.yaml with an [cyan]auth[/cyan] section, or set "
            "AZURE_TENANT_ID, AZURE_CLIENT_ID and AZURE_CLIENT_SECRET."
        )
        sys.exit(1)

    try:
        return init_services(config)
    except (AuthenticationError, ValueError) as e:
        err_console.print(f"[red]Authentication error:[/red] {e}")
        sys.exit(1)


@click.group()
@click.option("--debug/--no-debug", default=False, help="Enable debug logging")
def cli(debug: bool) -> None:
    """SharePoint Embedded tools for AI agents (MCP server)."""
    log_level = "DEBUG" if debug else "INFO"
    configure_logging(log_level=log_level, json_output=False)


@cli.command("validate-config")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to config file (default: config/config.yaml)",
)
def validate_config(config_path: Path | None) -> None:
    """Validate configuration from config.yaml and the environment."""
    console.print(f"Validating config: [cyan]{config_path or 'config/config.yaml'}[/cyan]")

    is_valid, message = validate_config_file(config_path)

    if is_valid:
        console.print(f"\n[green]✓[/green] {message}")
        sys.exit(0)
    else:
        console.print(f"\n[red]✗[/red] {message}")
        sys.exit(1)


@cli.command("serve")
def serve() -> None:
    """Run the MCP server on stdio.

    Stdout carries the protocol, so all logging goes to stderr.
    """
    from spe_mcp.config import get_config
    from spe_mcp.core.errors import ConfigLoadError, ConfigValidationError
    from spe_mcp.server.app import create_server

    try:
        logging_config = get_config().logging
        configure_logging(log_level=logging_config.level, json_output=logging_config.json_output)
    except (ConfigLoadError, ConfigValidationError):
        # The server still starts and reports the error from every tool
        configure_logging(log_level="INFO", json_output=True)

    err_console.print("Starting SharePoint Embedded MCP server on [cyan]stdio[/cyan]")
    create_server().run(transport="stdio")


@cli.command("upload-folder")
@click.argument("container_id")
@click.argument(
    "local_folder",
    type=click.Path(exists=False, file_okay=False, path_type=Path),
)
@click.option("--dest", "dest_folder", default=None, help="Destination folder inside the container")
def upload_folder(container_id: str, local_folder: Path, dest_folder: str | None) -> None:
    """Upload LOCAL_FOLDER recursively into CONTAINER_ID."""
    from spe_mcp.core.errors import UploadPreconditionError
    from spe_mcp.engine.folder_upload import UploadStatus

    services = _init_cli_services()
    try:
        try:
            tasks = services.uploader.prepare(str(local_folder), dest_folder)
        except UploadPreconditionError as e:
            console.print(f"[red]✗[/red] {e}")
            sys.exit(1)

        console.print(f"Uploading [cyan]{len(tasks)}[/cyan] file(s) to container [cyan]{container_id}[/cyan]")
        report = services.uploader.run(container_id, tasks)
    finally:
        services.close()

    table = Table(title="Upload results")
    table.add_column("Status")
    table.add_column("Remote path")
    table.add_column("Detail")
    styles = {
        UploadStatus.SUCCEEDED: "[green]uploaded[/green]",
        UploadStatus.FAILED: "[yellow]failed[/yellow]",
        UploadStatus.ERRORED: "[red]error[/red]",
    }
    for outcome in report.outcomes:
        table.add_row(styles[outcome.status], outcome.task.remote_path, outcome.message or "")
    console.print(table)
    console.print(f"\n{report.succeeded} uploaded, {report.failed} not uploaded")

    sys.exit(0 if report.failed == 0 else 1)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
