"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Awaitable, Callable, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from dstation_cli import __version__
from dstation_cli.api.client import NasClient
from dstation_cli.api.results import ApiError
from dstation_cli.exceptions import (
    AuthenticationError,
    ConfigurationError,
    DStationError,
)
from dstation_cli.models.config import NasConfig
from dstation_cli.storage.config_manager import ConfigManager
from dstation_cli.utils.structured_logger import create_api_logger

from .formatters import (
    format_error_with_suggestions,
    print_action_results,
    print_api_table,
    print_config,
    print_task_details,
    print_task_table,
    print_validation_table,
)

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("dstation_cli")

app = typer.Typer(
    name="dstation-cli",
    help=(
        "Manage Download Station tasks on a Synology NAS. Use 'dstation-cli"
        " <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)

T = TypeVar("T")


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "dstation-cli"


CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
    log_dir: Path | None = typer.Option(
        None,
        "--log-dir",
        help="Write a JSON-lines log of every API request to this directory.",
    ),
):
    """Download Station CLI"""
    if version:
        console.print(f"[bold]dstation-cli[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("dstation_cli").setLevel(log_level)

    ctx.obj = {"log_dir": log_dir}

    if show_config:
        if not CONFIG_FILE.is_file():
            console.print(
                "[red]✗ Config file not found.[/] Run [cyan]dstation-cli init[/cyan]"
                " first."
            )
            raise typer.Exit(code=1)
        print_config(CONFIG_FILE, ConfigManager(CONFIG_FILE).read())
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


def _log_dir(ctx: typer.Context) -> Path | None:
    return (ctx.obj or {}).get("log_dir")


async def _run_with_client(
    config: NasConfig,
    log_dir: Path | None,
    operation: Callable[[NasClient, NasConfig], Awaitable[T]],
    authenticate: bool = True,
) -> T:
    """Opens a client, optionally wraps the operation in a login/logout pair."""
    api_logger = create_api_logger(log_dir, enable_json=log_dir is not None)
    try:
        async with NasClient(
            config.url, timeout=config.timeout, api_logger=api_logger
        ) as client:
            if not authenticate:
                return await operation(client, config)

            login = await client.login(config.username, config.password)
            if isinstance(login, ApiError):
                raise AuthenticationError(login.message)
            login.unwrap()

            try:
                return await operation(client, config)
            finally:
                await client.logout()
    finally:
        api_logger.close()


def _execute(
    ctx: typer.Context,
    operation: Callable[[NasClient, NasConfig], Awaitable[T]],
    cli_options: dict[str, Any] | None = None,
    authenticate: bool = True,
) -> T:
    """Loads the configuration and runs one operation against the NAS."""
    try:
        config = ConfigManager(CONFIG_FILE).load_config(cli_options)
        if authenticate and not config.has_credentials:
            raise ConfigurationError(f"No username or password in '{CONFIG_FILE}'.")
        return asyncio.run(
            _run_with_client(config, _log_dir(ctx), operation, authenticate)
        )
    except DStationError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e


@app.command()
def init(
    url: str = typer.Argument(..., help="NAS address, e.g. https://192.168.1.2:5001"),
    username: str = typer.Argument(..., help="DSM account name."),
    password: str = typer.Argument(..., help="DSM account password."),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration."
    ),
    no_verify: bool = typer.Option(
        False, "--no-verify", help="Save without test-logging in to the NAS."
    ),
):
    """Initialize configuration with the NAS address and credentials."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    settings = {"url": url, "username": username, "password": password}
    try:
        config = NasConfig(**settings)
    except ValidationError as e:
        console.print(f"[red]✗ Invalid settings:[/red]\n{e}")
        raise typer.Exit(code=1) from e

    if not no_verify:
        console.print(f"\n[cyan]Logging in to {config.url}...[/cyan]")

        async def _verify(client: NasClient, config: NasConfig) -> None:
            console.print("[green]✓ Credentials accepted.[/green]")

        try:
            asyncio.run(_run_with_client(config, None, _verify))
        except DStationError as e:
            console.print(format_error_with_suggestions(e))
            raise typer.Exit(code=1) from e

    try:
        ConfigManager(CONFIG_FILE).save_new_config(settings)
    except ConfigurationError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1) from e
    console.print(
        f"\n[bold green]✓ Configuration saved to '{CONFIG_FILE}'[/bold green]"
    )
    console.print("Ready! Try: [cyan]dstation-cli list[/cyan]")


@app.command()
def apis(
    ctx: typer.Context,
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write the catalog as JSON to this file."
    ),
):
    """List the APIs supported by the NAS."""

    async def _query(client: NasClient, config: NasConfig) -> dict[str, Any]:
        return (await client.query_api_catalog()).unwrap()

    catalog = _execute(ctx, _query, authenticate=False) or {}

    if output:
        output.write_text(json.dumps(catalog, indent=2), encoding="utf-8")
        console.print(
            f"[green]✓ Saved {len(catalog)} API entries to '{output}'.[/green]"
        )
    else:
        print_api_table(catalog)


@app.command(name="list")
def list_command(
    ctx: typer.Context,
    offset: int = typer.Option(0, "--offset", help="Index of the first task to show."),
    limit: int = typer.Option(
        -1, "--limit", help="Number of tasks to show, -1 for all."
    ),
    additional: str | None = typer.Option(
        None,
        "--additional",
        "-a",
        help="Extra details: detail, transfer, file, tracker, peer (comma separated).",
    ),
):
    """List download tasks."""
    cli_options = {"additional": additional} if additional is not None else None

    async def _list(client: NasClient, config: NasConfig) -> list[dict[str, Any]]:
        result = await client.get_task_list(offset, limit, config.additional)
        return result.unwrap() or []

    tasks = _execute(ctx, _list, cli_options)
    print_task_table(tasks)


@app.command()
def info(
    ctx: typer.Context,
    ids: list[str] = typer.Argument(  # noqa: B008
        ..., help="One or more task IDs, e.g. dbid_100."
    ),
    additional: str | None = typer.Option(
        None,
        "--additional",
        "-a",
        help="Extra details: detail, transfer, file, tracker, peer (comma separated).",
    ),
):
    """Show details of download tasks."""
    cli_options = {"additional": additional} if additional is not None else None

    async def _info(client: NasClient, config: NasConfig) -> dict[str, Any]:
        result = await client.get_task_info(ids, config.additional)
        return result.unwrap() or {}

    data = _execute(ctx, _info, cli_options)
    for task in data.get("tasks", []):
        print_task_details(task)


@app.command()
def add(
    ctx: typer.Context,
    uris: list[str] = typer.Argument(  # noqa: B008
        ..., help="HTTP, FTP, magnet or ED2K links to download."
    ),
    destination: str | None = typer.Option(
        None,
        "--destination",
        "-d",
        help="Shared folder to download into, e.g. home/downloads.",
    ),
):
    """Create download tasks."""

    async def _add(client: NasClient, config: NasConfig) -> int:
        failed = 0
        for uri in uris:
            result = await client.create_task(uri, destination)
            if result:
                console.print(
                    f"[green]✓ Task created for[/green] [dim]{escape(uri)}[/dim]"
                )
            else:
                failed += 1
                console.print(
                    f"[red]✗ Could not create task for[/red] [dim]{escape(uri)}[/dim]"
                )
        return failed

    if _execute(ctx, _add):
        raise typer.Exit(code=1)


def _task_action(ctx: typer.Context, action: str, call) -> None:
    async def _act(client: NasClient, config: NasConfig) -> list[dict[str, Any]]:
        return (await call(client)).unwrap() or []

    results = _execute(ctx, _act)
    if print_action_results(action, results):
        raise typer.Exit(code=1)


@app.command()
def delete(
    ctx: typer.Context,
    ids: list[str] = typer.Argument(..., help="One or more task IDs."),  # noqa: B008
    force_complete: bool = typer.Option(
        False,
        "--force-complete",
        help="Move unfinished downloads to the destination instead of removing them.",
    ),
):
    """Delete download tasks."""
    _task_action(
        ctx, "delete", lambda client: client.delete_task(ids, force_complete)
    )


@app.command()
def pause(
    ctx: typer.Context,
    ids: list[str] = typer.Argument(..., help="One or more task IDs."),  # noqa: B008
):
    """Pause download tasks."""
    _task_action(ctx, "pause", lambda client: client.pause_task(ids))


@app.command()
def resume(
    ctx: typer.Context,
    ids: list[str] = typer.Argument(..., help="One or more task IDs."),  # noqa: B008
):
    """Resume paused download tasks."""
    _task_action(ctx, "resume", lambda client: client.resume_task(ids))


@app.command()
def validate():
    """Validate the current configuration."""
    try:
        config_manager = ConfigManager(CONFIG_FILE)
        config = config_manager.load_config()
        print_validation_table(config)
    except DStationError as e:
        console.print(f"[red]✗ Configuration is invalid: {e}[/red]")
        raise typer.Exit(code=1) from e
