"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from dstation_cli.api.error_codes import TASK_ERRORS, describe_error
from dstation_cli.models.config import NasConfig
from dstation_cli.utils.formatting import (
    format_size,
    format_status,
    format_timestamp,
    get_task_progress,
)


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "AuthenticationError": [
            "• Verify the username and password in the configuration file.",
            "• Accounts with 2-step verification cannot log in with a password.",
            "• Run `dstation-cli init --force` to store new credentials.",
        ],
        "ConfigurationError": [
            "• Run `dstation-cli --show-config` to inspect the current settings.",
            "• Run `dstation-cli init --force` to write a fresh configuration.",
        ],
        "NasTransportError": [
            "• Check that the NAS is powered on and reachable from this machine.",
            "• Verify the URL, including the port (5001 for HTTPS, 5000 for HTTP).",
        ],
        "NasHttpError": [
            "• The web server answered but did not serve the API.",
            "• Make sure the URL points at DSM and not at a reverse proxy page.",
        ],
        "NasApiError": [
            "• Make sure the Download Station package is installed and running.",
            "• The session may have expired. Run the command again.",
            "• Run the command with -vv for detailed logs.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration, hiding sensitive data."""
    console = Console()
    content = ""
    for key, value in config_data.items():
        if key == "password":
            value = "[hidden]"
        content += f"{key} = {value}\n"

    console.print(
        Panel(
            escape(content.strip()),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_validation_table(config: NasConfig):
    """Displays a summary of the current settings."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("NAS URL:", config.url)
    table.add_row(
        "Username:",
        f"[green]{config.username}[/green]"
        if config.username
        else "[red]missing[/red]",
    )
    table.add_row(
        "Password:", "✓ Set" if config.password else "[red]✗ Missing[/red]"
    )
    table.add_row(
        "Timeout:", f"{config.timeout:g}s" if config.timeout else "transport default"
    )
    table.add_row("Task Details:", f"[dim]{config.additional or '-'}[/dim]")

    console.print(
        Panel(
            table,
            title="[bold green]✓ Validated Settings[/bold green]",
            border_style="green",
        )
    )


def print_api_table(catalog: dict[str, Any]):
    """Displays the APIs supported by the NAS."""
    console = Console()
    table = Table(title=f"Supported APIs ({len(catalog)})", box=box.ROUNDED)
    table.add_column("API", style="cyan")
    table.add_column("Path", style="dim")
    table.add_column("Versions", justify="right")
    table.add_column("Format")

    for name in sorted(catalog):
        info = catalog[name] or {}
        table.add_row(
            name,
            str(info.get("path", "")),
            f"{info.get('minVersion', '?')}-{info.get('maxVersion', '?')}",
            str(info.get("requestFormat", "")),
        )
    console.print(table)


def print_task_table(tasks: list[dict[str, Any]]):
    """Displays download tasks with their status and progress."""
    console = Console()
    if not tasks:
        console.print("[dim]No download tasks.[/dim]")
        return

    table = Table(title=f"Download Tasks ({len(tasks)})", box=box.ROUNDED)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Title", style="cyan")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Size", justify="right")
    table.add_column("Progress", justify="right", style="green")

    for task in tasks:
        progress = get_task_progress(task)
        table.add_row(
            str(task.get("id", "")),
            escape(str(task.get("title", ""))),
            str(task.get("type", "")),
            format_status(task.get("status")),
            format_size(task.get("size")),
            f"{progress:.1f}%" if progress is not None else "-",
        )
    console.print(table)


def print_task_details(task: dict[str, Any]):
    """Displays every known detail of a single task."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column()

    table.add_row("ID:", str(task.get("id", "")))
    table.add_row("Type:", str(task.get("type", "")))
    table.add_row("Owner:", str(task.get("username", "")))
    table.add_row("Status:", format_status(task.get("status")))
    table.add_row("Size:", format_size(task.get("size")))

    additional = task.get("additional", {})
    if detail := additional.get("detail"):
        table.add_row("Destination:", escape(str(detail.get("destination", ""))))
        table.add_row("URI:", f"[dim]{escape(str(detail.get('uri', '')))}[/dim]")
        table.add_row("Created:", format_timestamp(detail.get("create_time")))
        table.add_row("Completed:", format_timestamp(detail.get("completed_time")))
    if transfer := additional.get("transfer"):
        table.add_row("Downloaded:", format_size(transfer.get("size_downloaded")))
        table.add_row("Uploaded:", format_size(transfer.get("size_uploaded")))
        table.add_row(
            "Speed:",
            f"[magenta]↓ {format_size(transfer.get('speed_download'))}/s  "
            f"↑ {format_size(transfer.get('speed_upload'))}/s[/magenta]",
        )
    if files := additional.get("file"):
        table.add_row("Files:", str(len(files)))

    console.print(
        Panel(
            table,
            title=f"[bold]{escape(str(task.get('title', 'Task')))}[/bold]",
            border_style="cyan",
            expand=False,
        )
    )


def print_action_results(action: str, results: list[dict[str, Any]]) -> int:
    """
    Displays the per-task outcome of a delete/pause/resume request.

    Returns:
        The number of tasks the NAS reported as failed.
    """
    console = Console()
    failed = 0
    for item in results:
        task_id = item.get("id", "?")
        code = item.get("error", 0)
        if code:
            failed += 1
            console.print(
                f"[red]✗ {task_id}: could not {action} "
                f"({describe_error(code, TASK_ERRORS)})[/red]"
            )
        else:
            console.print(f"[green]✓ {task_id}: {action} requested.[/green]")
    return failed
