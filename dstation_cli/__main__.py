"""
Console script entry point: runs the Typer app and turns uncaught errors
into a readable panel and a non-zero exit status.
"""

import asyncio
import logging
import sys

import typer
from rich.console import Console

from dstation_cli.cli.app import app
from dstation_cli.cli.formatters import format_error_with_suggestions
from dstation_cli.exceptions import DStationError

log = logging.getLogger("dstation_cli")


def main() -> None:
    console = Console(stderr=True)

    try:
        app()
    except (typer.Exit, typer.Abort):
        pass
    except (KeyboardInterrupt, asyncio.CancelledError):
        console.print("\n[yellow]⚠️  Interrupted.[/yellow]")
        sys.exit(130)
    except DStationError as e:
        console.print(format_error_with_suggestions(e))
        sys.exit(1)
    except Exception as e:
        console.print(format_error_with_suggestions(e, {"type": "Unexpected"}))
        log.debug("Full traceback:", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
