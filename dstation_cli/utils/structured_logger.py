"""
Structured logging system for better log analysis and debugging.
Provides JSON-formatted logs with context and metadata.
"""

import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any

from rich.markup import escape

# Query parameters that must never reach a log sink in clear text
SECRET_PARAMS = frozenset({"passwd", "_sid"})


def mask_params(params: dict[str, Any]) -> dict[str, Any]:
    """Returns a copy of request parameters with secrets replaced."""
    return {k: ("***" if k in SECRET_PARAMS else v) for k, v in params.items()}


class StructuredLogger:
    """
    Enhanced logger that outputs both human-readable and machine-parseable logs.

    Usage:
        logger = StructuredLogger("dstation_cli.api")
        logger.info("task_created",
                    uri="magnet:?xt=...",
                    duration_ms=120.5)
    """

    def __init__(
        self,
        name: str,
        log_dir: Path | None = None,
        enable_json: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize structured logger.

        Args:
            name: Logger name
            log_dir: Directory for JSON log files (None = disabled)
            enable_json: Enable JSON file logging
            enable_console: Enable console output
        """
        self.name = name
        self.log_dir = log_dir
        self.enable_json = enable_json and log_dir is not None
        self.enable_console = enable_console

        self._logger = logging.getLogger(name)

        self._json_file = None
        if self.enable_json:
            log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            json_log_path = log_dir / f"dstation_cli_{timestamp}.jsonl"
            self._json_file = open(json_log_path, "a", encoding="utf-8")  # noqa: SIM115

        # Run context added to every JSON entry
        self._run_context: dict[str, Any] = {
            "run_id": f"{int(time.time())}_{id(self)}",
            "start_time": datetime.now().isoformat(),
        }

    def _format_message(self, event: str, **context) -> str:
        """Format message for console output."""
        parts = [f"[{event}]"]
        for key, value in context.items():
            if key not in ("level", "timestamp"):
                parts.append(f"{key}={value}")
        return " ".join(parts)

    def _write_json(self, level: str, event: str, **context) -> None:
        """Write structured log entry to JSON file."""
        if not self._json_file or self._json_file.closed:
            return

        entry = {
            "timestamp": datetime.now().isoformat(),
            "level": level,
            "event": event,
            **self._run_context,
            **context,
        }

        try:
            self._json_file.write(json.dumps(entry, default=str) + "\n")
            self._json_file.flush()
        except (OSError, ValueError) as e:
            print(f"JSON logging failed: {e}", file=sys.stderr)

    def _emit(self, level: int, event: str, **context) -> None:
        if self.enable_console:
            self._logger.log(level, escape(self._format_message(event, **context)))
        if self.enable_json:
            self._write_json(logging.getLevelName(level), event, **context)

    def debug(self, event: str, **context) -> None:
        """Log debug event."""
        self._emit(logging.DEBUG, event, **context)

    def info(self, event: str, **context) -> None:
        """Log info event."""
        self._emit(logging.INFO, event, **context)

    def warning(self, event: str, **context) -> None:
        """Log warning event."""
        self._emit(logging.WARNING, event, **context)

    def error(self, event: str, **context) -> None:
        """Log error event."""
        self._emit(logging.ERROR, event, **context)

    def close(self) -> None:
        """Close JSON log file."""
        if self._json_file and not self._json_file.closed:
            self._json_file.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class APILogger:
    """Specialized logger for NAS API round trips."""

    def __init__(self, logger: StructuredLogger):
        self.logger = logger

    def request_started(self, api: str, method: str, params: dict[str, Any]):
        """Log API request started."""
        self.logger.debug(
            "api_request_started",
            api=api,
            method=method,
            params=mask_params(params),
        )

    def request_completed(
        self, api: str, method: str, status_code: int, duration_ms: float, success: bool
    ):
        """Log API request completed."""
        self.logger.debug(
            "api_request_completed",
            api=api,
            method=method,
            status_code=status_code,
            duration_ms=round(duration_ms, 2),
            success=success,
        )

    def request_failed(
        self,
        api: str,
        method: str,
        error: str,
        duration_ms: float,
        status_code: int | None = None,
    ):
        """Log API request failed."""
        self.logger.debug(
            "api_request_failed",
            api=api,
            method=method,
            status_code=status_code,
            error=error,
            duration_ms=round(duration_ms, 2),
        )

    def close(self) -> None:
        self.logger.close()


def create_api_logger(
    log_dir: Path | None = None, enable_json: bool = False
) -> APILogger:
    """Create the API event logger, optionally mirrored to a JSON-lines file."""
    base = StructuredLogger(
        "dstation_cli.api.events", log_dir=log_dir, enable_json=enable_json
    )
    return APILogger(base)
