"""
Run logger for the nhs-hours CLI.

One AppLogger per command run. Lines go to stderr (stdout carries tables
and --json output) and, with --log-file, to ~/.nhs-hours/logs/. Module loggers under
nhs_hours.* propagate to this logger; third-party libraries share the same
format through the root handler. Errors and warnings are kept so the run can be summarized.
"""

import logging
import sys
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty at INFO; only their warnings are interesting
QUIET_LIBRARIES = ("LiteLLM", "httpx", "urllib3", "requests")


class MillisecondsFormatter(logging.Formatter):
    """Timestamps with milliseconds: 2026-10-18 09:14:03,512."""

    def formatTime(self, record, datefmt=None):  # noqa: N802 - logging.Formatter API
        stamp = datetime.fromtimestamp(record.created).strftime(datefmt or DATE_FORMAT)
        return f"{stamp},{int(record.msecs):03d}"


def with_fields(message: str, fields: dict[str, Any]) -> str:
    """Append key=value pairs: "Ledger read [rows=12 seconds=0.4]"."""
    if not fields:
        return message
    return f"{message} [{' '.join(f'{k}={v}' for k, v in fields.items())}]"


class AppLogger:
    """Structured logger for one CLI run."""

    def __init__(
        self,
        name: str = "nhs_hours",
        log_level: str = "INFO",
        log_file: Optional[str] = None,
        log_dir: Optional[Path] = None,
        command: Optional[str] = None,
    ):
        """
        Args:
            name: Logger name; nhs_hours.* module loggers propagate to it
            log_level: DEBUG, INFO, WARNING, or ERROR for the console
            log_file: File name under log_dir; the file always records DEBUG
            log_dir: Defaults to ~/.nhs-hours/logs
            command: CLI subcommand shown on every line
        """
        level = getattr(logging, log_level.upper())
        self.command = command
        self.errors: list[dict[str, Any]] = []
        self.warnings: list[dict[str, Any]] = []

        command_part = f"{command} | " if command else ""
        self.formatter = MillisecondsFormatter(
            f"%(asctime)s | %(levelname)-8s | {command_part}%(filename)s:%(lineno)d | %(message)s"
        )

        self.logger = logging.getLogger(name)
        self.logger.setLevel(logging.DEBUG if log_file else level)
        self.logger.propagate = False
        self.logger.handlers.clear()
        self.logger.addHandler(self._stderr_handler(level))

        self._route_root_logger(level)

        if log_file:
            log_path = self._attach_file(log_file, log_dir)
            self.info(f"Logging to file: {log_path}")

    def _stderr_handler(self, level: int) -> logging.Handler:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(self.formatter)
        return handler

    def _attach_file(self, log_file: str, log_dir: Optional[Path]) -> Path:
        if log_dir is None:
            from ..config import get_log_dir

            log_dir = get_log_dir()
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / log_file

        handler = logging.FileHandler(log_path)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(self.formatter)
        self.logger.addHandler(handler)
        return log_path

    def _route_root_logger(self, level: int) -> None:
        root = logging.getLogger()
        root.setLevel(level)
        root.handlers.clear()
        root.addHandler(self._stderr_handler(level))

        for library in QUIET_LIBRARIES:
            lib_logger = logging.getLogger(library)
            lib_logger.handlers.clear()
            lib_logger.propagate = True
            lib_logger.setLevel(logging.WARNING)

    def _track(self, bucket: list, message: str, exception: Optional[Exception], fields: dict[str, Any]) -> None:
        bucket.append(
            {
                "message": message,
                "exception": str(exception) if exception else None,
                "timestamp": datetime.now().isoformat(),
                "data": fields,
            }
        )

    def debug(self, message: str, **fields):
        self.logger.debug(with_fields(message, fields), stacklevel=2)

    def info(self, message: str, **fields):
        self.logger.info(with_fields(message, fields), stacklevel=2)

    def warning(self, message: str, **fields):
        message = with_fields(message, fields)
        self.logger.warning(message, stacklevel=2)
        self._track(self.warnings, message, None, fields)

    def error(self, message: str, exception: Optional[Exception] = None, **fields):
        """Log an error (with traceback when an exception is given) and remember it."""
        if exception:
            message = f"{message} | Exception: {exception}"
        message = with_fields(message, fields)
        self.logger.error(message, exc_info=exception is not None, stacklevel=2)
        self._track(self.errors, message, exception, fields)

    def log_verdict(self, member_name: str, judge_name: str, status: str, reason: str):
        """One line per verification decision; the reason is only worth showing on rejections."""
        message = f"Verification {status} [member={member_name} judge={judge_name}]"
        if status not in ("accepted", "overridden"):
            message = f"{message} reason={reason}"
        self.logger.info(message, stacklevel=2)

    def log_ledger_write(self, member_name: str, success: bool, error: Optional[str] = None):
        if success:
            self.logger.info(f"Ledger updated [member={member_name}]", stacklevel=2)
            return
        message = f"Ledger write failed [member={member_name} error={error}]"
        self.logger.error(message, stacklevel=2)
        self._track(self.errors, message, None, {"member": member_name, "error": error})

    @contextmanager
    def time_operation(self, operation: str, **fields):
        """Log how long a block took, or that it failed.

        Usage:
            with app_logger.time_operation("leaderboard build"):
                board = service.build()
        """
        started = datetime.now()
        self.debug(f"Starting {operation}", **fields)
        try:
            yield
        except Exception as e:
            seconds = round((datetime.now() - started).total_seconds(), 2)
            self.error(f"Failed {operation}", exception=e, duration_seconds=seconds, **fields)
            raise
        seconds = round((datetime.now() - started).total_seconds(), 2)
        self.info(f"Completed {operation}", duration_seconds=seconds, **fields)

    def get_error_summary(self) -> dict[str, Any]:
        return {
            "total_errors": len(self.errors),
            "total_warnings": len(self.warnings),
            "errors": self.errors,
            "warnings": self.warnings,
        }
