"""Logging configuration and the diagnostic log file.

Console output is for the person running the wizard and stays quiet unless
debug is enabled. Every record is also appended as one JSON line to a
diagnostic file shared by all runs on the machine, so a support request can
include the full history of a failed run.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

PACKAGE_LOGGER = "raindrop_wizard"

SEVERITY_MAP = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARNING",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "CRITICAL",
}

_file_handler: logging.FileHandler | None = None


class JsonLineFormatter(logging.Formatter):
    """Formats each record as a single JSON line.

    A record never spans multiple lines, so concurrent runs appending to the
    same file cannot corrupt each other's entries.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as one JSON object."""
        log_entry: dict[str, Any] = {
            "severity": SEVERITY_MAP.get(record.levelno, "DEFAULT"),
            "message": record.getMessage(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "logger": record.name,
            "source": f"{record.module}:{record.lineno}",
        }

        if hasattr(record, "run_id"):
            log_entry["run_id"] = record.run_id
        if hasattr(record, "integration"):
            log_entry["integration"] = record.integration

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        if hasattr(record, "extra_data") and record.extra_data:
            log_entry["data"] = record.extra_data

        return json.dumps(log_entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Terminal formatter that tags each line with the run it belongs to.

    Lines read ``WARNING  [3f2a9c1e/typescript] services.pipeline: message``. The package
    prefix is dropped from logger names since every wizard logger shares it.
    """

    LEVEL_STYLES = {
        logging.DEBUG: "\033[2m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[1;31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        component = record.name.removeprefix(f"{PACKAGE_LOGGER}.")
        context = "/".join(
            str(value)
            for value in (getattr(record, "run_id", None), getattr(record, "integration", None))
            if value
        )

        line = f"{record.levelname:<8} "
        if context:
            line += f"[{context}] "
        line += f"{component}: {record.getMessage()}"

        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"

        style = self.LEVEL_STYLES.get(record.levelno)
        if self.use_color and style:
            line = f"{style}{line}{self.RESET}"
        return line


class RunLoggerAdapter(logging.LoggerAdapter):
    """Stamps run_id and integration onto every record it emits."""

    def process(self, msg: str, kwargs: dict) -> tuple[str, dict]:
        kwargs["extra"] = {**kwargs.get("extra", {}), **self.extra}
        return msg, kwargs


def setup_logging(
    debug: bool = False,
    log_file_path: str | None = None,
    run_id: str | None = None,
) -> None:
    """Configure logging for a wizard run.

    Args:
        debug: Show debug output on the terminal
        log_file_path: Diagnostic file to append to (None disables it)
        run_id: Identifier written in the run header
    """
    global _file_handler

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    logger.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if debug else logging.WARNING)
    console.setFormatter(ConsoleFormatter(use_color=sys.stderr.isatty()))
    logger.addHandler(console)

    if log_file_path:
        try:
            Path(log_file_path).parent.mkdir(parents=True, exist_ok=True)
            _file_handler = logging.FileHandler(log_file_path, mode="a", encoding="utf-8")
        except OSError as e:
            logger.warning(f"Diagnostic log disabled: {e}")
            _file_handler = None
        else:
            _file_handler.setLevel(logging.DEBUG)
            _file_handler.setFormatter(JsonLineFormatter())
            logger.addHandler(_file_handler)
            logger.info(
                "Raindrop Wizard run started",
                extra={"run_id": run_id or "-"},
            )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def shutdown_logging() -> None:
    """Detach and close the diagnostic file at the end of a run."""
    global _file_handler

    if _file_handler is None:
        return

    logging.getLogger(PACKAGE_LOGGER).removeHandler(_file_handler)
    _file_handler.close()
    _file_handler = None


def get_logger(
    name: str,
    run_id: str | None = None,
    integration: str | None = None,
) -> logging.Logger | RunLoggerAdapter:
    """Return the module logger, wrapped with run context when any is given."""
    context = {
        key: value
        for key, value in (("run_id", run_id), ("integration", integration))
        if value
    }
    logger = logging.getLogger(name)
    return RunLoggerAdapter(logger, context) if context else logger
