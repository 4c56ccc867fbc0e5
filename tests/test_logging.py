"""Tests for logging configuration."""

import io
import json
import logging

import pytest

from raindrop_wizard.utils.logging import (
    ConsoleFormatter,
    JsonLineFormatter,
    RunLoggerAdapter,
    get_logger,
    setup_logging,
    shutdown_logging,
)


@pytest.fixture
def log_file(tmp_path):
    path = tmp_path / "logs" / "wizard.log"
    yield path
    shutdown_logging()


def read_entries(path) -> list[dict]:
    return [json.loads(line) for line in path.read_text().splitlines()]


class TestDiagnosticLog:
    """Tests for the JSON lines diagnostic file."""

    def test_run_header_written(self, log_file):
        setup_logging(log_file_path=str(log_file), run_id="run-1")
        shutdown_logging()

        entries = read_entries(log_file)
        assert entries[0]["message"] == "Raindrop Wizard run started"
        assert entries[0]["run_id"] == "run-1"

    def test_records_from_package_loggers(self, log_file):
        setup_logging(log_file_path=str(log_file), run_id="run-1")

        get_logger("raindrop_wizard.services.test").info(
            "Installed package", extra={"extra_data": {"package": "raindrop-ai"}}
        )
        shutdown_logging()

        entry = read_entries(log_file)[-1]
        assert entry["message"] == "Installed package"
        assert entry["severity"] == "INFO"
        assert entry["data"] == {"package": "raindrop-ai"}

    def test_runs_append(self, log_file):
        """Test that a second run keeps the history of the first."""
        for run_id in ("first", "second"):
            setup_logging(log_file_path=str(log_file), run_id=run_id)
            shutdown_logging()

        headers = [e["run_id"] for e in read_entries(log_file) if "run_id" in e]
        assert headers == ["first", "second"]

    def test_nothing_written_after_shutdown(self, log_file):
        setup_logging(log_file_path=str(log_file))
        shutdown_logging()

        get_logger("raindrop_wizard.services.test").info("late message")

        assert "late message" not in log_file.read_text()

    def test_context_fields(self, log_file):
        setup_logging(log_file_path=str(log_file))

        get_logger("raindrop_wizard.services.test", run_id="abc", integration="python").info("hi")
        shutdown_logging()

        entry = read_entries(log_file)[-1]
        assert entry["run_id"] == "abc"
        assert entry["integration"] == "python"


class TestGetLogger:
    """Tests for get_logger()."""

    def test_plain_logger(self):
        assert isinstance(get_logger("raindrop_wizard.x"), logging.Logger)

    def test_adapter_with_context(self):
        logger = get_logger("raindrop_wizard.x", run_id="abc")

        assert isinstance(logger, RunLoggerAdapter)
        assert logger.extra == {"run_id": "abc"}


def test_json_formatter_single_line():
    record = logging.LogRecord(
        name="raindrop_wizard",
        level=logging.ERROR,
        pathname=__file__,
        lineno=1,
        msg="line one\nline two",
        args=(),
        exc_info=None,
    )

    formatted = JsonLineFormatter().format(record)

    assert "\n" not in formatted
    assert json.loads(formatted)["message"] == "line one\nline two"


def make_record(name: str, level: int = logging.WARNING, **context) -> logging.LogRecord:
    record = logging.LogRecord(
        name=name,
        level=level,
        pathname=__file__,
        lineno=1,
        msg="Install took longer than expected",
        args=(),
        exc_info=None,
    )
    record.__dict__.update(context)
    return record


class TestConsoleFormatter:
    """Tests for the terminal formatter."""

    def test_run_context_prefix(self):
        record = make_record(
            "raindrop_wizard.services.installer", run_id="abc", integration="python"
        )

        line = ConsoleFormatter(use_color=False).format(record)

        assert line == (
            "WARNING  [abc/python] services.installer: Install took longer than expected"
        )

    def test_run_id_only(self):
        record = make_record("raindrop_wizard.services.pipeline", run_id="abc")

        line = ConsoleFormatter(use_color=False).format(record)

        assert "[abc] services.pipeline:" in line

    def test_no_context(self):
        line = ConsoleFormatter(use_color=False).format(make_record("httpx"))

        assert line == "WARNING  httpx: Install took longer than expected"

    def test_color_only_when_enabled(self):
        record = make_record("raindrop_wizard.main", level=logging.ERROR)

        assert "\033[" not in ConsoleFormatter(use_color=False).format(record)
        assert ConsoleFormatter(use_color=True).format(record).endswith(ConsoleFormatter.RESET)

    def test_adapter_context_reaches_console(self):
        """Test that get_logger() context shows up in the terminal line."""
        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(ConsoleFormatter(use_color=False))
        logger = logging.getLogger("raindrop_wizard.tests.console")
        logger.addHandler(handler)
        try:
            get_logger(logger.name, run_id="abc", integration="python").warning("slow")
        finally:
            logger.removeHandler(handler)

        assert stream.getvalue().strip() == "WARNING  [abc/python] tests.console: slow"
