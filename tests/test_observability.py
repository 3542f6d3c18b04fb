"""
Tests for the build event sink and logging setup.
"""

import logging
from pathlib import Path

from npmbuild.core.observability.events import BuildLogger, format_map
from npmbuild.core.observability.logging_config import _parse_level, setup_logging


class TestBuildLogger:
    def test_records_events_with_indentation(self):
        log = BuildLogger()
        log.title("npmbuild %s", "0.1.0")
        log.process("Resolving installation process")
        log.subprocess("Process inputs:")
        log.action('package-lock.json -> "Found"')
        log.detail("x")
        log.break_()

        assert log.text.splitlines() == [
            "npmbuild 0.1.0",
            "  Resolving installation process",
            "    Process inputs:",
            '      package-lock.json -> "Found"',
            "        x",
            "",
        ]

    def test_messages_by_kind(self):
        log = BuildLogger()
        log.process("one")
        log.subprocess("two")
        log.process("three")
        assert log.messages("process") == ["one", "three"]
        assert log.messages() == ["one", "two", "three"]

    def test_echo_receives_rendered_lines(self):
        lines: list[str] = []
        log = BuildLogger(echo=lines.append)
        log.subprocess("Running '%s'", "npm ci")
        assert lines == ["    Running 'npm ci'"]

    def test_percent_in_message_without_args(self):
        log = BuildLogger()
        log.action("100% done")
        assert log.messages() == ["100% done"]

    def test_forwards_to_logging(self, caplog):
        log = BuildLogger()
        with caplog.at_level(logging.INFO, logger="npmbuild.build"):
            log.process("Executing build process")
        assert "Executing build process" in caplog.text


class TestFormatMap:
    def test_sorted_and_aligned(self):
        assert format_map({"node_modules": "Found", "npm-cache": "Not found", "a": "x"}) == [
            'a            -> "x"',
            'node_modules -> "Found"',
            'npm-cache    -> "Not found"',
        ]

    def test_empty(self):
        assert format_map({}) == []


class TestSetupLogging:
    def test_parse_level(self):
        assert _parse_level("debug") == logging.DEBUG
        assert _parse_level("INFO") == logging.INFO
        assert _parse_level(None) == logging.WARNING
        assert _parse_level("nonsense") == logging.WARNING

    def test_console_level(self):
        setup_logging("ERROR")
        root = logging.getLogger()
        assert root.level == logging.ERROR
        assert len(root.handlers) == 1

    def test_file_handler_lowers_root_level(self, tmp_path: Path):
        log_file = tmp_path / "build.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        try:
            assert root.level == logging.DEBUG
            assert len(root.handlers) == 2
            logging.getLogger("npmbuild.test").debug("to the file")
            for handler in root.handlers:
                handler.flush()
            assert "to the file" in log_file.read_text()
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers.clear()
