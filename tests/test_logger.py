"""Tests for logger.py: setup_logging() and JsonFormatter.

Strategy: mock logging.basicConfig to verify the arguments, since pytest's
log capture plugin interferes with real basicConfig calls.
"""

import json
import logging
import sys
from unittest.mock import patch

from lingosync.logger import JsonFormatter, setup_logging


class TestSetupLogging:
    """Tests for setup_logging()."""

    @patch("lingosync.logger.logging.basicConfig")
    def test_cli_mode_logs_to_stderr(self, mock_basic, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        setup_logging(mode="cli")

        kwargs = mock_basic.call_args[1]
        handlers = kwargs["handlers"]
        assert len(handlers) == 1
        assert handlers[0].stream is sys.stderr
        assert kwargs["level"] == logging.INFO

    @patch("lingosync.logger.logging.basicConfig")
    def test_cli_mode_with_log_file(self, mock_basic, tmp_path):
        log_file = tmp_path / "ls.log"
        setup_logging(mode="cli", log_file=str(log_file))

        handlers = mock_basic.call_args[1]["handlers"]
        assert isinstance(handlers[1], logging.FileHandler)
        handlers[1].close()

    @patch("lingosync.logger.logging.basicConfig")
    def test_file_mode(self, mock_basic, tmp_path, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        log_file = str(tmp_path / "ls.log")
        setup_logging(mode="file", log_file=log_file)

        kwargs = mock_basic.call_args[1]
        assert kwargs["filename"] == log_file
        assert kwargs["level"] == logging.WARNING

    @patch("lingosync.logger.logging.basicConfig")
    def test_file_mode_env_log_file(self, mock_basic, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_FILE", str(tmp_path / "env.log"))
        setup_logging(mode="file")
        assert mock_basic.call_args[1]["filename"] == str(tmp_path / "env.log")

    @patch("lingosync.logger.logging.basicConfig")
    def test_env_log_level_honored(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(mode="cli")
        assert mock_basic.call_args[1]["level"] == logging.ERROR

    @patch("lingosync.logger.logging.basicConfig")
    def test_config_level_used_when_env_unset(self, mock_basic, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        setup_logging(mode="cli", level="warning")
        assert mock_basic.call_args[1]["level"] == logging.WARNING

    @patch("lingosync.logger.logging.basicConfig")
    def test_env_beats_config_level(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(mode="cli", level="DEBUG")
        assert mock_basic.call_args[1]["level"] == logging.ERROR

    @patch("lingosync.logger.logging.basicConfig")
    def test_debug_beats_env(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(mode="cli", debug=True)
        assert mock_basic.call_args[1]["level"] == logging.DEBUG

    @patch("lingosync.logger.logging.basicConfig")
    def test_json_format(self, mock_basic):
        setup_logging(mode="cli", debug_format="json")
        handler = mock_basic.call_args[1]["handlers"][0]
        assert isinstance(handler.formatter, JsonFormatter)

    @patch("lingosync.logger.logging.basicConfig")
    def test_charset_normalizer_silenced(self, mock_basic, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        setup_logging(mode="cli")
        assert logging.getLogger("charset_normalizer").level == logging.WARNING


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def _record(self, msg="hello %s", args=("world",), exc_info=None):
        return logging.LogRecord(
            "lingosync.sync", logging.INFO, __file__, 1, msg, args, exc_info
        )

    def test_fields(self):
        entry = json.loads(JsonFormatter().format(self._record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "lingosync.sync"
        assert entry["msg"] == "hello world"
        assert "ts" in entry
        assert "exc" not in entry

    def test_exception_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = self._record(exc_info=sys.exc_info())
        entry = json.loads(JsonFormatter().format(record))
        assert "RuntimeError: boom" in entry["exc"]
