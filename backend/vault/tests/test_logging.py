import json
import logging
from enum import Enum
from unittest.mock import patch

import pytest
import structlog

from vault.logging import REDACTED, _redact_secrets, _serialize_enums, setup_logging


@pytest.fixture(autouse=True)
def _cleanup_root_logger():
    """Close and remove all handlers from the root logger after each test."""
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)


class TestSetupLogging:
    def test_configures_stdout_handler(self):
        setup_logging()
        root = logging.getLogger()

        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_no_file_handler_under_pytest(self, tmp_path):
        assert setup_logging(log_dir=tmp_path / "logs") is None
        assert not (tmp_path / "logs").exists()

    def test_writes_file_outside_tests(self, tmp_path):
        with patch("vault.logging._is_test", return_value=False):
            log_path = setup_logging(log_dir=tmp_path / "logs")

        structlog.get_logger("test.file").info("hello from test")

        assert log_path is not None
        assert log_path.parent == tmp_path / "logs"
        assert "hello from test" in log_path.read_text()

    def test_quiets_http_client_loggers(self):
        setup_logging(level=logging.DEBUG)

        assert logging.getLogger("httpx").level == logging.WARNING

    def test_invalid_log_format(self, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "xml")

        with pytest.raises(ValueError, match="Invalid LOG_FORMAT"):
            setup_logging()

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")

        with pytest.raises(ValueError, match="Invalid LOG_LEVEL"):
            setup_logging()


class TestProcessors:
    def test_serialize_enums(self):
        class Color(Enum):
            RED = "red"

        assert _serialize_enums(None, "info", {"color": Color.RED, "n": 1}) == {"color": "red", "n": 1}

    def test_redacts_secret_keys(self):
        event = {"event": "reset", "token": "abc", "password": "hunter22", "user_id": "u1"}

        result = _redact_secrets(None, "info", event)

        assert result == {"event": "reset", "token": REDACTED, "password": REDACTED, "user_id": "u1"}

    def test_redaction_reaches_json_output(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LOG_FORMAT", "json")
        with patch("vault.logging._is_test", return_value=False):
            log_path = setup_logging(log_dir=tmp_path)

        structlog.get_logger("test.redact").info("login", password="hunter22")

        record = json.loads(log_path.read_text().splitlines()[-1])
        assert record["password"] == REDACTED
        assert "hunter22" not in log_path.read_text()
