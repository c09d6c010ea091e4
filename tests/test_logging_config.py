"""logging 配置测试"""

import logging

import pytest
import structlog
from sidebyside.logging_config import redact_api_key, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)
    for name in ("httpx", "httpcore", "aiosqlite"):
        logging.getLogger(name).setLevel(logging.NOTSET)


class TestRedactApiKey:
    """redact_api_key() 测试"""

    def test_masks_key_param(self):
        event = {
            "event": "gemini_call_failed",
            "error": "GET https://x.test/v1beta/models/m:generateContent?key=abc123&alt=sse",
        }

        result = redact_api_key(None, "error", event)

        assert "abc123" not in result["error"]
        assert "?key=***&alt=sse" in result["error"]

    def test_leaves_other_values(self):
        event = {"event": "batch_started", "slot_count": 3, "note": "monkey=1"}
        assert redact_api_key(None, "info", dict(event)) == event


class TestSetupLogging:
    """setup_logging() 测试"""

    def test_level_and_noisy_loggers(self, restore_logging):
        setup_logging(log_format="json", log_level="debug")

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_unknown_level_falls_back(self, restore_logging, monkeypatch):
        monkeypatch.setenv("SIDEBYSIDE_LOG_LEVEL", "loud")
        setup_logging()
        assert logging.getLogger().level == logging.WARNING
