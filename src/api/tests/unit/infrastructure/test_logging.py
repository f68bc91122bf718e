"""Unit tests for structlog configuration."""

import logging
from types import SimpleNamespace

import pytest
import structlog

from infrastructure.logging import _use_colors, configure_logging
from infrastructure.settings import LoggingSettings


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


class TestRendererSelection:
    def test_explicit_formats_win(self, monkeypatch):
        monkeypatch.setenv("FORCE_COLOR", "1")
        assert _use_colors("console") is True
        assert _use_colors("json") is False

    def test_auto_honours_force_color(self, monkeypatch):
        monkeypatch.setenv("FORCE_COLOR", "true")
        assert _use_colors("auto") is True

    def test_auto_without_tty_is_json(self, monkeypatch):
        monkeypatch.delenv("FORCE_COLOR", raising=False)
        monkeypatch.setattr(
            "infrastructure.logging.sys",
            SimpleNamespace(stdout=SimpleNamespace(isatty=lambda: False)),
        )
        assert _use_colors("auto") is False


class TestConfigureLogging:
    def test_json_output_ends_with_json_renderer(self):
        configure_logging(LoggingSettings(level="warning", format="json"))

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert structlog.contextvars.merge_contextvars in processors

    def test_httpx_is_quieted_to_warning(self):
        configure_logging(LoggingSettings(level="debug", format="json"))

        assert logging.getLogger("httpx").level == logging.WARNING
