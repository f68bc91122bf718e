"""Unit tests for the gateway process entry point."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from fastapi import FastAPI

from service_template.lifecycle import ServerStartupError
from shared_kernel.errors import TargetMisconfiguredError


class TestApp:
    def test_module_app_is_built_gateway(self):
        from main import app

        assert isinstance(app, FastAPI)
        paths = {route.path for route in app.router.routes}
        assert {"/health", "/readiness", "/liveness", "/version", "/metrics"} <= paths
        assert "/{path:path}" in paths

    def test_create_app_returns_fresh_application(self):
        from main import app, create_app

        assert create_app() is not app


class TestRun:
    """Tests for the run() entry point."""

    def test_serves_assembled_gateway(self):
        from main import run

        gateway = MagicMock()
        with (
            patch("main.configure_logging") as configure_logging,
            patch("main.create_gateway", return_value=gateway),
        ):
            run()

        configure_logging.assert_called_once()
        gateway.build.assert_called_once()
        gateway.serve.assert_called_once()

    def test_exits_when_gateway_cannot_be_assembled(self):
        from main import run

        with (
            patch("main.configure_logging"),
            patch(
                "main.create_gateway",
                side_effect=TargetMisconfiguredError("invalid base URL for teams"),
            ),
            patch("main.DefaultStartupProbe") as probe_class,
        ):
            with pytest.raises(SystemExit) as exc_info:
                run()

        assert exc_info.value.code == 1
        probe_class.return_value.startup_failed.assert_called_once()

    def test_exits_when_server_fails_to_start(self):
        from main import run

        gateway = MagicMock()
        gateway.serve.side_effect = ServerStartupError("api-gateway failed to start")
        with (
            patch("main.configure_logging"),
            patch("main.create_gateway", return_value=gateway),
        ):
            with pytest.raises(SystemExit) as exc_info:
                run()

        assert exc_info.value.code == 1
