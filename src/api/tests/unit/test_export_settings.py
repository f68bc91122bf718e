"""Tests for the environment variable reference export."""

import importlib.util
import json
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parents[4] / "scripts" / "export_settings.py"


@pytest.fixture(scope="module")
def exporter():
    spec = importlib.util.spec_from_file_location("export_settings", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestExportSettings:
    def test_documents_every_settings_class(self, exporter, tmp_path):
        output = exporter.export_settings(tmp_path / "env-vars.json")

        data = json.loads(output.read_text())

        assert set(data) == {
            "ServerSettings",
            "TenantSettings",
            "ProxySettings",
            "DatabaseSettings",
            "LoggingSettings",
        }

    def test_env_vars_use_prefix(self, exporter):
        from infrastructure.settings import TenantSettings

        metadata = exporter.get_model_metadata(TenantSettings)

        env_vars = {prop["env_var"]: prop for prop in metadata["properties"]}
        assert env_vars["PLATFORM_TENANT_DEFAULT_USER_ID"]["default"] == "system"
        assert env_vars["PLATFORM_TENANT_REQUIRE_USER_HEADER"]["default"] is False

    def test_secrets_are_masked(self, exporter):
        from infrastructure.settings import DatabaseSettings

        metadata = exporter.get_model_metadata(DatabaseSettings)

        password = next(
            p for p in metadata["properties"] if p["env_var"] == "PLATFORM_DB_PASSWORD"
        )
        assert password["type"] == "Secret"
        assert password["required"] is True
        assert password["default"] is None

    def test_proxy_targets_default_is_serialized(self, exporter):
        from infrastructure.settings import ProxySettings

        metadata = exporter.get_model_metadata(ProxySettings)

        targets = next(
            p for p in metadata["properties"] if p["env_var"] == "PLATFORM_PROXY_TARGETS"
        )
        assert targets["default"][0]["name"] == "team-service"
