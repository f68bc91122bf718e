"""Export the environment variable reference for the gateway and services.

Usage (from the repository root):

    python scripts/export_settings.py [output.json]

Writes docs/env-vars.json by default.
"""

import json
import sys
from pathlib import Path
from typing import Any, Type

from pydantic import SecretStr
from pydantic_core import PydanticUndefined
from pydantic_settings import BaseSettings

root_path = Path(__file__).parent.parent
sys.path.insert(0, str(root_path / "src" / "api"))

from infrastructure.settings import (  # noqa: E402
    DatabaseSettings,
    LoggingSettings,
    ProxySettings,
    ServerSettings,
    TenantSettings,
)

SETTINGS_CLASSES: tuple[Type[BaseSettings], ...] = (
    ServerSettings,
    TenantSettings,
    ProxySettings,
    DatabaseSettings,
    LoggingSettings,
)

DEFAULT_OUTPUT = root_path / "docs" / "env-vars.json"


def _display_default(default: Any, is_required: bool) -> Any:
    if isinstance(default, SecretStr):
        return None if is_required else "********"
    if is_required or default is None:
        return None
    if isinstance(default, (list, dict, bool, int, float)):
        return _jsonable(default)
    return str(default)


def _jsonable(value: Any) -> Any:
    if isinstance(value, list):
        return [_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json")
    return value


def get_model_metadata(settings_class: Type[BaseSettings]) -> dict[str, Any]:
    prefix = settings_class.model_config.get("env_prefix", "")
    properties = []

    for name, field in settings_class.model_fields.items():
        type_name = getattr(field.annotation, "__name__", str(field.annotation))
        if field.default_factory is not None:
            default = field.default_factory()
        else:
            default = field.get_default()

        # Required: no default at all, or an empty secret
        is_required = default is PydanticUndefined or (
            isinstance(default, SecretStr) and default.get_secret_value() == ""
        )

        properties.append(
            {
                "env_var": f"{prefix}{name.upper()}",
                "type": "Secret" if "Secret" in type_name else type_name,
                "default": _display_default(default, is_required),
                "required": is_required,
                "description": field.description or "",
            }
        )

    return {
        "class_name": settings_class.__name__,
        "prefix": prefix,
        "doc": settings_class.__doc__ or "",
        "properties": properties,
    }


def export_settings(output_path: Path = DEFAULT_OUTPUT) -> Path:
    data = {cls.__name__: get_model_metadata(cls) for cls in SETTINGS_CLASSES}

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(data, f, indent=2)
    return output_path


if __name__ == "__main__":
    target = Path(sys.argv[1]) if len(sys.argv) > 1 else DEFAULT_OUTPUT
    print(f"Exported settings to {export_settings(target)}")
