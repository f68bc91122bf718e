"""Release version reported by /version and the templates.

An installed distribution answers from its metadata. A source checkout that
was never installed reads ``[project].version`` from the repository's
pyproject.toml.
"""

import tomllib
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

DISTRIBUTION_NAME = "tenant-gateway"
PYPROJECT_PATH = Path(__file__).resolve().parents[3] / "pyproject.toml"


def _read_pyproject_version(path: Path = PYPROJECT_PATH) -> str:
    with path.open("rb") as f:
        return tomllib.load(f)["project"]["version"]


def get_version() -> str:
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return _read_pyproject_version()


__version__ = get_version()
