"""
Shared pytest fixtures and configuration for schemaconf tests.

This module provides the fixtures used across the test suite: temporary
default/user config file pairs and a reset of the package logger between
tests.
"""

import sys
from pathlib import Path

import pytest

# Ensure the local source tree wins for imports.
_SRC_ROOT = Path(__file__).resolve().parent.parent / "src"
if str(_SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(_SRC_ROOT))

from schemaconf.core.utils.logger import reset_logging  # noqa: E402


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo `setup_logging` calls (the CLI callback makes one) after each test."""
    yield
    reset_logging()


# ============================================================================
# File System Fixtures
# ============================================================================


@pytest.fixture
def write_file(tmp_path):
    """Write text to a file under tmp_path and return its path."""

    def _write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def yaml_pair(write_file):
    """A bundled default at version 1.2.0 and an older user file with a comment."""
    default = write_file(
        "defaults/config.yml",
        'version: "1.2.0"\n'
        'port: "8080"\n'
        "apiKey: null\n",
    )
    user = write_file(
        "config.yml",
        'version: "1.0.0"\n'
        'port: "9090"  # custom port\n',
    )
    return default, user


@pytest.fixture
def json_pair(write_file):
    """The same default/user pair as `yaml_pair`, in JSON."""
    default = write_file(
        "defaults/config.json",
        '{"version": "1.2.0", "port": "8080", "apiKey": null}\n',
    )
    user = write_file(
        "config.json",
        '{"version": "1.0.0", "port": "9090"}\n',
    )
    return default, user
