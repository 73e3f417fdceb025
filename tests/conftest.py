"""
Pytest configuration and fixtures for Dockhand tests.

Plugins used by the tests are small /bin/sh scripts written into a
temporary plugin directory. The helloworld plugin execs the Python script
in tests/fixtures/helloworld.py.
"""

import os
import shlex
import stat
import sys
from pathlib import Path
from typing import Callable, Dict

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"

# Metadata document that is not valid JSON
BADMETA_SCRIPT = """\
echo '{"schema_version": "0.1.0", "vendor": "Dockhand Inc."'
"""


def make_executable(path: Path) -> None:
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


@pytest.fixture(autouse=True)
def clean_dockhand_env(monkeypatch):
    """Ensure DOCKHAND_* variables from the outer environment don't leak in."""
    for key in list(os.environ):
        if key.startswith("DOCKHAND_"):
            monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def write_script() -> Callable[[Path, str], Path]:
    """Return a helper that writes an executable /bin/sh script."""

    def _write(path: Path, body: str) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("#!/bin/sh\n" + body)
        make_executable(path)
        return path

    return _write


@pytest.fixture
def config_dir(tmp_path) -> Path:
    """Temporary client config directory with an empty cli-plugins dir."""
    config = tmp_path / "config"
    (config / "cli-plugins").mkdir(parents=True)
    return config


@pytest.fixture
def plugin_dir(config_dir) -> Path:
    """User plugin directory inside the temporary config dir."""
    return config_dir / "cli-plugins"


@pytest.fixture
def install_helloworld(write_script) -> Callable[[Path], Path]:
    """Return a helper that installs the helloworld plugin into a directory."""

    def _install(directory: Path) -> Path:
        script = FIXTURES_DIR / "helloworld.py"
        return write_script(
            directory / "dockhand-helloworld",
            f'exec {shlex.quote(sys.executable)} {shlex.quote(str(script))} "$@"\n',
        )

    return _install


@pytest.fixture
def plugins(plugin_dir, write_script, install_helloworld) -> Path:
    """Plugin directory holding a valid (helloworld) and an invalid (badmeta) plugin."""
    install_helloworld(plugin_dir)
    write_script(plugin_dir / "dockhand-badmeta", BADMETA_SCRIPT)
    return plugin_dir


@pytest.fixture
def cli_env(tmp_path, config_dir) -> Dict[str, str]:
    """Environment for running the CLI against the temporary config dir only."""
    return {
        "NO_COLOR": "1",
        "TERM": "dumb",
        "DOCKHAND_CONFIG_DIR": str(config_dir),
        "DOCKHAND_CLI_PLUGINS_EXTRA_DIRS": "",
        "DOCKHAND_SYSTEM_PLUGIN_DIRS": "",
        "DOCKHAND_LOG_DIR": str(tmp_path / "logs"),
    }
