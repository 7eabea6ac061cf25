import os
import platform
import stat
import sys
from pathlib import Path

import pytest
import pytest_asyncio

from mcp_env_setup.config import Settings
from mcp_env_setup.environments import environment as environment_module
from mcp_env_setup.environments.venv import venv_layout
from mcp_env_setup.types import EnvKind, Toolchain

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="uses shell script fakes")


def write_script(path: Path, body: str) -> Path:
    """Write an executable shell script."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n" + body)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def fixture_path() -> Path:
    return Path(__file__).parent.parent / "fixtures_data"


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def toolchain() -> Toolchain:
    """Toolchain pointing at the interpreter running the tests"""
    return Toolchain(
        python=Path(sys.executable),
        python_version=platform.python_version(),
        pip=[sys.executable, "-m", "pip"],
    )


@pytest.fixture(autouse=True)
def clean_registry():
    environment_module._ENVIRONMENTS.clear()
    environment_module._SETUPS.clear()
    yield
    environment_module._ENVIRONMENTS.clear()
    environment_module._SETUPS.clear()


@pytest.fixture
def pip_log(tmp_path: Path) -> Path:
    return tmp_path / "pip.log"


@pytest.fixture
def outdated_json(tmp_path: Path, fixture_path: Path) -> Path:
    """Output the fake pip prints for ``list --outdated``; tests may overwrite it."""
    target = tmp_path / "outdated.json"
    target.write_text((fixture_path / "pip" / "outdated.json").read_text())
    return target


@pytest.fixture
def fake_venv(monkeypatch, pip_log: Path, outdated_json: Path):
    """Replace venv creation with a layout whose pip is a recording script."""
    created = []

    async def create_venv(toolchain, root, with_pip=True):
        layout = venv_layout(root)
        layout.bin_dir.mkdir(parents=True)
        os.symlink(toolchain.python, layout.python)
        write_script(
            layout.pip,
            f'echo "$@" >> "{pip_log}"\n'
            f'echo "VIRTUAL_ENV=$VIRTUAL_ENV" >> "{pip_log}"\n'
            f'echo "PWD=$(pwd)" >> "{pip_log}"\n'
            f'if [ "$1" = "list" ]; then cat "{outdated_json}"; fi\n'
            f'if [ "$1" = "install" ] && [ -n "$FAKE_PIP_FAIL" ]; then echo boom >&2; exit 1; fi\n',
        )
        created.append(root)
        return layout

    monkeypatch.setattr(environment_module, "create_venv", create_venv)
    return created


@pytest_asyncio.fixture
async def venv_environment(tmp_path: Path, toolchain: Toolchain, fake_venv):
    """Environment backed by the fake venv"""
    env = await environment_module.create_environment(
        EnvKind.VENV, tmp_path / "venv", toolchain
    )
    yield env
