import sys
from pathlib import Path

import pytest

from mcp_env_setup import binaries
from mcp_env_setup.binaries import (
    discover_toolchain,
    find_conda,
    find_pip,
    find_python,
    parse_python_version,
)
from mcp_env_setup.config import Settings
from mcp_env_setup.errors import BinNotFoundError
from mcp_env_setup.types import EnvKind

from conftest import posix_only, write_script


@pytest.mark.parametrize(
    "output,expected",
    [
        ("Python 3.12.1\n", "3.12.1"),
        ("Python 2.7.18", "2.7.18"),
        ("Python 3.13.0rc1", "3.13.0"),
        ("not python", None),
    ],
)
def test_parse_python_version(output, expected):
    assert parse_python_version(output) == expected


@pytest.mark.asyncio
async def test_find_python_explicit():
    python, version = await find_python(sys.executable)

    assert python == Path(sys.executable)
    assert version.startswith(f"{sys.version_info.major}.{sys.version_info.minor}")


@pytest.mark.asyncio
async def test_find_python_missing():
    with pytest.raises(BinNotFoundError) as exc:
        await find_python("no-such-python-xyz")
    assert exc.value.details["binary_name"] == "python"


@pytest.mark.asyncio
async def test_find_python_no_candidates(monkeypatch):
    monkeypatch.setattr(binaries.shutil, "which", lambda name: None)

    with pytest.raises(BinNotFoundError) as exc:
        await find_python()
    assert exc.value.details["candidates"] == ["python3", "python"]


@posix_only
@pytest.mark.asyncio
async def test_find_python_rejects_non_interpreter(tmp_path):
    fake = write_script(tmp_path / "python", "echo 'something else'\n")

    with pytest.raises(BinNotFoundError):
        await find_python(str(fake))


@posix_only
@pytest.mark.asyncio
async def test_find_pip_explicit(tmp_path):
    pip = write_script(tmp_path / "pip", "exit 0\n")
    assert await find_pip(Path(sys.executable), str(pip)) == [str(pip)]


@pytest.mark.asyncio
async def test_find_pip_module_fallback(monkeypatch):
    """Test ``python -m pip`` is used when no pip binary is on PATH"""
    monkeypatch.setattr(binaries, "which_first", lambda candidates: None)

    async def fake_run(args, cwd=None, env_vars=None):
        return 0, "pip 24.0", ""

    monkeypatch.setattr(binaries, "run_command", fake_run)

    python = Path(sys.executable)
    assert await find_pip(python) == [str(python), "-m", "pip"]


@pytest.mark.asyncio
async def test_find_pip_missing(monkeypatch):
    monkeypatch.setattr(binaries, "which_first", lambda candidates: None)

    async def fake_run(args, cwd=None, env_vars=None):
        return 1, "", "No module named pip"

    monkeypatch.setattr(binaries, "run_command", fake_run)

    with pytest.raises(BinNotFoundError) as exc:
        await find_pip(Path(sys.executable))
    assert exc.value.details["binary_name"] == "pip"


@posix_only
def test_find_conda_from_conda_exe(monkeypatch, tmp_path):
    conda = write_script(tmp_path / "conda", "exit 0\n")
    monkeypatch.setenv("CONDA_EXE", str(conda))

    assert find_conda() == conda


def test_find_conda_missing(monkeypatch):
    monkeypatch.delenv("CONDA_EXE", raising=False)
    monkeypatch.setattr(binaries.shutil, "which", lambda name: None)

    with pytest.raises(BinNotFoundError):
        find_conda()


@posix_only
@pytest.mark.asyncio
async def test_discover_toolchain(tmp_path):
    pip = write_script(tmp_path / "pip", "exit 0\n")
    conda = write_script(tmp_path / "conda", "exit 0\n")
    settings = Settings(python=sys.executable, pip=str(pip), conda=str(conda))

    venv_tools = await discover_toolchain(EnvKind.VENV, settings)
    assert venv_tools.python == Path(sys.executable)
    assert venv_tools.pip == [str(pip)]
    assert venv_tools.conda is None
    assert venv_tools.python_series == f"{sys.version_info.major}.{sys.version_info.minor}"

    conda_tools = await discover_toolchain(EnvKind.CONDA, settings)
    assert conda_tools.conda == conda
