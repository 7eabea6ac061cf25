"""Interpreter and package manager discovery."""

import os
import re
import shutil
from pathlib import Path
from typing import List, Optional

from mcp_env_setup.config import (
    CONDA_CANDIDATES,
    PIP_CANDIDATES,
    PYTHON_CANDIDATES,
    Settings,
)
from mcp_env_setup.commands import run_command
from mcp_env_setup.errors import BinNotFoundError
from mcp_env_setup.logging import get_logger
from mcp_env_setup.types import EnvKind, Toolchain

logger = get_logger(__name__)

VERSION_RE = re.compile(r"Python\s+(\d+\.\d+(?:\.\d+)?)")


def which_first(candidates: List[str]) -> Optional[Path]:
    """Return the first candidate resolvable on PATH."""
    for name in candidates:
        found = shutil.which(name)
        if found:
            return Path(found)
    return None


def parse_python_version(output: str) -> Optional[str]:
    """Extract ``X.Y.Z`` from ``python --version`` output."""
    match = VERSION_RE.search(output)
    return match.group(1) if match else None


async def find_python(explicit: Optional[str] = None) -> tuple[Path, str]:
    """Locate a Python interpreter and its version."""
    candidates = [explicit] if explicit else PYTHON_CANDIDATES
    python = which_first(candidates)
    if not python:
        raise BinNotFoundError("python", candidates)

    # Python 2 printed its version on stderr
    returncode, stdout, stderr = await run_command([python, "--version"])
    version = parse_python_version(stdout) or parse_python_version(stderr)
    if returncode != 0 or not version:
        raise BinNotFoundError("python", candidates)

    logger.info("python_found", path=str(python), version=version)
    return python, version


async def find_pip(python: Path, explicit: Optional[str] = None) -> List[str]:
    """Locate the installer, as a command prefix."""
    if explicit:
        pip = which_first([explicit])
        if not pip:
            raise BinNotFoundError("pip", [explicit])
        return [str(pip)]

    pip = which_first(PIP_CANDIDATES)
    if pip:
        logger.info("pip_found", path=str(pip))
        return [str(pip)]

    returncode, _, _ = await run_command([python, "-m", "pip", "--version"])
    if returncode == 0:
        logger.info("pip_found", path=f"{python} -m pip")
        return [str(python), "-m", "pip"]

    raise BinNotFoundError("pip", PIP_CANDIDATES + [f"{python} -m pip"])


def find_conda(explicit: Optional[str] = None) -> Path:
    """Locate the conda executable."""
    if explicit:
        candidates = [explicit]
    else:
        candidates = [c for c in [os.environ.get("CONDA_EXE")] if c] + CONDA_CANDIDATES

    conda = which_first(candidates)
    if not conda:
        raise BinNotFoundError("conda", candidates)

    logger.info("conda_found", path=str(conda))
    return conda


async def discover_toolchain(kind: EnvKind, settings: Settings) -> Toolchain:
    """Resolve every binary the given environment kind needs."""
    python, version = await find_python(settings.python)
    pip = await find_pip(python, settings.pip)
    conda = find_conda(settings.conda) if kind == EnvKind.CONDA else None

    return Toolchain(python=python, python_version=version, pip=pip, conda=conda)
