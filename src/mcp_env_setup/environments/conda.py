"""Conda environment lifecycle."""

import os
import shutil
import sys
from pathlib import Path
from typing import Dict, Optional

from mcp_env_setup.commands import check_command
from mcp_env_setup.errors import BinNotFoundError, CommandError, EnvCreateError
from mcp_env_setup.logging import get_logger
from mcp_env_setup.types import EnvLayout, Toolchain

logger = get_logger(__name__)


def conda_layout(root: Path) -> EnvLayout:
    """Binary locations inside a conda prefix for the current platform."""
    match sys.platform:
        case "win32":
            return EnvLayout(root, root / "Scripts", root / "python.exe", root / "Scripts" / "pip.exe")
        case _:
            bin_dir = root / "bin"
            return EnvLayout(root, bin_dir, bin_dir / "python", bin_dir / "pip")


def _conda(toolchain: Toolchain) -> Path:
    if toolchain.conda is None:
        raise BinNotFoundError("conda")
    return toolchain.conda


async def create_conda_env(
    toolchain: Toolchain, root: Path, python_version: Optional[str] = None
) -> EnvLayout:
    """Create a conda environment at prefix ``root``.

    The interpreter series defaults to the host's so both modes install
    against the same Python.
    """
    version = python_version or toolchain.python_series
    try:
        await check_command([
            _conda(toolchain), "create", "--yes", "--quiet",
            "--prefix", root, f"python={version}", "pip",
        ])
    except CommandError as e:
        raise EnvCreateError(
            f"Failed to create conda environment at {root}",
            details={"root": str(root), "python": version, "stderr": e.stderr},
        ) from e

    layout = conda_layout(root)
    logger.info("conda_env_created", root=str(root), python=version)
    return layout


async def remove_conda_env(conda: Optional[Path], root: Path) -> None:
    """Remove a conda prefix and whatever conda leaves behind."""
    if not root.exists():
        return

    if conda is None:
        raise BinNotFoundError("conda")

    logger.debug("removing_conda_env", root=str(root))
    try:
        await check_command([conda, "env", "remove", "--yes", "--prefix", root])
    except CommandError as e:
        # Not a conda prefix, e.g. a leftover plain directory
        logger.warning("conda_remove_failed", root=str(root), stderr=e.stderr)

    if root.exists():
        shutil.rmtree(root)


def conda_activation_vars(layout: EnvLayout, path: str) -> Dict[str, str]:
    """Variables that ``conda activate`` would export."""
    bin_path = str(layout.bin_dir)
    if sys.platform == "win32":
        bin_path = f"{layout.root}{os.pathsep}{layout.bin_dir}"
    return {
        "CONDA_PREFIX": str(layout.root),
        "CONDA_DEFAULT_ENV": str(layout.root),
        "PATH": f"{bin_path}{os.pathsep}{path}" if path else bin_path,
    }
