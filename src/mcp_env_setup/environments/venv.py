"""Virtual environment lifecycle."""

import os
import shutil
import sys
from pathlib import Path
from typing import Dict

from mcp_env_setup.commands import check_command
from mcp_env_setup.errors import CommandError, EnvCreateError
from mcp_env_setup.logging import get_logger
from mcp_env_setup.types import EnvLayout, Toolchain

logger = get_logger(__name__)


def venv_layout(root: Path) -> EnvLayout:
    """Binary locations inside a venv for the current platform."""
    match sys.platform:
        case "win32":
            bin_dir = root / "Scripts"
            return EnvLayout(root, bin_dir, bin_dir / "python.exe", bin_dir / "pip.exe")
        case _:
            bin_dir = root / "bin"
            return EnvLayout(root, bin_dir, bin_dir / "python", bin_dir / "pip")


async def create_venv(toolchain: Toolchain, root: Path, with_pip: bool = True) -> EnvLayout:
    """Create a venv at ``root`` with the host interpreter."""
    args = [toolchain.python, "-m", "venv", root]
    if not with_pip:
        args.append("--without-pip")
    try:
        await check_command(args)
    except CommandError as e:
        raise EnvCreateError(
            f"Failed to create virtual environment at {root}",
            details={"root": str(root), "stderr": e.stderr},
        ) from e

    layout = venv_layout(root)
    if not layout.python.exists():
        raise EnvCreateError(
            f"Virtual environment at {root} has no interpreter",
            details={"root": str(root), "python": str(layout.python)},
        )

    logger.info("venv_created", root=str(root), python=str(layout.python))
    return layout


def remove_venv(root: Path) -> None:
    """Delete a venv directory tree."""
    if root.exists():
        logger.debug("removing_venv", root=str(root))
        shutil.rmtree(root)


def venv_activation_vars(layout: EnvLayout, path: str) -> Dict[str, str]:
    """Variables that ``activate`` would export."""
    return {
        "VIRTUAL_ENV": str(layout.root),
        "PATH": f"{layout.bin_dir}{os.pathsep}{path}" if path else str(layout.bin_dir),
    }
