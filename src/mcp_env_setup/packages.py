"""Package installation and outdated checks inside an environment."""

import json
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from mcp_env_setup.commands import run_command
from mcp_env_setup.config import INSTALLER_PACKAGES
from mcp_env_setup.errors import CommandError, InstallError
from mcp_env_setup.logging import get_logger
from mcp_env_setup.manifest import normalize_name
from mcp_env_setup.types import Activation, Environment, OutdatedPackage, Requirement

logger = get_logger(__name__)


def pip_command(env: Environment) -> List[str]:
    """Installer command prefix for an environment."""
    if env.pip_bin.exists():
        return [str(env.pip_bin)]
    return [str(env.python_bin), "-m", "pip"]


async def _run(
    args: Sequence[str], activation: Optional[Activation]
) -> Tuple[int, str, str]:
    if activation is None:
        return await run_command(args)
    return await run_command(
        args,
        cwd=activation.cwd,
        env_vars=activation.env_vars,
        unset_vars=activation.unset_vars,
    )


async def upgrade_pip(env: Environment, activation: Optional[Activation] = None) -> None:
    """Upgrade the installer inside the environment."""
    args = [str(env.python_bin), "-m", "pip", "install", "--upgrade", "pip"]
    returncode, _, stderr = await _run(args, activation)
    if returncode != 0:
        raise InstallError("pip", returncode, stderr)
    logger.info("pip_upgraded", env_id=env.id)


async def install_requirements(
    env: Environment, manifest: Path, activation: Optional[Activation] = None
) -> None:
    """Install a requirements manifest into the environment."""
    args = pip_command(env) + ["install", "-r", str(manifest)]
    logger.info("install_start", env_id=env.id, manifest=str(manifest))

    returncode, _, stderr = await _run(args, activation)
    if returncode != 0:
        logger.error("install_failed", env_id=env.id, returncode=returncode, stderr=stderr)
        raise InstallError(str(manifest), returncode, stderr)

    logger.info("install_complete", env_id=env.id, manifest=str(manifest))


def parse_outdated(output: str) -> List[OutdatedPackage]:
    """Parse ``pip list --outdated --format=json`` output, dropping the installer."""
    if not output.strip():
        return []
    return [
        OutdatedPackage(
            name=item["name"],
            version=item["version"],
            latest_version=item["latest_version"],
        )
        for item in json.loads(output)
        if normalize_name(item["name"]) not in INSTALLER_PACKAGES
    ]


async def list_outdated(
    env: Environment, activation: Optional[Activation] = None
) -> List[OutdatedPackage]:
    """List packages in the environment with a newer release available."""
    args = pip_command(env) + ["list", "--outdated", "--format=json"]
    returncode, stdout, stderr = await _run(args, activation)
    if returncode != 0:
        raise CommandError(args, returncode, stdout, stderr)

    try:
        outdated = parse_outdated(stdout)
    except (ValueError, KeyError, TypeError) as e:
        logger.error("outdated_unparseable", env_id=env.id, output=stdout)
        raise CommandError(
            args, returncode, stdout, f"Unparseable pip list output: {e}"
        ) from e

    logger.info("outdated_checked", env_id=env.id, outdated=[p.name for p in outdated])
    return outdated


def filter_to_manifest(
    outdated: List[OutdatedPackage], requirements: List[Requirement]
) -> List[OutdatedPackage]:
    """Keep only packages named in the manifest."""
    wanted = {normalize_name(r.name) for r in requirements}
    return [p for p in outdated if normalize_name(p.name) in wanted]
