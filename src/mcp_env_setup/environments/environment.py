"""Environment lifecycle management."""
import os
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Optional

from fuuid import b58_fuuid

from mcp_env_setup.binaries import discover_toolchain
from mcp_env_setup.config import Settings
from mcp_env_setup.environments.conda import (
    conda_activation_vars,
    create_conda_env,
    remove_conda_env,
)
from mcp_env_setup.environments.venv import (
    create_venv,
    remove_venv,
    venv_activation_vars,
)
from mcp_env_setup.errors import EnvCreateError
from mcp_env_setup.logging import get_logger
from mcp_env_setup.manifest import read_manifest
from mcp_env_setup.packages import (
    filter_to_manifest,
    install_requirements,
    list_outdated,
    upgrade_pip,
)
from mcp_env_setup.report import write_outdated_report
from mcp_env_setup.types import (
    Activation,
    EnvKind,
    Environment,
    SetupOptions,
    SetupResult,
    Toolchain,
)

logger = get_logger(__name__)

# In-memory environment store
_ENVIRONMENTS: Dict[str, Environment] = {}

# Options of the setup run that produced each environment, with absolute paths
_SETUPS: Dict[str, SetupOptions] = {}

# Variables that would leak the host interpreter into the environment
UNSET_ON_ACTIVATE = ("PYTHONHOME",)


async def remove_path(kind: EnvKind, root: Path, conda: Optional[Path] = None) -> None:
    """Remove whatever environment lives at ``root``."""
    try:
        if kind == EnvKind.CONDA:
            await remove_conda_env(conda, root)
        else:
            remove_venv(root)
    except OSError as e:
        raise EnvCreateError(
            f"Failed to remove environment at {root}: {e}",
            details={"root": str(root), "error": str(e)},
        ) from e


def check_root(root: Path, protected: Iterable[Path] = ()) -> None:
    """Refuse a root whose removal would take the working dir or inputs with it."""
    resolved = Path(root).resolve()
    for path in [Path.cwd(), *protected]:
        path = Path(path).resolve()
        if path == resolved or resolved in path.parents:
            raise EnvCreateError(
                f"Refusing to replace {root}: it contains {path}",
                details={"root": str(root), "protected": str(path)},
            )


async def create_environment(
    kind: EnvKind,
    root: Path,
    toolchain: Toolchain,
    python_version: Optional[str] = None,
    protected: Iterable[Path] = (),
) -> Environment:
    """Create a fresh environment at ``root``, replacing any existing one.

    ``protected`` paths (plus the working directory) must not live inside
    ``root``; an existing root holding one of them raises EnvCreateError
    instead of being deleted.
    """
    root = Path(root).absolute()
    check_root(root, protected)

    if root.is_symlink() or (root.exists() and not root.is_dir()):
        raise EnvCreateError(
            f"Environment root {root} exists and is not a directory",
            details={"root": str(root)},
        )

    if root.exists():
        logger.info("replacing_environment", root=str(root), kind=kind.value)
        await remove_path(kind, root, toolchain.conda)

    root.parent.mkdir(parents=True, exist_ok=True)

    if kind == EnvKind.CONDA:
        layout = await create_conda_env(toolchain, root, python_version)
    else:
        layout = await create_venv(toolchain, root)

    env = Environment(
        id=b58_fuuid(),
        kind=kind,
        layout=layout,
        toolchain=toolchain,
        created_at=datetime.now(timezone.utc),
    )
    _ENVIRONMENTS[env.id] = env

    logger.info("environment_created", env_id=env.id, root=str(root), kind=kind.value)
    return env


def activation_vars(env: Environment) -> Dict[str, str]:
    """Variables exported when the environment is activated."""
    path = os.environ.get("PATH", "")
    if env.kind == EnvKind.CONDA:
        return conda_activation_vars(env.layout, path)
    return venv_activation_vars(env.layout, path)


def activate(
    env: Environment,
    cwd: Optional[Path] = None,
    extra_vars: Optional[Dict[str, str]] = None,
) -> Activation:
    """Describe how commands run inside ``env``.

    Every command of a run gets the activation vars and ``cwd``; the process
    environment is never modified, so overlapping runs cannot see each
    other's activation.
    """
    activation = Activation(
        env_vars={**(extra_vars or {}), **activation_vars(env)},
        unset_vars=UNSET_ON_ACTIVATE,
        cwd=Path(cwd).absolute() if cwd is not None else None,
    )
    logger.debug("environment_activated", env_id=env.id, cwd=str(activation.cwd))
    return activation


async def check_environment(
    env: Environment,
    settings: Settings,
    report_path: Optional[Path] = None,
    requirements_path: Optional[Path] = None,
) -> SetupResult:
    """Poll outdated packages and refresh the report.

    Without explicit paths the manifest, report and filtering of the setup
    run that created ``env`` are reused, so both agree on what the report
    lists.
    """
    setup = _SETUPS.get(env.id)

    if report_path is None:
        report_path = setup.report_path if setup else Path(settings.report_name)
    report_path = Path(report_path).absolute()

    if requirements_path is None and setup and setup.manifest_only:
        requirements_path = setup.requirements
    requirements = read_manifest(requirements_path) if requirements_path else None

    outdated = await list_outdated(env, activate(env, extra_vars=settings.installer_env))

    if requirements is not None:
        outdated = filter_to_manifest(outdated, requirements)

    written = write_outdated_report(report_path, outdated)
    return SetupResult(
        environment=env,
        installed=requirements or [],
        outdated=outdated,
        report_path=written,
    )


async def setup_environment(options: SetupOptions, settings: Settings) -> SetupResult:
    """Create an environment, install the manifest and report outdated packages."""
    logger.info(
        "setup_start",
        root=str(options.root),
        kind=options.kind.value,
        requirements=str(options.requirements),
    )

    # Missing binaries abort before anything touches the filesystem
    toolchain = await discover_toolchain(options.kind, settings)

    manifest = Path(options.requirements).absolute()
    requirements = read_manifest(manifest)
    report_path = Path(options.report_path).absolute()

    env = await create_environment(
        options.kind,
        options.root,
        toolchain,
        options.python_version,
        protected=[manifest, report_path],
    )
    _SETUPS[env.id] = replace(
        options, root=env.root, requirements=manifest, report_path=report_path
    )

    activation = activate(env, cwd=manifest.parent, extra_vars=settings.installer_env)
    if options.upgrade_pip:
        await upgrade_pip(env, activation)
    await install_requirements(env, manifest, activation)
    outdated = await list_outdated(env, activation)

    if options.manifest_only:
        outdated = filter_to_manifest(outdated, requirements)

    written = write_outdated_report(report_path, outdated)

    logger.info(
        "setup_complete",
        env_id=env.id,
        installed=len(requirements),
        outdated=len(outdated),
    )
    return SetupResult(
        environment=env,
        installed=requirements,
        outdated=outdated,
        report_path=written,
    )


def get_environment(env_id: str) -> Optional[Environment]:
    """Get environment by ID."""
    return _ENVIRONMENTS.get(env_id)


async def remove_environment(env: Environment) -> None:
    """Remove environment and its directory."""
    if env.id in _ENVIRONMENTS:
        del _ENVIRONMENTS[env.id]
    _SETUPS.pop(env.id, None)
    await remove_path(env.kind, env.root, env.toolchain.conda)
    logger.info("environment_removed", env_id=env.id, root=str(env.root))
