"""Command line interface."""

import asyncio
import contextlib
import json
import os
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from mcp_env_setup.config import DEFAULT_REQUIREMENTS_NAME, LOG_LEVELS, Settings
from mcp_env_setup.environments.environment import check_root, remove_path, setup_environment
from mcp_env_setup.errors import (
    BinNotFoundError,
    EnvCreateError,
    EnvSetupError,
    ManifestError,
    log_error,
)
from mcp_env_setup.binaries import find_conda
from mcp_env_setup.logging import configure_logging, get_logger
from mcp_env_setup.types import EnvKind, SetupOptions, SetupResult

logger = get_logger("cli")

EX_FAILURE = 1
EX_DATAERR = getattr(os, "EX_DATAERR", 65)
EX_NOINPUT = getattr(os, "EX_NOINPUT", 66)
EX_UNAVAILABLE = getattr(os, "EX_UNAVAILABLE", 69)
EX_CANTCREAT = getattr(os, "EX_CANTCREAT", 73)

err_console = Console(stderr=True)


def exit_code_for_error(error: EnvSetupError) -> int:
    """Map an error to a sysexits-style status."""
    if isinstance(error, BinNotFoundError):
        return EX_UNAVAILABLE
    if isinstance(error, ManifestError):
        return EX_NOINPUT if error.details.get("missing") else EX_DATAERR
    if isinstance(error, EnvCreateError):
        return EX_CANTCREAT
    return EX_FAILURE


@contextlib.contextmanager
def fatal_errors(command_name: str):
    """Report EnvSetupError on stderr and exit with its status."""
    try:
        yield
    except EnvSetupError as e:
        log_error(e, {"command": command_name}, logger)
        err_console.print(f"[bold red][ERROR] {e}[/bold red]")
        raise SystemExit(exit_code_for_error(e))


def print_result(result: SetupResult, fmt: str) -> None:
    if fmt == "json":
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    console = Console()
    env = result.environment
    console.print(f"[green]{env.kind.value} environment ready[/green] at {env.root}")
    console.print(f"Installed {len(result.installed)} requirement(s)")

    if not result.outdated:
        console.print("No outdated dependencies")
        return

    table = Table(title="Outdated dependencies")
    table.add_column("Package")
    table.add_column("Current")
    table.add_column("Latest")
    for pkg in result.outdated:
        table.add_row(pkg.name, pkg.version, pkg.latest_version)
    console.print(table)
    console.print(f"Report written to {result.report_path}")


@click.group()
@click.version_option(package_name="mcp-env-setup", prog_name="mcp-env-setup")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Log level.",
)
@click.option(
    "--log-format",
    type=click.Choice(["auto", "json", "console"]),
    default=None,
    help="Log output format on stderr.",
)
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str], log_format: Optional[str]):
    """Set up Python environments and report outdated dependencies."""
    settings = Settings.from_env().override(
        log_level=log_level.upper() if log_level else None,
        log_format=log_format,
    )
    configure_logging(settings.log_level, settings.log_format)
    ctx.obj = {"settings": settings}


@cli.command()
@click.argument("root", type=click.Path(file_okay=False, path_type=Path))
@click.option("--conda", is_flag=True, default=False, help="Create a conda environment instead of a venv.")
@click.option(
    "-r", "--requirements",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_REQUIREMENTS_NAME,
    show_default=True,
    help="Requirements manifest (name==version per line).",
)
@click.option("--report", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Outdated report path.")
@click.option("--python", "python_bin", default=None, help="Interpreter to create the environment with.")
@click.option("--pip", "pip_bin", default=None, help="Installer executable to require.")
@click.option("--conda-exe", default=None, help="conda executable.")
@click.option("--python-version", default=None, help="Python series for conda environments (e.g. 3.12).")
@click.option("--upgrade-pip", is_flag=True, default=False, help="Upgrade pip before installing.")
@click.option(
    "--all-packages",
    is_flag=True,
    default=False,
    help="Report every outdated package, not only manifest entries.",
)
@click.option("--format", "fmt", type=click.Choice(["text", "json"]), default="text", show_default=True)
@click.pass_context
def setup(
    ctx: click.Context,
    root: Path,
    conda: bool,
    requirements: Path,
    report: Optional[Path],
    python_bin: Optional[str],
    pip_bin: Optional[str],
    conda_exe: Optional[str],
    python_version: Optional[str],
    upgrade_pip: bool,
    all_packages: bool,
    fmt: str,
):
    """Create (or recreate) the environment at ROOT and install requirements."""
    settings: Settings = ctx.obj["settings"].override(
        python=python_bin, pip=pip_bin, conda=conda_exe
    )
    options = SetupOptions(
        root=root,
        requirements=requirements,
        kind=EnvKind.CONDA if conda else EnvKind.VENV,
        report_path=report or Path(settings.report_name),
        python_version=python_version,
        upgrade_pip=upgrade_pip,
        manifest_only=not all_packages,
    )

    with fatal_errors("setup"):
        result = asyncio.run(setup_environment(options, settings))
    print_result(result, fmt)


@cli.command()
@click.argument("root", type=click.Path(file_okay=False, path_type=Path))
@click.option("--conda", is_flag=True, default=False, help="ROOT is a conda environment.")
@click.option("--conda-exe", default=None, help="conda executable.")
@click.pass_context
def remove(ctx: click.Context, root: Path, conda: bool, conda_exe: Optional[str]):
    """Remove the environment at ROOT."""
    settings: Settings = ctx.obj["settings"].override(conda=conda_exe)
    kind = EnvKind.CONDA if conda else EnvKind.VENV

    with fatal_errors("remove"):
        check_root(root)
        conda_path = find_conda(settings.conda) if kind == EnvKind.CONDA else None
        asyncio.run(remove_path(kind, root.absolute(), conda_path))
    click.echo(f"Removed {root}")


@cli.command()
@click.pass_context
def serve(ctx: click.Context):
    """Run the MCP stdio server."""
    from mcp_env_setup.server import serve as serve_mcp

    asyncio.run(serve_mcp(ctx.obj["settings"]))


def main() -> None:
    cli()
