"""External command execution."""

import asyncio
import os
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

from mcp_env_setup.errors import CommandError
from mcp_env_setup.logging import get_logger

logger = get_logger(__name__)

Arg = Union[str, Path]


async def run_command(
    args: Sequence[Arg],
    cwd: Optional[Path] = None,
    env_vars: Optional[Dict[str, str]] = None,
    unset_vars: Sequence[str] = (),
) -> Tuple[int, str, str]:
    """Run a command with the current process environment and return (returncode, stdout, stderr).

    ``env_vars`` are overlaid on a copy of ``os.environ`` and ``unset_vars`` are
    dropped from it; the process environment itself is never modified.
    """

    cmd = [str(a) for a in args]
    cmd_env = {**os.environ, **(env_vars or {})}
    for key in unset_vars:
        cmd_env.pop(key, None)

    logger.debug("cmd_exec", cmd=cmd, cwd=str(cwd) if cwd else None)

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=cwd,
            env=cmd_env,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        logger.debug("cmd_not_found", cmd=cmd)
        return 127, "", str(e)

    stdout, stderr = await process.communicate()
    out = stdout.decode(errors="replace") if stdout else ""
    err = stderr.decode(errors="replace") if stderr else ""

    if out:
        logger.debug("cmd_stdout", cmd=cmd, output=out)
    if err:
        logger.debug("cmd_stderr", cmd=cmd, output=err)

    logger.debug("cmd_complete", cmd=cmd, returncode=process.returncode)

    return process.returncode, out, err


async def check_command(
    args: Sequence[Arg],
    cwd: Optional[Path] = None,
    env_vars: Optional[Dict[str, str]] = None,
    unset_vars: Sequence[str] = (),
) -> str:
    """Run a command and return its stdout, raising CommandError on failure."""
    returncode, stdout, stderr = await run_command(args, cwd, env_vars, unset_vars)
    if returncode != 0:
        cmd: List[str] = [str(a) for a in args]
        logger.error("cmd_failed", cmd=cmd, returncode=returncode, stderr=stderr)
        raise CommandError(cmd, returncode, stdout, stderr)
    return stdout
