"""Outdated dependencies report."""

import json
from pathlib import Path
from typing import Dict, List, Optional

from mcp_env_setup.logging import get_logger
from mcp_env_setup.types import OutdatedPackage

logger = get_logger(__name__)


def build_report(outdated: List[OutdatedPackage]) -> Dict[str, Dict[str, str]]:
    return {
        pkg.name: {"current": pkg.version, "latest": pkg.latest_version}
        for pkg in sorted(outdated, key=lambda p: p.name.lower())
    }


def write_outdated_report(path: Path, outdated: List[OutdatedPackage]) -> Optional[Path]:
    """Write the report, or delete it when nothing is outdated.

    Returns the report path when a file was written, None otherwise.
    """
    path = Path(path)
    if not outdated:
        if path.exists():
            path.unlink()
            logger.info("report_removed", path=str(path))
        return None

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(build_report(outdated), indent=2) + "\n", encoding="utf-8")
    logger.info("report_written", path=str(path), outdated=len(outdated))
    return path


def read_outdated_report(path: Path) -> Dict[str, Dict[str, str]]:
    """Load a report; a missing file means nothing is outdated."""
    path = Path(path)
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as f:
        return json.load(f)
