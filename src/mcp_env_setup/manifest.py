"""Requirements manifest parsing."""

import re
from pathlib import Path
from typing import List

from mcp_env_setup.errors import ManifestError
from mcp_env_setup.types import Requirement

PIN_RE = re.compile(r"^([A-Za-z0-9][A-Za-z0-9._-]*)\s*==\s*([^\s;]+)$")


def normalize_name(name: str) -> str:
    """Normalize a distribution name the way PEP 503 compares them."""
    return re.sub(r"[-_.]+", "-", name).lower()


def parse_manifest(text: str) -> List[Requirement]:
    """Parse ``name==version`` lines, skipping blanks and comments."""
    requirements = []
    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        match = PIN_RE.match(line)
        if not match:
            raise ManifestError(
                f"Invalid requirement on line {line_no}: {raw.strip()!r}",
                line_no=line_no,
                line=raw,
            )
        requirements.append(Requirement(name=match.group(1), version=match.group(2)))
    return requirements


def read_manifest(path: Path) -> List[Requirement]:
    """Read and parse a manifest file."""
    path = Path(path)
    if not path.is_file():
        raise ManifestError(f"Requirements manifest not found: {path}", missing=True)
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ManifestError(f"Requirements manifest {path} is not valid UTF-8: {e}") from e
    return parse_manifest(text)
