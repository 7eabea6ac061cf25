"""Settings and constants."""

import os
from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional

ENV_PREFIX = "MCP_ENV_SETUP_"

PYTHON_CANDIDATES = ["python3", "python"]
PIP_CANDIDATES = ["pip3", "pip"]
CONDA_CANDIDATES = ["conda"]

# The installer never reports itself as an outdated dependency
INSTALLER_PACKAGES = frozenset({"pip"})

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_REPORT_NAME = "outdated_dependencies.json"
DEFAULT_REQUIREMENTS_NAME = "requirements.txt"

INSTALLER_ENV = {
    "PIP_DISABLE_PIP_VERSION_CHECK": "1",
    "PIP_NO_INPUT": "1",
    "PYTHONUNBUFFERED": "1",
}


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration"""
    log_level: str = "INFO"
    log_format: str = "auto"
    python: Optional[str] = None
    pip: Optional[str] = None
    conda: Optional[str] = None
    report_name: str = DEFAULT_REPORT_NAME
    installer_env: Dict[str, str] = field(default_factory=lambda: dict(INSTALLER_ENV))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``MCP_ENV_SETUP_*`` variables."""
        environ = os.environ if environ is None else environ

        def get(key: str) -> Optional[str]:
            return environ.get(f"{ENV_PREFIX}{key}") or None

        log_level = (get("LOG_LEVEL") or "INFO").upper()
        if log_level not in LOG_LEVELS:
            log_level = "INFO"

        return cls(
            log_level=log_level,
            log_format=(get("LOG_FORMAT") or "auto").lower(),
            python=get("PYTHON"),
            pip=get("PIP"),
            conda=get("CONDA"),
            report_name=get("REPORT_NAME") or DEFAULT_REPORT_NAME,
        )

    def override(self, **values) -> "Settings":
        """Return a copy with the non-None values applied."""
        return replace(self, **{k: v for k, v in values.items() if v is not None})
