"""Error handling for environment setup."""
from typing import Any, Dict, List, Optional

import structlog
from mcp.types import (
    ErrorData,
    INVALID_REQUEST,
    INVALID_PARAMS,
    INTERNAL_ERROR
)


def log_error(
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
    logger: Optional[Any] = None
) -> None:
    """Log an error with context."""
    logger = logger or structlog.get_logger(__name__)

    error_info = {
        "error_type": error.__class__.__name__,
        "error_message": str(error)
    }
    if context:
        error_info["context"] = context
    if isinstance(error, EnvSetupError):
        error_info["code"] = error.code
        error_info["details"] = error.details

    logger.error("env_setup_error", **error_info)


class EnvSetupError(Exception):
    """Base error class for environment setup."""
    def __init__(
        self,
        message: str,
        code: int = INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.code = code
        self.details = details or {}

    def to_error_data(self) -> ErrorData:
        """Convert to ErrorData format."""
        return ErrorData(
            code=self.code,
            message=str(self),
            data=self.details
        )


class BinNotFoundError(EnvSetupError):
    """Required executable could not be located."""
    def __init__(self, binary_name: str, candidates: Optional[List[str]] = None):
        super().__init__(
            f"Binary {binary_name} not found",
            code=INVALID_REQUEST,
            details={"binary_name": binary_name, "candidates": candidates or []}
        )


class CommandError(EnvSetupError):
    """External command exited with a non-zero status."""
    def __init__(self, args: List[str], returncode: int, stdout: str = "", stderr: str = ""):
        super().__init__(
            f"Command {' '.join(args)} failed with code {returncode}",
            details={
                "args": args,
                "returncode": returncode,
                "stdout": stdout,
                "stderr": stderr
            }
        )
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class EnvCreateError(EnvSetupError):
    """Environment could not be created or removed."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=INTERNAL_ERROR, details=details)


class InstallError(EnvSetupError):
    """Package installation failed."""
    def __init__(self, manifest: str, returncode: int, stderr: str = ""):
        super().__init__(
            f"Install from {manifest} failed with code {returncode}",
            details={"manifest": manifest, "returncode": returncode, "stderr": stderr}
        )
        self.returncode = returncode


class ManifestError(EnvSetupError):
    """Requirements manifest is missing or malformed."""
    def __init__(
        self,
        message: str,
        line_no: Optional[int] = None,
        line: Optional[str] = None,
        missing: bool = False
    ):
        details: Dict[str, Any] = {}
        if line_no is not None:
            details = {"line_no": line_no, "line": line}
        if missing:
            details["missing"] = True
        super().__init__(message, code=INVALID_PARAMS, details=details)


class UnknownEnvError(EnvSetupError):
    """Error for invalid/missing environment."""
    def __init__(self, env_id: str):
        super().__init__(
            f"Environment {env_id} not found",
            code=INVALID_PARAMS,
            details={"env_id": env_id}
        )
