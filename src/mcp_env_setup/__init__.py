"""Python environment setup with outdated dependency reporting."""

from mcp_env_setup.types import (
    Activation,
    EnvKind,
    Environment,
    OutdatedPackage,
    Requirement,
    SetupOptions,
    SetupResult,
    Toolchain,
)
from mcp_env_setup.config import Settings
from mcp_env_setup.environments.environment import (
    create_environment,
    remove_environment,
    setup_environment,
    check_environment,
)
from mcp_env_setup.errors import (
    EnvSetupError,
    BinNotFoundError,
    CommandError,
    EnvCreateError,
    InstallError,
    ManifestError,
    UnknownEnvError,
)

__version__ = "0.1.0"

__all__ = [
    # Types
    "Activation",
    "EnvKind",
    "Environment",
    "OutdatedPackage",
    "Requirement",
    "SetupOptions",
    "SetupResult",
    "Toolchain",
    "Settings",

    # Environment functions
    "create_environment",
    "remove_environment",
    "setup_environment",
    "check_environment",

    # Error types
    "EnvSetupError",
    "BinNotFoundError",
    "CommandError",
    "EnvCreateError",
    "InstallError",
    "ManifestError",
    "UnknownEnvError",
]
