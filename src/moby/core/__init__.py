"""
Moby Core - Configuration, logging, paths and errors
"""

from moby.core.config import MobyConfig, load_config
from moby.core.context import Context
from moby.core.errors import (
    ArchiveError,
    AssemblyError,
    BuildError,
    ConfigError,
    MobyError,
    OutputError,
    RunError,
)
from moby.core.logger import console, log, setup_logging
from moby.core.paths import Paths

__all__ = [
    "MobyConfig",
    "load_config",
    "Context",
    "console",
    "log",
    "setup_logging",
    "Paths",
    "MobyError",
    "ConfigError",
    "BuildError",
    "ArchiveError",
    "AssemblyError",
    "OutputError",
    "RunError",
]
