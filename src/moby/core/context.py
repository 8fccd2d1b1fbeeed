"""Moby Core - Execution context container."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from moby.core.config import MobyConfig, load_config
from moby.core.logger import MobyLogger, get_logger
from moby.core.paths import Paths


@dataclass
class Context:
    """
    Shared execution context.

    Groups all dependencies needed by commands:
    - Configuration from moby.toml
    - Path resolver
    - Logger instance
    """
    config: MobyConfig
    paths: Paths
    log: MobyLogger

    @classmethod
    def create(
        cls,
        workdir: Optional[Path] = None,
        config_path: Optional[Path] = None,
    ) -> Context:
        """Create context with auto-detected configuration."""
        config = load_config(workdir, config_path)
        paths = Paths.from_config(config)
        log = get_logger()

        return cls(config=config, paths=paths, log=log)
