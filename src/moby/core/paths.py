"""
Moby Core - Path resolution for inputs and outputs
"""

from pathlib import Path

from moby.core.config import MobyConfig

MANIFEST_FILE = "moby.yaml"


class Paths:
    """Resolves every file the build reads or writes, relative to the workdir."""

    def __init__(self, workdir: Path, config: MobyConfig):
        self.workdir = workdir.resolve()
        self.config = config

    @classmethod
    def from_config(cls, config: MobyConfig) -> "Paths":
        return cls(config.workdir, config)

    # ========================================================================
    # Inputs
    # ========================================================================

    @property
    def manifest(self) -> Path:
        """Build manifest (moby.yaml)."""
        return self.workdir / MANIFEST_FILE

    @property
    def boot_script(self) -> Path:
        return self.workdir / self.config.boot.script

    # ========================================================================
    # Outputs
    # ========================================================================

    @property
    def kernel(self) -> Path:
        """Extracted kernel binary."""
        return self.workdir / self.config.output.kernel

    @property
    def initrd(self) -> Path:
        """Combined ramdisk image."""
        return self.workdir / self.config.output.initrd

    def relative(self, path: Path) -> Path:
        """Path relative to the working directory, when possible."""
        try:
            return path.relative_to(self.workdir)
        except ValueError:
            return path
