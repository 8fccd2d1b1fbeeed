"""
Moby Core - Tool configuration (moby.toml)
"""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import toml

from moby.core.errors import ConfigError

CONFIG_FILE = "moby.toml"

RIDDLER_IMAGE = (
    "mobylinux/riddler:7d4545d8b8ac2700971a83f12a3446a76db28c14"
    "@sha256:11b7310df6482fc38aa52b419c2ef1065d7b9207c633d47554e13aa99f6c0b72"
)
DOCKER2TAR_IMAGE = (
    "mobylinux/docker2tar:82a3f11f70b2959c7100dd6e184b511ebfc65908"
    "@sha256:e4fd36febc108477a2e5316d263ac257527779409891c7ac10d455a162df05c1"
)


@dataclass
class BackendConfig:
    """Container backend used to produce component archives."""
    command: str = "docker"
    socket: str = "/var/run/docker.sock"
    docker2tar: str = DOCKER2TAR_IMAGE
    riddler: str = RIDDLER_IMAGE


@dataclass
class BuildConfig:
    """Scheduling and resource limits of the build."""
    parallel: bool = False
    timeout: float = 0  # seconds, 0 = wait forever
    max_entry_size: int = 0  # bytes, 0 = unbounded


@dataclass
class KernelConfig:
    """Entry names inside the kernel container's composite archive."""
    binary: str = "bzImage"
    archive: str = "kernel.tar"


@dataclass
class OutputConfig:
    kernel: str = "bzImage"
    initrd: str = "initrd.img"
    mode: int = 0o644


@dataclass
class BootConfig:
    script: str = "./hyperkit.sh"


@dataclass
class MobyConfig:
    """Main Moby configuration."""
    workdir: Path = field(default_factory=Path.cwd)
    backend: BackendConfig = field(default_factory=BackendConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    kernel: KernelConfig = field(default_factory=KernelConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    boot: BootConfig = field(default_factory=BootConfig)

    @property
    def timeout(self) -> Optional[float]:
        return self.build.timeout or None

    @property
    def max_entry_size(self) -> Optional[int]:
        return self.build.max_entry_size or None

    @classmethod
    def from_dict(cls, data: dict[str, Any], workdir: Path) -> "MobyConfig":
        """Build the configuration from a decoded TOML document."""
        return cls(
            workdir=workdir,
            backend=_section(BackendConfig, data, "backend"),
            build=_section(BuildConfig, data, "build"),
            kernel=_section(KernelConfig, data, "kernel"),
            output=_section(OutputConfig, data, "output"),
            boot=_section(BootConfig, data, "boot"),
        )


def _check_type(value: Any, expected: type) -> bool:
    # TOML booleans are ints to isinstance; never accept them as numbers.
    if expected is bool:
        return isinstance(value, bool)
    if isinstance(value, bool):
        return False
    if expected is float:
        return isinstance(value, (int, float))
    return isinstance(value, expected)


def _section(section_cls: type, data: dict[str, Any], name: str) -> Any:
    """Decode one [section], rejecting unknown keys and wrongly-typed values."""
    values = data.get(name, {})
    if not isinstance(values, dict):
        raise ConfigError(f"Invalid {CONFIG_FILE}: [{name}] must be a table")

    types = {f.name: f.type for f in fields(section_cls)}
    for key, value in values.items():
        if key not in types:
            raise ConfigError(f"Invalid {CONFIG_FILE}: unknown key {name}.{key}")
        if not _check_type(value, types[key]):
            raise ConfigError(
                f"Invalid {CONFIG_FILE}: {name}.{key} must be {types[key].__name__}, "
                f"got {type(value).__name__}"
            )

    return section_cls(**values)


def load_config(workdir: Optional[Path] = None, config_path: Optional[Path] = None) -> MobyConfig:
    """
    Load the tool configuration.

    Looks for moby.toml in the working directory unless a path is given.
    A missing default file yields the built-in defaults; an explicitly
    requested file must exist.
    """
    workdir = (workdir or Path.cwd()).resolve()

    if config_path is None:
        config_path = workdir / CONFIG_FILE
        if not config_path.exists():
            return MobyConfig(workdir=workdir)
    elif not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        data = toml.load(config_path)
    except toml.TomlDecodeError as e:
        raise ConfigError(f"Could not parse {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot open config file {config_path}: {e}")

    return MobyConfig.from_dict(data, workdir)
