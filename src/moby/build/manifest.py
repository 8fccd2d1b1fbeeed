"""
Moby Build - Manifest model (moby.yaml)
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from moby.core.errors import ConfigError


def _strings(value: Any, key: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        raise ConfigError(f"'{key}' must be a list of strings, got {type(value).__name__}")
    return tuple(str(v) for v in value)


def _unique(values: tuple[str, ...]) -> tuple[str, ...]:
    # Capabilities are a set, but flag order follows the manifest.
    return tuple(dict.fromkeys(values))


@dataclass(frozen=True)
class ServiceSpec:
    """A system service container and how it should be run."""
    name: str
    image: str
    cap_drop: tuple[str, ...] = ()
    cap_add: tuple[str, ...] = ()
    bind: str = ""
    oom_score_adj: int = 0
    command: tuple[str, ...] = ()

    @property
    def root(self) -> str:
        """Path under which the service filesystem lands in the initrd."""
        return f"/containers/{self.name}"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ServiceSpec":
        if not isinstance(data, dict):
            raise ConfigError(f"system entries must be mappings, got {type(data).__name__}")

        oom_score_adj = data.get("oom_score_adj", 0)
        if oom_score_adj is None:
            oom_score_adj = 0
        if isinstance(oom_score_adj, bool) or not isinstance(oom_score_adj, int):
            raise ConfigError(f"'oom_score_adj' must be an integer: {oom_score_adj!r}")

        return cls(
            name=str(data.get("name") or ""),
            image=str(data.get("image") or ""),
            cap_drop=_unique(_strings(data.get("cap_drop"), "cap_drop")),
            cap_add=_unique(_strings(data.get("cap_add"), "cap_add")),
            bind=str(data.get("bind") or ""),
            oom_score_adj=oom_score_adj,
            command=_strings(data.get("command"), "command"),
        )


@dataclass(frozen=True)
class FileOverride:
    """Declarative file override; carried through but not applied here."""
    file: str
    value: str = ""


@dataclass(frozen=True)
class Manifest:
    """What to build: kernel, init and system service components."""
    kernel: str = ""
    init: str = ""
    system: tuple[ServiceSpec, ...] = field(default_factory=tuple)
    database: tuple[FileOverride, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Manifest":
        """Decode a manifest mapping. Unknown keys are ignored."""
        system = data.get("system") or []
        database = data.get("database") or []
        if not isinstance(system, list):
            raise ConfigError("'system' must be a list")
        if not isinstance(database, list):
            raise ConfigError("'database' must be a list")

        overrides = []
        for entry in database:
            if not isinstance(entry, dict):
                raise ConfigError("database entries must be mappings")
            overrides.append(FileOverride(
                file=str(entry.get("file") or ""),
                value=str(entry.get("value") or ""),
            ))

        return cls(
            kernel=str(data.get("kernel") or ""),
            init=str(data.get("init") or ""),
            system=tuple(ServiceSpec.from_dict(s) for s in system),
            database=tuple(overrides),
        )

    @classmethod
    def parse(cls, text: str) -> "Manifest":
        """Parse YAML text into a manifest."""
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Yaml parse error: {e}")

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError(f"Manifest must be a mapping, got {type(data).__name__}")
        return cls.from_dict(data)

    def validate(self) -> None:
        """Reject manifests the pipeline cannot build from."""
        missing = [key for key in ("kernel", "init") if not getattr(self, key)]
        if missing:
            raise ConfigError(f"Manifest is missing required field(s): {', '.join(missing)}")

        for index, service in enumerate(self.system):
            if not service.name:
                raise ConfigError(f"system[{index}] has no name")
            if not service.image:
                raise ConfigError(f"system service '{service.name}' has no image")


def load_manifest(path: Path) -> Manifest:
    """Read and decode the manifest file."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot open config file: {e}")
    return Manifest.parse(text)
