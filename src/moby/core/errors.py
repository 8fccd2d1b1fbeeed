"""Moby Core - Custom exception hierarchy."""

from typing import Optional


class MobyError(Exception):
    """Base exception for all Moby errors."""

    stage = "moby"

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}\n{self.details}"
        return self.message


class ConfigError(MobyError):
    """Manifest or tool configuration unreadable or malformed."""

    stage = "config"


class BuildError(MobyError):
    """External build backend failure."""

    stage = "build"

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        exit_code: Optional[int] = None,
        stderr: Optional[str] = None,
    ):
        super().__init__(message)
        self.component = component
        self.exit_code = exit_code
        self.stderr = stderr

    def __str__(self) -> str:
        result = self.message
        if self.component:
            result = f"[{self.component}] {result}"
        if self.exit_code is not None:
            result += f" (exit code {self.exit_code})"
        if self.stderr:
            lines = self.stderr.strip().splitlines()
            result += "\n" + "\n".join(f"  - {line}" for line in lines[-5:])
        return result


class ArchiveError(MobyError):
    """Composite kernel archive is corrupt or lacks an expected entry."""

    stage = "extract"

    def __init__(self, message: str, entry: Optional[str] = None):
        super().__init__(message)
        self.entry = entry


class AssemblyError(MobyError):
    """A constituent archive could not be read while assembling the initrd."""

    stage = "assemble"

    def __init__(self, message: str, index: Optional[int] = None):
        super().__init__(message)
        self.index = index


class OutputError(MobyError):
    """Writing an output artifact failed."""

    stage = "write"

    def __init__(self, message: str, artifact: Optional[str] = None):
        super().__init__(message)
        self.artifact = artifact


class RunError(MobyError):
    """Boot script could not be started."""

    stage = "boot"
