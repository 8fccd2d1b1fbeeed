"""
Moby Build - Writing and validating output artifacts
"""

import hashlib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from moby.core.errors import OutputError
from moby.core.logger import MobyLogger, log as default_log
from moby.core.paths import Paths


class ArtifactType(Enum):
    KERNEL = "kernel"
    INITRD = "initrd"


@dataclass
class ValidationResult:
    """Result of validating one written artifact."""
    valid: bool
    artifact_type: ArtifactType
    path: Path
    size: int = 0
    checksum: str = ""
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class ArtifactValidator:
    """Sanity checks for bzImage and initrd.img on disk."""

    # Linux x86 boot protocol header signature
    BZIMAGE_MAGIC = b"HdrS"
    BZIMAGE_MAGIC_OFFSET = 0x202

    def __init__(self, log: Optional[MobyLogger] = None):
        self.log = log or default_log

    def _check_file(self, path: Path, artifact_type: ArtifactType) -> ValidationResult:
        if not path.exists():
            return ValidationResult(
                valid=False,
                artifact_type=artifact_type,
                path=path,
                issues=[f"File not found: {path}"],
            )

        size = path.stat().st_size
        if size == 0:
            return ValidationResult(
                valid=False,
                artifact_type=artifact_type,
                path=path,
                issues=["File is empty"],
            )

        return ValidationResult(
            valid=True,
            artifact_type=artifact_type,
            path=path,
            size=size,
            checksum=self._compute_checksum(path),
        )

    def validate_kernel(self, path: Path) -> ValidationResult:
        """
        Validate the kernel binary.

        A missing boot protocol signature is only a warning; kernels for
        other architectures do not carry one.
        """
        result = self._check_file(path, ArtifactType.KERNEL)
        if not result.valid:
            return result

        with open(path, "rb") as f:
            f.seek(self.BZIMAGE_MAGIC_OFFSET)
            magic = f.read(len(self.BZIMAGE_MAGIC))
        if magic != self.BZIMAGE_MAGIC:
            result.warnings.append("No x86 boot protocol signature (HdrS) found")

        return result

    def validate_initrd(self, path: Path, expected_size: int) -> ValidationResult:
        """Validate the initrd image against the assembled size."""
        result = self._check_file(path, ArtifactType.INITRD)
        if result.valid and result.size != expected_size:
            result.valid = False
            result.issues.append(f"Size is {result.size:,} bytes, expected {expected_size:,}")
        return result

    def _compute_checksum(self, path: Path) -> str:
        """SHA256 of a file."""
        sha256 = hashlib.sha256()
        with open(path, "rb") as f:
            for chunk in iter(lambda: f.read(8192), b""):
                sha256.update(chunk)
        return sha256.hexdigest()

    def generate_manifest(self, results: list[ValidationResult]) -> dict:
        """Checksums of every artifact, for reporting."""
        return {
            "artifacts": [
                {
                    "type": r.artifact_type.value,
                    "path": str(r.path.name),
                    "size": r.size,
                    "sha256": r.checksum,
                    "valid": r.valid,
                }
                for r in results
            ]
        }


class ArtifactWriter:
    """Persists the kernel binary and the combined initrd."""

    def __init__(self, paths: Paths, mode: int = 0o644, log: Optional[MobyLogger] = None):
        self.paths = paths
        self.mode = mode
        self.log = log or default_log

    def _write(self, path: Path, data: bytes, artifact: str) -> Path:
        try:
            path.write_bytes(data)
            path.chmod(self.mode)
        except OSError as e:
            raise OutputError(f"could not write {artifact}: {e}", artifact=artifact)
        self.log.step(f"{artifact} → {self.paths.relative(path)} ({len(data):,} bytes)")
        return path

    def write(self, kernel: bytes, initrd: bytes) -> tuple[Path, Path]:
        """Write initrd then kernel; the first failure aborts."""
        initrd_path = self._write(self.paths.initrd, initrd, "initrd")
        kernel_path = self._write(self.paths.kernel, kernel, "kernel")
        return kernel_path, initrd_path
