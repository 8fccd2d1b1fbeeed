"""
Moby Build - Image assembly pipeline
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from moby.build.artifacts import ArtifactValidator, ArtifactWriter, ValidationResult
from moby.build.initrd import AssembledImage, containers_initrd
from moby.build.kernel import ExtractedKernel, untar_kernel
from moby.build.manifest import Manifest, load_manifest
from moby.build.orchestrator import ComponentBuilder, ComponentStreams
from moby.core.config import MobyConfig
from moby.core.errors import MobyError, OutputError
from moby.core.logger import MobyLogger, log as default_log
from moby.core.paths import Paths


class PipelineState(Enum):
    IDLE = "idle"
    MANIFEST_LOADED = "manifest_loaded"
    COMPONENTS_BUILT = "components_built"
    KERNEL_EXTRACTED = "kernel_extracted"
    IMAGE_ASSEMBLED = "image_assembled"
    ARTIFACTS_WRITTEN = "artifacts_written"
    DONE = "done"
    FAILED = "failed"


@dataclass
class PipelineResult:
    """Everything one build produced."""
    manifest: Manifest
    kernel: ExtractedKernel
    image: AssembledImage
    kernel_path: Path
    initrd_path: Path
    validation: list[ValidationResult] = field(default_factory=list)

    @property
    def report(self) -> dict:
        """Type, size and SHA-256 of every written artifact."""
        return ArtifactValidator().generate_manifest(self.validation)


class ImagePipeline:
    """
    Drives one build from manifest to written artifacts.

    Idle → ManifestLoaded → ComponentsBuilt → KernelExtracted →
    ImageAssembled → ArtifactsWritten → Done. Any error moves the pipeline to
    Failed and is re-raised; there is no resume.
    """

    def __init__(
        self,
        config: MobyConfig,
        paths: Optional[Paths] = None,
        log: Optional[MobyLogger] = None,
    ):
        self.config = config
        self.paths = paths or Paths.from_config(config)
        self.log = log or default_log
        self.state = PipelineState.IDLE
        self.history: list[PipelineState] = [self.state]
        self.failed_stage: Optional[str] = None

    def _advance(self, state: PipelineState) -> None:
        self.state = state
        self.history.append(state)

    def load(self, manifest_path: Optional[Path] = None) -> Manifest:
        path = manifest_path or self.paths.manifest
        self.log.step(f"Manifest: {self.paths.relative(path)}")
        manifest = load_manifest(path)
        manifest.validate()
        return manifest

    async def build_components(self, manifest: Manifest) -> ComponentStreams:
        return await ComponentBuilder(self.config, self.log).build(manifest)

    def extract_kernel(self, streams: ComponentStreams) -> ExtractedKernel:
        names = self.config.kernel
        kernel = untar_kernel(
            streams.kernel,
            kernel_name=names.binary,
            archive_name=names.archive,
            max_entry_size=self.config.max_entry_size,
        )
        self.log.step(
            f"{names.binary}: {len(kernel.kernel_binary):,} bytes, "
            f"{names.archive}: {len(kernel.companion_archive):,} bytes"
        )
        return kernel

    def assemble(self, kernel: ExtractedKernel, streams: ComponentStreams) -> AssembledImage:
        image = containers_initrd([kernel.companion_archive, streams.init, *streams.services])
        self.log.step(f"initrd: {len(image.segments)} archives, {len(image):,} bytes")
        return image

    def validate(self, kernel_path: Path, initrd_path: Path, image: AssembledImage) -> list[ValidationResult]:
        validator = ArtifactValidator(self.log)
        results = [
            validator.validate_kernel(kernel_path),
            validator.validate_initrd(initrd_path, len(image)),
        ]
        for result in results:
            for warning in result.warnings:
                self.log.warning(f"{result.path.name}: {warning}")
            for issue in result.issues:
                self.log.error(f"{result.path.name}: {issue}")

        for result in results:
            if not result.valid:
                raise OutputError(
                    f"{result.path.name} failed validation: {'; '.join(result.issues)}",
                    artifact=result.artifact_type.value,
                )
        return results

    async def run(self, manifest_path: Optional[Path] = None) -> PipelineResult:
        """Run the whole build."""
        self.log.header("Building image")
        try:
            manifest = self.load(manifest_path)
            self._advance(PipelineState.MANIFEST_LOADED)

            streams = await self.build_components(manifest)
            self._advance(PipelineState.COMPONENTS_BUILT)

            kernel = self.extract_kernel(streams)
            self._advance(PipelineState.KERNEL_EXTRACTED)

            image = self.assemble(kernel, streams)
            self._advance(PipelineState.IMAGE_ASSEMBLED)

            writer = ArtifactWriter(self.paths, mode=self.config.output.mode, log=self.log)
            kernel_path, initrd_path = writer.write(kernel.kernel_binary, image.data)
            self._advance(PipelineState.ARTIFACTS_WRITTEN)

            validation = self.validate(kernel_path, initrd_path, image)
        except MobyError as e:
            self.failed_stage = e.stage
            self._advance(PipelineState.FAILED)
            raise

        self._advance(PipelineState.DONE)
        self.log.success(f"Image ready: {self.paths.relative(kernel_path)} + {self.paths.relative(initrd_path)}")

        return PipelineResult(
            manifest=manifest,
            kernel=kernel,
            image=image,
            kernel_path=kernel_path,
            initrd_path=initrd_path,
            validation=validation,
        )
