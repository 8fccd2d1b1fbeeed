"""
Moby Build - Component builds, kernel extraction and initrd assembly
"""

from moby.build.artifacts import ArtifactValidator, ArtifactWriter
from moby.build.initrd import AssembledImage, containers_initrd
from moby.build.kernel import ExtractedKernel, untar_kernel
from moby.build.manifest import Manifest, ServiceSpec, load_manifest
from moby.build.orchestrator import ComponentBuilder
from moby.build.pipeline import ImagePipeline, PipelineState

__all__ = [
    "ArtifactValidator",
    "ArtifactWriter",
    "AssembledImage",
    "containers_initrd",
    "ExtractedKernel",
    "untar_kernel",
    "Manifest",
    "ServiceSpec",
    "load_manifest",
    "ComponentBuilder",
    "ImagePipeline",
    "PipelineState",
]
