import hashlib

from moby.build.artifacts import ArtifactType, ArtifactValidator, ArtifactWriter
from moby.core.paths import Paths

from conftest import KERNEL_BINARY


def test_writer_uses_configured_names(config, tmp_path):
    config.output.kernel = "vmlinuz"
    config.output.initrd = "ramdisk.img"
    writer = ArtifactWriter(Paths.from_config(config))

    kernel_path, initrd_path = writer.write(b"kernel", b"initrd")

    assert kernel_path == tmp_path.resolve() / "vmlinuz"
    assert initrd_path == tmp_path.resolve() / "ramdisk.img"
    assert initrd_path.read_bytes() == b"initrd"


def test_validate_kernel(tmp_path):
    validator = ArtifactValidator()
    good = tmp_path / "bzImage"
    good.write_bytes(KERNEL_BINARY)

    result = validator.validate_kernel(good)
    assert result.valid
    assert result.warnings == []
    assert result.checksum == hashlib.sha256(KERNEL_BINARY).hexdigest()

    plain = tmp_path / "plain"
    plain.write_bytes(b"not a bzImage")
    result = validator.validate_kernel(plain)
    assert result.valid
    assert result.warnings

    empty = tmp_path / "empty"
    empty.write_bytes(b"")
    assert not validator.validate_kernel(empty).valid
    assert not validator.validate_kernel(tmp_path / "missing").valid


def test_validate_initrd_size(tmp_path):
    validator = ArtifactValidator()
    initrd = tmp_path / "initrd.img"
    initrd.write_bytes(b"x" * 10)

    assert validator.validate_initrd(initrd, 10).valid
    result = validator.validate_initrd(initrd, 11)
    assert not result.valid
    assert "expected 11" in result.issues[0]


def test_generate_manifest(tmp_path):
    validator = ArtifactValidator()
    initrd = tmp_path / "initrd.img"
    initrd.write_bytes(b"abc")

    manifest = validator.generate_manifest([validator.validate_initrd(initrd, 3)])
    entry = manifest["artifacts"][0]
    assert entry["type"] == ArtifactType.INITRD.value
    assert entry["path"] == "initrd.img"
    assert entry["size"] == 3
    assert entry["valid"] is True
