import io

import pytest

from moby.build.kernel import untar_kernel
from moby.core.errors import ArchiveError

from conftest import COMPANION, KERNEL_BINARY, make_tar


@pytest.mark.parametrize("entries", [
    [("bzImage", KERNEL_BINARY), ("kernel.tar", COMPANION)],
    [("kernel.tar", COMPANION), ("bzImage", KERNEL_BINARY)],
    [("README", b"skip me"), ("kernel.tar", COMPANION), ("lib/x", b"x"), ("bzImage", KERNEL_BINARY)],
])
def test_extracts_both_entries_in_any_order(entries):
    kernel = untar_kernel(make_tar(entries))

    assert kernel.kernel_binary == KERNEL_BINARY
    assert kernel.companion_archive == COMPANION


def test_each_entry_goes_to_its_own_buffer():
    kernel = untar_kernel(make_tar([("bzImage", b"AAAA"), ("kernel.tar", b"BBBB")]))

    assert kernel.kernel_binary == b"AAAA"
    assert kernel.companion_archive == b"BBBB"


def test_accepts_file_objects():
    stream = io.BytesIO(make_tar([("bzImage", KERNEL_BINARY), ("kernel.tar", COMPANION)]))
    assert untar_kernel(stream).companion_archive == COMPANION


@pytest.mark.parametrize("entries, missing", [
    ([("bzImage", KERNEL_BINARY)], "kernel.tar"),
    ([("kernel.tar", COMPANION)], "bzImage"),
    ([("./bzImage", KERNEL_BINARY), ("kernel.tar", COMPANION)], "bzImage"),
])
def test_missing_entry_fails(entries, missing):
    with pytest.raises(ArchiveError, match="missing expected entry") as excinfo:
        untar_kernel(make_tar(entries))
    assert excinfo.value.entry == missing


def test_empty_entry_fails():
    with pytest.raises(ArchiveError, match="is empty"):
        untar_kernel(make_tar([("bzImage", b""), ("kernel.tar", COMPANION)]))


def test_custom_entry_names():
    tar = make_tar([("vmlinuz", b"kern"), ("modules.tar", b"mods")])
    kernel = untar_kernel(tar, kernel_name="vmlinuz", archive_name="modules.tar")
    assert (kernel.kernel_binary, kernel.companion_archive) == (b"kern", b"mods")


def test_entry_size_limit():
    tar = make_tar([("bzImage", b"x" * 100), ("kernel.tar", COMPANION)])

    with pytest.raises(ArchiveError, match="limit"):
        untar_kernel(tar, max_entry_size=50)
    assert untar_kernel(tar, max_entry_size=100).kernel_binary == b"x" * 100


@pytest.mark.parametrize("data", [b"", b"not a tarball at all" * 40])
def test_corrupt_stream_fails(data):
    with pytest.raises(ArchiveError):
        untar_kernel(data)
