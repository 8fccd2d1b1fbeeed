"""
Moby Build - Kernel extraction from the kernel container's tarball
"""

import io
import tarfile
from dataclasses import dataclass
from typing import BinaryIO, Optional, Union

from moby.core.errors import ArchiveError


@dataclass(frozen=True)
class ExtractedKernel:
    """Kernel binary plus the filesystem archive shipped alongside it."""
    kernel_binary: bytes
    companion_archive: bytes


def untar_kernel(
    stream: Union[bytes, BinaryIO],
    kernel_name: str = "bzImage",
    archive_name: str = "kernel.tar",
    max_entry_size: Optional[int] = None,
) -> ExtractedKernel:
    """
    Split a composite tar stream into the kernel binary and its archive.

    Entries are matched by exact name, in any order; each lands in its own
    buffer and every other entry is skipped without being read. Raises
    ArchiveError when the tar is corrupt, an entry exceeds max_entry_size,
    or either entry is missing or empty.
    """
    fileobj = io.BytesIO(stream) if isinstance(stream, (bytes, bytearray)) else stream
    buffers: dict[str, Optional[bytes]] = {kernel_name: None, archive_name: None}

    try:
        with tarfile.open(fileobj=fileobj, mode="r|") as tar:
            for member in tar:
                if member.name not in buffers:
                    continue
                if not member.isfile():
                    raise ArchiveError(f"{member.name} is not a regular file", entry=member.name)
                if max_entry_size is not None and member.size > max_entry_size:
                    raise ArchiveError(
                        f"{member.name} is {member.size:,} bytes, limit is {max_entry_size:,}",
                        entry=member.name,
                    )
                buffers[member.name] = tar.extractfile(member).read()
    except tarfile.TarError as e:
        raise ArchiveError(f"Could not read kernel tarball: {e}")

    for name, content in buffers.items():
        if content is None:
            raise ArchiveError(
                f"did not find {kernel_name} and {archive_name} in tarball: missing expected entry {name}",
                entry=name,
            )
        if not content:
            raise ArchiveError(f"expected entry {name} is empty", entry=name)

    return ExtractedKernel(
        kernel_binary=buffers[kernel_name],
        companion_archive=buffers[archive_name],
    )
