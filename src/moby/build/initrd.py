"""
Moby Build - Combined initrd from back-to-back archives
"""

import io
import shutil
from dataclasses import dataclass
from typing import BinaryIO, Iterable, Union

from moby.core.errors import AssemblyError

ArchiveStream = Union[bytes, bytearray, BinaryIO]


@dataclass(frozen=True)
class AssembledImage:
    """
    Ramdisk made of independent archives laid end to end.

    The boot-time unpacker walks the image archive by archive using each
    archive's own end marker, so nothing is inserted between segments.
    Later segments overlay files of earlier ones.
    """
    data: bytes
    segments: tuple[int, ...]

    def __len__(self) -> int:
        return len(self.data)

    def split(self) -> list[bytes]:
        """Cut the image back into its constituent archives."""
        parts = []
        offset = 0
        for size in self.segments:
            parts.append(self.data[offset:offset + size])
            offset += size
        return parts


def _copy(stream: ArchiveStream, out: BinaryIO) -> int:
    if isinstance(stream, (bytes, bytearray)):
        out.write(stream)
        return len(stream)
    start = out.tell()
    shutil.copyfileobj(stream, out)
    return out.tell() - start


def containers_initrd(streams: Iterable[ArchiveStream]) -> AssembledImage:
    """
    Concatenate archive streams, in order, into one initrd image.

    Streams are bytes or readable binary file objects and are each consumed
    once. If any copy fails an AssemblyError is raised and no image is
    produced.
    """
    out = io.BytesIO()
    segments = []

    for index, stream in enumerate(streams):
        try:
            segments.append(_copy(stream, out))
        except (OSError, ValueError) as e:
            raise AssemblyError(f"Failed to copy archive #{index} into initrd: {e}", index=index)

    return AssembledImage(data=out.getvalue(), segments=tuple(segments))
