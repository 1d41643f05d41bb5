import struct
from dataclasses import dataclass

import numpy as np

from errors import BadMagicError, InvalidFrameCountError, TruncatedHeaderError

VDISP_MAGIC = b"VDISP"

# magic, format_version, base_frame, frame_start, frame_end, fps, frame_count
HEADER_STRUCT = struct.Struct("<5shiiiii")
HEADER_SIZE = HEADER_STRUCT.size  # 27
OFFSET_DTYPE = np.dtype("<i8")


@dataclass(frozen=True)
class FileHeader:
    magic: bytes
    format_version: int
    base_frame: int
    frame_start: int
    frame_end: int
    fps: int
    frame_count: int


class FrameIndex:
    """
    Header and frame-offset table of a .vdisp file.

    The table holds one signed 64-bit byte offset per frame; offsets <= 0 mark frames
    without data. Offsets are only checked when a frame is actually requested.
    """

    def __init__(self, header: FileHeader, offsets: np.ndarray):
        self.header = header
        self.offsets = offsets
        self.offsets.flags.writeable = False

    @property
    def frame_count(self) -> int:
        return self.header.frame_count

    def offset(self, frame_index: int) -> int:
        return int(self.offsets[frame_index])

    @classmethod
    def parse(cls, f):
        """
        Parse the header and offset table from a binary file object positioned at byte 0.

        Raises:
        - BadMagicError: the first 5 bytes are not b"VDISP".
        - InvalidFrameCountError: frame_count <= 0.
        - TruncatedHeaderError: the file ends inside the header or the table.
        """
        magic = f.read(len(VDISP_MAGIC))
        if magic != VDISP_MAGIC:
            if len(magic) < len(VDISP_MAGIC):
                raise TruncatedHeaderError("header", HEADER_SIZE, len(magic))
            raise BadMagicError(magic)

        rest = f.read(HEADER_SIZE - len(VDISP_MAGIC))
        if len(rest) != HEADER_SIZE - len(VDISP_MAGIC):
            raise TruncatedHeaderError("header", HEADER_SIZE, len(magic) + len(rest))
        header = FileHeader(*HEADER_STRUCT.unpack(magic + rest))
        if header.frame_count <= 0:
            raise InvalidFrameCountError(header.frame_count)

        table_size = header.frame_count * OFFSET_DTYPE.itemsize
        table = f.read(table_size)
        if len(table) != table_size:
            raise TruncatedHeaderError("frame offset table", table_size, len(table))
        offsets = np.frombuffer(table, dtype=OFFSET_DTYPE).astype(np.int64)
        return cls(header, offsets)

    @classmethod
    def read(cls, path):
        with open(path, "rb") as f:
            return cls.parse(f)

    def __repr__(self):
        h = self.header
        return (
            f"FrameIndex(version={h.format_version}, frames={h.frame_count}, "
            f"range={h.frame_start}..{h.frame_end}, fps={h.fps})"
        )
