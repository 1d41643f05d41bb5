import struct
import zlib
from dataclasses import dataclass
from typing import Optional

import numpy as np

from byte_stream import InflateStream, read_exact, skip_bytes
from errors import CorruptFrameError, InvalidRecordError, TruncatedFrameError, UnexpectedEofError

# name_length, vertex_count
RECORD_HEADER = struct.Struct("<ii")
FLOAT_DTYPE = np.dtype("<f4")
VERTEX_SIZE = 3 * FLOAT_DTYPE.itemsize


class _EndOfFrame(Exception):
    """Mid-record truncation that the caller asked to tolerate."""


@dataclass
class FrameResult:
    """
    Outcome of decoding one object from one frame.

    - displacements: (target_vertex_count, 3) float32, zero where the record had no data.
    - found: whether a record with the requested name was present.
    - stored_vertex_count: vertex count of the matched record, None when not found.
    - truncated: the frame ended mid-record and the truncation was tolerated.
    """
    displacements: np.ndarray
    found: bool
    stored_vertex_count: Optional[int] = None
    truncated: bool = False

    @property
    def vertex_count_mismatch(self) -> bool:
        return self.found and self.stored_vertex_count != len(self.displacements)


def _prepare_output(target_vertex_count, out):
    if out is None:
        return np.zeros((target_vertex_count, 3), dtype=np.float32)
    if out.shape != (target_vertex_count, 3):
        raise ValueError(f"out has shape {out.shape}, expected ({target_vertex_count}, 3)")
    if out.dtype != np.float32:
        raise ValueError(f"out has dtype {out.dtype}, expected float32")
    out.fill(0)
    return out


def decode_frame(f, frame_offset: int, object_name: str, target_vertex_count: int,
                 out: np.ndarray = None, tolerate_truncation: bool = False) -> FrameResult:
    """
    Decode the displacements of `object_name` from the compressed frame block at `frame_offset`.

    The block inflates to a packed sequence of object records with no count or terminator:
        int32 name_length, int32 vertex_count, name bytes, vertex_count * (x, y, z) float32.
    Running out of data exactly where the next record would start is how a frame ends.
    Running out anywhere else raises TruncatedFrameError, unless `tolerate_truncation` is
    set, in which case the frame ends there and the result is flagged `truncated`.

    Parameters:
    - f: binary file object opened on the .vdisp file; it is seeked to `frame_offset`.
    - frame_offset (int): byte offset of the block, > 0.
    - object_name (str): record name to extract; compared byte-exact, first match wins.
    - target_vertex_count (int): length of the output array.
    - out (np.ndarray, optional): caller-owned (target_vertex_count, 3) float32 array to fill.

    Returns:
    - FrameResult
    """
    displacements = _prepare_output(target_vertex_count, out)
    try:
        target = object_name.encode("ascii")
    except UnicodeEncodeError:
        # stored names are ASCII, so this can never match
        target = None

    def fail(message):
        if tolerate_truncation:
            raise _EndOfFrame()
        raise TruncatedFrameError(frame_offset, message)

    def skip(stream, byte_count):
        try:
            skip_bytes(stream, byte_count)
        except UnexpectedEofError as e:
            fail(f"payload ended {e.remaining} bytes early")

    found = False
    stored_vertex_count = None
    truncated = False

    f.seek(frame_offset)
    stream = InflateStream(f)
    try:
        while True:
            head = read_exact(stream, RECORD_HEADER.size)
            if not head:
                if stream.truncated:
                    fail("compressed block ended before its end marker")
                break
            if len(head) < RECORD_HEADER.size:
                fail(f"record header cut after {len(head)} bytes")
            name_length, vertex_count = RECORD_HEADER.unpack(head)
            if name_length < 0:
                raise InvalidRecordError(frame_offset, f"negative name length {name_length}")

            name_bytes = read_exact(stream, name_length)
            if len(name_bytes) != name_length:
                fail("unexpected EOF while reading name bytes")
            if vertex_count < 0:
                raise InvalidRecordError(
                    frame_offset,
                    f"negative vertex count for object {name_bytes.decode('ascii', 'replace')}",
                )

            if not found and name_bytes == target:
                found = True
                stored_vertex_count = vertex_count
                read_verts = min(vertex_count, target_vertex_count)
                raw = read_exact(stream, read_verts * VERTEX_SIZE)
                whole = len(raw) // VERTEX_SIZE
                if whole:
                    displacements[:whole] = np.frombuffer(
                        raw, dtype=FLOAT_DTYPE, count=whole * 3).reshape(whole, 3)
                if whole != read_verts:
                    fail(f"payload for {object_name} ended after {whole} of {vertex_count} vertices")
                # the rest must still be consumed to reach the next record
                if vertex_count > read_verts:
                    skip(stream, (vertex_count - read_verts) * VERTEX_SIZE)
            else:
                skip(stream, vertex_count * VERTEX_SIZE)
    except _EndOfFrame:
        truncated = True
    except zlib.error as e:
        raise CorruptFrameError(frame_offset, e) from e

    return FrameResult(displacements, found, stored_vertex_count, truncated)
