"""
Pytest configuration and builders for synthetic .vdisp files.

The builders pack bytes by hand so the reader is tested independently of export.py.
"""
import gzip
import struct
import sys
import zlib
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def record(name, vectors, vertex_count=None, name_length=None):
    name_bytes = name.encode("ascii")
    flat = [c for v in vectors for c in v]
    if vertex_count is None:
        vertex_count = len(vectors)
    if name_length is None:
        name_length = len(name_bytes)
    return (struct.pack("<ii", name_length, vertex_count) + name_bytes
            + struct.pack(f"<{len(flat)}f", *flat))


def header(frame_count, magic=b"VDISP", version=1, fps=24):
    return struct.pack("<5shiiiii", magic, version, 1, 1, frame_count, fps, frame_count)


def build_vdisp(frames, magic=b"VDISP", compress=lambda p: gzip.compress(p, mtime=0)):
    """
    frames: list of raw (uncompressed) payloads, or None for an absent frame.
    Returns the file bytes.
    """
    head = header(len(frames), magic=magic)
    table_size = 8 * len(frames)
    pos = len(head) + table_size
    offsets = []
    blocks = []
    for payload in frames:
        if payload is None:
            offsets.append(0)
            continue
        block = compress(payload)
        offsets.append(pos)
        blocks.append(block)
        pos += len(block)
    return head + struct.pack(f"<{len(frames)}q", *offsets) + b"".join(blocks)


def zlib_compress(payload):
    return zlib.compress(payload)


@pytest.fixture
def write_vdisp(tmp_path):
    def _write(frames, name="cache.vdisp", **kwargs):
        path = tmp_path / name
        path.write_bytes(build_vdisp(frames, **kwargs))
        return path
    return _write
