import gzip
import os

import numpy as np

from frame_index import HEADER_STRUCT, OFFSET_DTYPE, VDISP_MAGIC
from frame_decoder import FLOAT_DTYPE, RECORD_HEADER

FORMAT_VERSION = 1


def bake_displacements(V: np.ndarray, P: np.ndarray) -> np.ndarray:
    """
    Turn a vertex animation into per-frame displacements from the rest pose.

    Parameters:
    - V: (F, N, 3) vertex positions over time.
    - P: (N, 3) rest-pose vertices.

    Returns:
    - D: (F, N, 3) float32 array with D[f] = V[f] - P.
    """
    return (np.asarray(V) - np.asarray(P)[None]).astype(np.float32)


def encode_frame(objects) -> bytes:
    """Pack a {name: (N, 3) displacements} mapping into the uncompressed record sequence."""
    parts = []
    for name, disp in objects.items():
        name_bytes = name.encode("ascii")
        disp = np.ascontiguousarray(disp, dtype=FLOAT_DTYPE).reshape(-1, 3)
        parts.append(RECORD_HEADER.pack(len(name_bytes), len(disp)))
        parts.append(name_bytes)
        parts.append(disp.tobytes())
    return b"".join(parts)


def export_vdisp(export_path: str, frames, *, base_frame: int = 0, frame_start: int = 0,
                 frame_end: int = None, fps: int = 24, format_version: int = FORMAT_VERSION,
                 compresslevel: int = 6) -> None:
    """
    Save per-frame object displacements to a .vdisp file.

    Parameters:
    - export_path: Path to output .vdisp file. Directory will be created if needed.
    - frames: sequence with one entry per frame, each a {object name: (N, 3) array} dict,
      or None to leave that frame without data (offset 0).
    - base_frame, frame_start, frame_end, fps: metadata stored in the header.
      frame_end defaults to frame_start + len(frames) - 1.
    """
    frames = list(frames)
    if not frames:
        raise ValueError("A .vdisp file needs at least one frame")
    if frame_end is None:
        frame_end = frame_start + len(frames) - 1

    # Ensure directory exists
    directory = os.path.dirname(export_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    offsets = np.zeros(len(frames), dtype=OFFSET_DTYPE)
    with open(export_path, "wb") as f:
        f.write(HEADER_STRUCT.pack(VDISP_MAGIC, format_version, base_frame,
                                   frame_start, frame_end, fps, len(frames)))
        table_pos = f.tell()
        f.write(offsets.tobytes())  # placeholder, filled in below

        for i, objects in enumerate(frames):
            if objects is None:
                continue
            offsets[i] = f.tell()
            f.write(gzip.compress(encode_frame(objects), compresslevel=compresslevel, mtime=0))

        f.seek(table_pos)
        f.write(offsets.tobytes())

    print(f"VDISP cache exported to {export_path}")
