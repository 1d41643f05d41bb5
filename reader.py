import os

import numpy as np

from errors import FrameIndexOutOfRangeError, InvalidOffsetError, MissingFileError
from frame_decoder import FrameResult, decode_frame
from frame_index import FrameIndex


def resolve_path(path: str, base_dir: str):
    """
    Resolve a .vdisp path: absolute paths are kept, relative ones are joined to `base_dir`.
    Returns None for an empty path. The result is not checked for existence.
    """
    if not path:
        return None
    if os.path.isabs(path):
        return path
    return os.path.join(base_dir, path)


def read_vertex_animation(npz_path):
    """
    Load vertex animation data from an NPZ file.

    Parameters:
    - npz_path (str): Path to the .npz file containing arrays 'V', 'P' and 'F'.

    Returns:
    - V (np.ndarray): Vertex positions over time, shape (F, N, 3).
    - P (np.ndarray): Rest vertex positions, shape (N, 3).
    - F (np.ndarray): Triangle indices, shape (M, 3).
    """
    data = np.load(npz_path)
    return data['V'], data['P'], data['F']


def read_rest_mesh(npz_path):
    """Load only the rest pose 'P' (N, 3) and triangles 'F' (M, 3) from an NPZ file."""
    data = np.load(npz_path)
    return data['P'], data['F']


class VDispReader:
    """
    Random-access reader for a .vdisp displacement cache.

    The header and frame offset table are parsed once by `open`. Every `load_frame`
    call opens its own handle on the file, so calls share no mutable state and can
    run concurrently from several threads.

    Usage:
        reader = VDispReader.open("anims/exports/displacements.vdisp")
        result = reader.load_frame(0, "Body", mesh_vertex_count)
        result.displacements  # (mesh_vertex_count, 3) float32
    """

    def __init__(self, path, index: FrameIndex, tolerate_truncation: bool = False):
        self.path = path
        self.index = index
        self.tolerate_truncation = tolerate_truncation

    @classmethod
    def open(cls, path, tolerate_truncation: bool = False):
        """
        Parse the header and offset table of `path`.

        Raises:
        - MissingFileError: `path` does not exist.
        - OpenError subclasses for a bad magic, a non-positive frame count or a truncated header.
        """
        path = os.fspath(path)
        if not os.path.isfile(path):
            raise MissingFileError(path)
        return cls(path, FrameIndex.read(path), tolerate_truncation)

    @property
    def header(self):
        return self.index.header

    def frame_count(self) -> int:
        return self.index.frame_count

    def load_frame(self, frame_index: int, object_name: str, target_vertex_count: int,
                   out: np.ndarray = None) -> FrameResult:
        """
        Decode one object's displacements for one frame.

        Raises:
        - FrameIndexOutOfRangeError: `frame_index` is outside [0, frame_count).
        - InvalidOffsetError: the table stores an offset <= 0 for this frame, or one at or past the end of the file.
        - TruncatedFrameError, InvalidRecordError, CorruptFrameError: the frame block is damaged.
        """
        if frame_index < 0 or frame_index >= self.frame_count():
            raise FrameIndexOutOfRangeError(frame_index, self.frame_count())
        frame_offset = self.index.offset(frame_index)
        if frame_offset <= 0:
            raise InvalidOffsetError(frame_index, frame_offset)

        with open(self.path, "rb") as f:
            file_size = os.fstat(f.fileno()).st_size
            if frame_offset >= file_size:
                raise InvalidOffsetError(frame_index, frame_offset, file_size)
            return decode_frame(f, frame_offset, object_name, target_vertex_count,
                                out=out, tolerate_truncation=self.tolerate_truncation)

    def __repr__(self):
        return f"VDispReader({os.path.basename(self.path)!r}, {self.index!r})"
