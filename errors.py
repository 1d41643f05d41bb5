class VDispError(Exception):
    """Base class for everything raised while reading a .vdisp cache."""


class UnexpectedEofError(VDispError, EOFError):
    """A forward-only stream ran out before the requested bytes were consumed."""

    def __init__(self, requested: int, remaining: int):
        super().__init__(f"Stream ended with {remaining} of {requested} bytes still to skip")
        self.requested = requested
        self.remaining = remaining


# Fatal to the whole file

class OpenError(VDispError):
    pass


class MissingFileError(OpenError, FileNotFoundError):
    def __init__(self, path):
        super().__init__(f".vdisp not found: {path}")
        self.path = path


class BadMagicError(OpenError):
    def __init__(self, magic: bytes):
        super().__init__(f"Invalid magic: {magic!r}")
        self.magic = magic


class InvalidFrameCountError(OpenError):
    def __init__(self, frame_count: int):
        super().__init__(f"Frame count is zero or negative: {frame_count}")
        self.frame_count = frame_count


class TruncatedHeaderError(OpenError):
    def __init__(self, what: str, expected: int, got: int):
        super().__init__(f"Truncated {what}: expected {expected} bytes, got {got}")
        self.expected = expected
        self.got = got


# Fatal to a single frame

class FrameError(VDispError):
    pass


class FrameIndexOutOfRangeError(FrameError, IndexError):
    def __init__(self, index: int, frame_count: int):
        super().__init__(f"frameIndex {index} out of range (0..{frame_count - 1})")
        self.index = index
        self.frame_count = frame_count


class InvalidOffsetError(FrameError):
    def __init__(self, index: int, offset: int, file_size: int = None):
        if file_size is None:
            message = f"invalid frame offset for frame {index}: {offset}"
        else:
            message = f"frame offset for frame {index} is past the end of the file: {offset} >= {file_size}"
        super().__init__(message)
        self.index = index
        self.offset = offset
        self.file_size = file_size


class TruncatedFrameError(FrameError):
    def __init__(self, offset: int, message: str):
        super().__init__(f"frame block at {offset}: {message}")
        self.offset = offset


class InvalidRecordError(FrameError):
    def __init__(self, offset: int, message: str):
        super().__init__(f"frame block at {offset}: {message}")
        self.offset = offset


class CorruptFrameError(FrameError):
    def __init__(self, offset: int, cause: Exception):
        super().__init__(f"frame block at {offset} is not a valid deflate stream: {cause}")
        self.offset = offset
