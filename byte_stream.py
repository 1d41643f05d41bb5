import io
import threading
import zlib

from errors import UnexpectedEofError

# Bytes discarded per read when skipping, and raw bytes fed to the inflater per read.
SKIP_CHUNK_SIZE = 4096
INFLATE_CHUNK_SIZE = 64 * 1024

# 32 + MAX_WBITS: accept either a gzip or a zlib header.
AUTO_HEADER_WBITS = 32 + zlib.MAX_WBITS

_scratch = threading.local()


class InflateStream(io.RawIOBase):
    """
    Forward-only view of one compressed member starting at the current position of `fileobj`.

    Reading stops at the member's end marker, so the bytes that follow in the file
    (usually the next frame's block) are never interpreted. If the file itself ends
    before the end marker, the stream reports end-of-stream and sets `truncated`.
    Corrupt compressed bytes surface as zlib.error.
    """

    def __init__(self, fileobj, chunk_size: int = INFLATE_CHUNK_SIZE):
        super().__init__()
        self._fileobj = fileobj
        self._chunk_size = chunk_size
        self._inflater = zlib.decompressobj(AUTO_HEADER_WBITS)
        self._pending = b""
        self._pos = 0
        self.truncated = False

    def readable(self):
        return True

    @property
    def eof(self) -> bool:
        return self._inflater.eof and self._pos >= len(self._pending)

    def _fill(self):
        while self._pos >= len(self._pending) and not self._inflater.eof:
            data = self._inflater.unconsumed_tail
            if not data:
                data = self._fileobj.read(self._chunk_size)
                if not data:
                    self.truncated = True
                    return
            self._pending = self._inflater.decompress(data, self._chunk_size)
            self._pos = 0

    def readinto(self, b):
        view = memoryview(b).cast("B")
        if not len(view):
            return 0
        self._fill()
        n = min(len(view), len(self._pending) - self._pos)
        if n <= 0:
            return 0
        view[:n] = self._pending[self._pos:self._pos + n]
        self._pos += n
        return n


def read_exact(stream, size: int) -> bytes:
    """Read `size` bytes, looping over short reads. Returns fewer only at end-of-stream."""
    parts = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        parts.append(chunk)
        remaining -= len(chunk)
    return b"".join(parts)


def _scratch_buffer() -> memoryview:
    buf = getattr(_scratch, "buf", None)
    if buf is None:
        buf = _scratch.buf = memoryview(bytearray(SKIP_CHUNK_SIZE))
    return buf


def skip_bytes(stream, byte_count: int) -> None:
    """
    Discard `byte_count` bytes from a forward-only stream.

    Reads go through a small per-thread scratch buffer, SKIP_CHUNK_SIZE bytes at a time.

    Raises:
    - UnexpectedEofError: the stream ended before `byte_count` bytes were consumed.
    """
    buf = _scratch_buffer()
    remaining = byte_count
    while remaining > 0:
        r = stream.readinto(buf[:min(SKIP_CHUNK_SIZE, remaining)])
        if not r:
            raise UnexpectedEofError(byte_count, remaining)
        remaining -= r
