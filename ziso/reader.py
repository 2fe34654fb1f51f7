# ==================================================
# ziso/reader.py
# ==================================================
"""Random‑access reader and the ZISO → ISO decode pipeline."""
from __future__ import annotations

import logging
import mmap
import os
from contextlib import contextmanager
from typing import Iterator

import numpy as np

from .compression import decompress_block
from .const import HEADER_SIZE, INDEX_DTYPE
from .container import ZisoHeader
from .errors import InputUnavailable, InvalidContainer, OutputUnavailable
from .progress import NullReporter
from .quantize import dequantize_table

log = logging.getLogger(__name__)


def read_header(src) -> ZisoHeader:
    src.seek(0)
    return ZisoHeader.unpack(src.read(HEADER_SIZE))


class ZisoReader:
    """Read blocks out of a ZISO image held in any bytes‑like buffer."""

    def __init__(self, buffer):
        self.buf = buffer
        self.header = h = ZisoHeader.unpack(buffer)
        if len(buffer) < h.index_end:
            raise InvalidContainer(
                f"index of {h.blocks_number} entries runs past end of file")
        # copied so the backing mmap can be closed later
        self.index = np.frombuffer(buffer, dtype=INDEX_DTYPE,
                                   count=h.blocks_number,
                                   offset=h.header_size).copy()
        self.offsets, self.raw = dequantize_table(self.index, h.index_shift)
        self._check_index(len(buffer))

    def _check_index(self, file_size: int) -> None:
        offsets = self.offsets.astype(np.int64)
        if offsets[0] < self.header.index_end:
            raise InvalidContainer("first block overlaps the index")
        if np.any(np.diff(offsets) < 0):
            raise InvalidContainer("index offsets are not monotonic")
        if offsets[-1] > file_size:
            raise InvalidContainer(
                f"data ends at {offsets[-1]} but file is {file_size} bytes")

    # ------------------------------------------------------------------
    @classmethod
    @contextmanager
    def open(cls, path: str | os.PathLike):
        """Memory‑map ``path`` and yield a reader over it."""
        try:
            f = open(path, "rb")
        except OSError as exc:
            raise InputUnavailable(f"cannot open {path}: {exc}") from exc
        with f:
            if os.fstat(f.fileno()).st_size < HEADER_SIZE:
                raise InvalidContainer(f"{path} is too short for a ZISO header")
            mm = mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ)
            try:
                yield cls(mm)
            finally:
                mm.close()

    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return self.header.data_blocks

    def block_range(self, block: int) -> tuple[int, int]:
        if not 0 <= block < len(self):
            raise IndexError(f"block {block} out of range")
        return int(self.offsets[block]), int(self.offsets[block + 1])

    def is_raw(self, block: int) -> bool:
        if not 0 <= block < len(self):
            raise IndexError(f"block {block} out of range")
        return bool(self.raw[block])

    def read_block(self, block: int) -> bytes:
        start, end = self.block_range(block)
        expected = self.header.block_length(block)
        max_padding = (1 << self.header.index_shift) - 1
        span = self.buf[start:end]
        if len(span) > expected + max_padding:
            raise InvalidContainer(
                f"block {block} spans {len(span)} bytes, more than {expected}")
        if self.is_raw(block):
            if len(span) < expected:
                raise InvalidContainer(
                    f"raw block {block} holds {len(span)} of {expected} bytes")
            return bytes(span[:expected])
        return decompress_block(span, expected, max_padding)

    def __iter__(self) -> Iterator[bytes]:
        for block in range(len(self)):
            yield self.read_block(block)

# -------- decode pipeline ---------------------------------------------------

def decompress_stream(reader: ZisoReader, dst, reporter=None) -> int:
    """Write every block of ``reader`` to ``dst``; returns bytes written."""
    reporter = reporter or NullReporter()
    total = reader.header.uncompressed_size
    written = 0
    for data in reader:
        try:
            dst.write(data)
        except OSError as exc:
            raise OutputUnavailable(f"cannot write output: {exc}") from exc
        written += len(data)
        reporter.update(written, total)
    reporter.finish()
    if written != total:
        raise InvalidContainer(f"decoded {written} bytes, header says {total}")
    log.debug("decoded %d blocks, %d bytes", len(reader), written)
    return written
