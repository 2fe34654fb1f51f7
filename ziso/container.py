# ==================================================
# ziso/container.py
# ==================================================
"""ZISO header model and the ISO → ZISO encode pipeline.

Layout (little‑endian)::

    [0x18 bytes]            header
    [blocks_number × 4]     index: one entry per block + end sentinel
    [payload]               per block: zero padding to its aligned start, data
"""
from __future__ import annotations

import logging
import os
import struct
from dataclasses import dataclass

import numpy as np

from .compression import compress_block
from .const import (HEADER_FMT, HEADER_SIZE, INDEX_DTYPE, INDEX_ENTRY_SIZE,
                    MAGIC, MAX_INDEX_SHIFT, VERSION)
from .errors import (ConfigurationInvalid, InputUnavailable, InvalidContainer,
                     OutputUnavailable)
from .options import ZisoOptions
from .progress import NullReporter
from .quantize import quantize, select_index_shift

log = logging.getLogger(__name__)


def count_blocks(size: int, block_size: int) -> int:
    return -(-size // block_size)


@dataclass
class ZisoHeader:
    uncompressed_size: int
    block_size: int
    index_shift: int = 0
    version: int = VERSION
    header_size: int = HEADER_SIZE

    # ------------------------------------------------------------------
    @property
    def data_blocks(self) -> int:
        return count_blocks(self.uncompressed_size, self.block_size)

    @property
    def blocks_number(self) -> int:
        """Index entries, the end sentinel included."""
        return self.data_blocks + 1

    @property
    def index_end(self) -> int:
        return self.header_size + self.blocks_number * INDEX_ENTRY_SIZE

    def block_length(self, block: int) -> int:
        if not 0 <= block < self.data_blocks:
            raise IndexError(f"block {block} out of range")
        start = block * self.block_size
        return min(self.block_size, self.uncompressed_size - start)

    # ------------------------------------------------------------------
    def pack(self) -> bytes:
        return struct.pack(HEADER_FMT, MAGIC, self.header_size,
                           self.uncompressed_size, self.block_size,
                           self.version, self.index_shift)

    @classmethod
    def unpack(cls, data) -> "ZisoHeader":
        if len(data) < HEADER_SIZE:
            raise InvalidContainer("file is too short for a ZISO header")
        magic, hdr_size, size, block_size, version, shift = struct.unpack_from(
            HEADER_FMT, data, 0)
        if magic != MAGIC:
            raise InvalidContainer("Invalid ZISO file")
        if hdr_size != HEADER_SIZE:
            raise InvalidContainer(f"unsupported header size {hdr_size:#x}")
        if block_size == 0:
            raise InvalidContainer("block size is zero")
        if shift > MAX_INDEX_SHIFT:
            raise InvalidContainer(f"index shift {shift} out of range")
        return cls(size, block_size, shift, version, hdr_size)


# -------- stream helpers ----------------------------------------------------

def _write(dst, data) -> None:
    try:
        dst.write(data)
    except OSError as exc:
        raise OutputUnavailable(f"cannot write output: {exc}") from exc


def _pad(dst, count: int) -> None:
    if count > 0:
        _write(dst, b"\0" * count)


def _stream_size(src) -> int:
    try:
        src.seek(0, os.SEEK_END)
        size = src.tell()
        src.seek(0)
    except (OSError, ValueError) as exc:
        raise InputUnavailable(f"cannot measure input: {exc}") from exc
    return size

# -------- encode pipeline ---------------------------------------------------

def compress_stream(src, dst, options: ZisoOptions | None = None,
                    reporter=None) -> ZisoHeader:
    """Encode the whole of ``src`` into ``dst`` as a ZISO container.

    ``dst`` must be seekable; the index is written as zeroed placeholders first
    and rewritten once every block offset is known.
    """
    options = (options or ZisoOptions()).validate()
    reporter = reporter or NullReporter()

    input_size = _stream_size(src)
    header = ZisoHeader(input_size, options.block_size)
    shift = select_index_shift(input_size, header.index_end, header.blocks_number)
    if options.index_shift is not None:
        if options.index_shift < shift:
            raise ConfigurationInvalid(
                f"index shift {options.index_shift} cannot address "
                f"{input_size} bytes, at least {shift} is needed")
        shift = options.index_shift
    header.index_shift = shift
    log.debug("encoding %d bytes in %d blocks of %d, index shift %d",
              input_size, header.data_blocks, header.block_size, shift)

    index = np.zeros(header.blocks_number, dtype=INDEX_DTYPE)
    dst.seek(0)
    _write(dst, header.pack())
    _write(dst, index.tobytes())

    position = header.index_end
    consumed = 0
    raw_blocks = 0
    for block in range(header.data_blocks):
        to_read = header.block_length(block)
        try:
            data = src.read(to_read)
        except OSError as exc:
            raise InputUnavailable(f"cannot read input: {exc}") from exc
        if len(data) != to_read:
            raise InputUnavailable(
                f"input ended early in block {block} ({len(data)}/{to_read} bytes)")
        consumed += to_read

        payload, raw = compress_block(data, options.block_size, options)
        entry, aligned = quantize(position, shift, raw)
        _pad(dst, aligned - position)
        _write(dst, payload)
        index[block] = entry
        position = aligned + len(payload)
        raw_blocks += raw
        reporter.update(consumed, input_size, position - header.index_end)

    # end sentinel: lets a reader size the last block
    entry, aligned = quantize(position, shift)
    _pad(dst, aligned - position)
    index[-1] = entry

    dst.seek(header.header_size)
    _write(dst, index.tobytes())
    dst.seek(aligned)
    reporter.finish()

    log.debug("wrote %d bytes, %d of %d blocks stored raw",
              aligned, raw_blocks, header.data_blocks)
    return header
