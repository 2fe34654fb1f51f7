# ==================================================
# ziso/quantize.py
# ==================================================
"""Offset quantization for the block index.

An index slot is 32 bits wide: the low 31 bits hold ``offset >> shift`` and
bit 31 flags a block stored without compression.  Offsets are always rounded
*up* to the next multiple of ``2**shift``; the writer pads the gap with zeros.
"""
from __future__ import annotations

from typing import NamedTuple

import numpy as np

from .const import (INDEX_DTYPE, INDEX_OFFSET_MASK, INDEX_RAW_FLAG,
                    MAX_INDEX_SHIFT)
from .errors import ConfigurationInvalid, IndexOverflowError


class IndexEntry(NamedTuple):
    position: int        # quantized offset, offset >> shift
    is_raw: bool = False

    def pack(self) -> int:
        return self.position | (INDEX_RAW_FLAG if self.is_raw else 0)

    @classmethod
    def unpack(cls, value: int) -> "IndexEntry":
        return cls(value & INDEX_OFFSET_MASK, bool(value & INDEX_RAW_FLAG))

    def offset(self, shift: int) -> int:
        return self.position << shift


# -------- scalar helpers ---------------------------------------------------

def align_up(offset: int, shift: int) -> int:
    q = offset >> shift
    if (q << shift) < offset:
        q += 1
    return q


def quantize(offset: int, shift: int, raw: bool = False) -> tuple[int, int]:
    """Return ``(entry_value, aligned_offset)`` for a write position.

    ``aligned_offset >= offset`` always holds; the caller pads the stream with
    ``aligned_offset - offset`` zero bytes before the next block.
    """
    if offset < 0:
        raise ValueError("offset must be non‑negative")
    q = align_up(offset, shift)
    if q > INDEX_OFFSET_MASK:
        raise IndexOverflowError(
            f"offset {offset:#x} does not fit the index with shift {shift}")
    return IndexEntry(q, raw).pack(), q << shift


def dequantize(entry: int, shift: int) -> tuple[int, bool]:
    e = IndexEntry.unpack(entry)
    return e.offset(shift), e.is_raw


def dequantize_table(entries, shift: int):
    """Vectorised :func:`dequantize` over a whole index table."""
    entries = np.asarray(entries, dtype=INDEX_DTYPE)
    offsets = (entries & INDEX_OFFSET_MASK).astype(np.uint64) << np.uint64(shift)
    raw = (entries & INDEX_RAW_FLAG) != 0
    return offsets, raw


# -------- shift selection --------------------------------------------------

def worst_case_end(input_size: int, header_size: int, blocks_number: int,
                   shift: int) -> int:
    # every block stored raw, plus the largest padding run before each data
    # block and before the sentinel
    return header_size + input_size + blocks_number * ((1 << shift) - 1)


def select_index_shift(input_size: int, header_size: int,
                       blocks_number: int) -> int:
    """Smallest shift for which every possible output offset stays in 31 bits.

    The limits fall on the 2/4/8/16 GB boundaries; an input of exactly
    ``2**31 - header_size`` bytes already needs shift 1.
    """
    for shift in range(MAX_INDEX_SHIFT + 1):
        end = worst_case_end(input_size, header_size, blocks_number, shift)
        if align_up(end, shift) <= INDEX_OFFSET_MASK:
            return shift
    raise ConfigurationInvalid(
        f"input of {input_size} bytes is too large for the ZISO index")
