# ==================================================
# ziso/compression.py
# ==================================================
from __future__ import annotations

import logging

import lz4.block

from .const import LZ4_ACCELERATION
from .errors import BlockEncodingFailure, InvalidContainer
from .options import ZisoOptions

log = logging.getLogger(__name__)

# -------- lz4 wrappers ------------------------------------------------------

def _lz4_compress(data: bytes, options: ZisoOptions) -> bytes:
    if options.lz4hc:
        return lz4.block.compress(data, mode="high_compression",
                                  compression=options.compression_level,
                                  store_size=False)
    accel = LZ4_ACCELERATION[options.compression_level - 1]
    return lz4.block.compress(data, mode="fast", acceleration=accel,
                              store_size=False)


def _lz4_decompress(data: bytes, size: int) -> bytes:
    return lz4.block.decompress(data, uncompressed_size=size)

# -------- block codec -------------------------------------------------------

def compress_block(src: bytes, dst_capacity: int,
                   options: ZisoOptions) -> tuple[bytes, bool]:
    """Compress one block; returns ``(payload, stored_raw)``.

    Falls back to the verbatim bytes when LZ4 does not shrink the block or its
    output would not fit ``dst_capacity``.
    """
    try:
        out = _lz4_compress(src, options) if src else b""
    except lz4.block.LZ4BlockError as exc:
        log.debug("lz4 refused a %d byte block: %s", len(src), exc)
        out = b""
    if len(out) > dst_capacity:
        out = b""

    if not out or len(out) >= len(src):
        if len(src) > dst_capacity:
            raise BlockEncodingFailure(
                f"block of {len(src)} bytes exceeds capacity {dst_capacity}")
        return bytes(src), True
    return out, False


def decompress_block(payload: bytes, expected_size: int,
                     max_padding: int = 0) -> bytes:
    """Inflate a compressed block of ``expected_size`` bytes.

    ``payload`` is the whole span up to the next index entry, so it may end
    with up to ``max_padding`` alignment zeros.  Those are trimmed one at a
    time until LZ4 accepts the input.
    """
    payload = bytes(payload)
    zeros = len(payload) - len(payload.rstrip(b"\0"))
    for trim in range(min(max_padding, zeros) + 1):
        data = payload[:len(payload) - trim]
        try:
            out = _lz4_decompress(data, expected_size)
        except lz4.block.LZ4BlockError:
            continue
        if len(out) == expected_size:
            return out
    raise InvalidContainer(
        f"compressed block of {len(payload)} bytes does not inflate to {expected_size}")
