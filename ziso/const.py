# ==================================================
# ziso/const.py
# ==================================================
MAGIC = b"ZISO"            # 4‑byte container tag
HEADER_FMT = "<4sIQIBB2x"   # magic, header_size (I), uncompressed_size (Q), block_size (I), version (B), index_shift (B), reserved
HEADER_SIZE = 0x18          # bytes (4+4+8+4+1+1+2)
VERSION = 1

INDEX_DTYPE = "<u4"         # one little‑endian uint32 per block + sentinel
INDEX_ENTRY_SIZE = 4
INDEX_OFFSET_MASK = 0x7FFFFFFF
INDEX_RAW_FLAG = 0x80000000
MAX_INDEX_SHIFT = 4

MIN_BLOCK_SIZE = 512
MAX_BLOCK_SIZE = 0xFFFFFFFF
DEFAULT_BLOCK_SIZE = 2048
MIN_LEVEL, MAX_LEVEL = 1, 12
DEFAULT_LEVEL = 12

# acceleration passed to LZ4 fast mode for compression levels 1..12
LZ4_ACCELERATION = (32, 24, 16, 12, 10, 8, 6, 5, 4, 3, 2, 1)
