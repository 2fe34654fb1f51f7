# ==================================================
# ziso/options.py
# ==================================================
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .const import (DEFAULT_BLOCK_SIZE, DEFAULT_LEVEL, MAX_BLOCK_SIZE,
                    MAX_INDEX_SHIFT, MAX_LEVEL, MIN_BLOCK_SIZE, MIN_LEVEL)
from .errors import ConfigurationInvalid


@dataclass
class ZisoOptions:
    """Settings for one conversion."""
    block_size: int = DEFAULT_BLOCK_SIZE
    compression_level: int = DEFAULT_LEVEL
    lz4hc: bool = False
    overwrite: bool = False
    keep_output: bool = False
    index_shift: Optional[int] = None   # None = smallest shift that fits

    def validate(self) -> "ZisoOptions":
        if not MIN_BLOCK_SIZE <= self.block_size <= MAX_BLOCK_SIZE:
            raise ConfigurationInvalid(
                f"block size must be at least {MIN_BLOCK_SIZE}, got {self.block_size}")
        if not MIN_LEVEL <= self.compression_level <= MAX_LEVEL:
            raise ConfigurationInvalid(
                f"compression level must be {MIN_LEVEL}-{MAX_LEVEL}, "
                f"got {self.compression_level}")
        if self.index_shift is not None and not 0 <= self.index_shift <= MAX_INDEX_SHIFT:
            raise ConfigurationInvalid(
                f"index shift must be 0-{MAX_INDEX_SHIFT}, got {self.index_shift}")
        return self
