# ==================================================
# ziso/progress.py
# ==================================================
from __future__ import annotations

import sys
from typing import Optional, TextIO


class NullReporter:
    def update(self, consumed: int, total: int, produced: int = 0) -> None:
        pass

    def finish(self) -> None:
        pass


class ProgressReporter(NullReporter):
    """Single‑line percentage display, redrawn only when a value changes."""

    def __init__(self, stream: Optional[TextIO] = None, mode: str = "compress"):
        self.stream = stream if stream is not None else sys.stderr
        self.mode = mode
        self.last_progress: Optional[int] = None
        self.last_ratio: Optional[int] = None

    # ----------------------------------------------------------------------
    def update(self, consumed: int, total: int, produced: int = 0) -> None:
        progress = consumed * 100 // total if total else 100
        if self.mode == "compress":
            ratio = produced * 100 // consumed if consumed else 0
            if (progress, ratio) == (self.last_progress, self.last_ratio):
                return
            line = f"Compressing({progress}%) - Ratio({ratio}%)"
            self.last_ratio = ratio
        else:
            if progress == self.last_progress:
                return
            line = f"Decompressing({progress}%)"
        self.last_progress = progress
        self.stream.write(f"{line:<50}\r")
        self.stream.flush()

    def finish(self) -> None:
        if self.last_progress is not None:
            self.stream.write("\n")
            self.stream.flush()
