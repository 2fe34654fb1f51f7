# ==================================================
# ziso/convert.py
# ==================================================
"""Path‑level conversions: overwrite policy and cleanup on failure."""
from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path

from .const import MAGIC
from .container import ZisoHeader, compress_stream
from .errors import InputUnavailable, OutputUnavailable
from .options import ZisoOptions
from .reader import ZisoReader, decompress_stream

log = logging.getLogger(__name__)

COMPRESS, DECOMPRESS = "compress", "decompress"


def detect_mode(path: str | os.PathLike) -> str:
    """``decompress`` for ZISO input, ``compress`` for anything else."""
    try:
        with open(path, "rb") as f:
            magic = f.read(len(MAGIC))
    except OSError as exc:
        raise InputUnavailable(f"input file cannot be opened: {exc}") from exc
    return DECOMPRESS if magic == MAGIC else COMPRESS


def default_output(path: str | os.PathLike, mode: str) -> Path:
    return Path(path).with_suffix(".zso" if mode == COMPRESS else ".iso")

# -------- output lifecycle --------------------------------------------------

def _remove(path: Path) -> None:
    try:
        path.unlink()
        log.debug("removed incomplete output %s", path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        log.warning("could not remove %s, please remove it manually: %s", path, exc)


@contextmanager
def _output_file(path: str | os.PathLike, options: ZisoOptions):
    path = Path(path)
    try:
        f = open(path, "wb" if options.overwrite else "xb")
    except FileExistsError as exc:
        raise OutputUnavailable(
            f"cowardly refusing to replace {path}, use --force to overwrite") from exc
    except OSError as exc:
        raise OutputUnavailable(f"output file cannot be opened: {exc}") from exc
    try:
        with f:
            yield f
    except BaseException:
        if not options.keep_output:
            _remove(path)
        raise

# -------- public api --------------------------------------------------------

def _refuse_same_file(src_path, dst_path) -> None:
    if Path(src_path).resolve() == Path(dst_path).resolve():
        raise OutputUnavailable(f"output {dst_path} would overwrite the input")


def compress_file(src_path, dst_path, options: ZisoOptions | None = None,
                  reporter=None) -> ZisoHeader:
    options = (options or ZisoOptions()).validate()
    _refuse_same_file(src_path, dst_path)
    try:
        src = open(src_path, "rb")
    except OSError as exc:
        raise InputUnavailable(f"input file cannot be opened: {exc}") from exc
    with src, _output_file(dst_path, options) as dst:
        return compress_stream(src, dst, options, reporter)


def decompress_file(src_path, dst_path, options: ZisoOptions | None = None,
                    reporter=None) -> int:
    options = options or ZisoOptions()
    _refuse_same_file(src_path, dst_path)
    with ZisoReader.open(src_path) as reader, _output_file(dst_path, options) as dst:
        return decompress_stream(reader, dst, reporter)


def convert(src_path, dst_path=None, options: ZisoOptions | None = None,
            reporter=None) -> tuple[str, Path]:
    """Pick the direction from the input's magic and run it."""
    mode = detect_mode(src_path)
    dst_path = Path(dst_path) if dst_path else default_output(src_path, mode)
    if mode == COMPRESS:
        compress_file(src_path, dst_path, options, reporter)
    else:
        decompress_file(src_path, dst_path, options, reporter)
    return mode, dst_path
