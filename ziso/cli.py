# ==================================================
# ziso/cli.py
# ==================================================
"""Command line front end.

The direction is picked from the input: ZISO images are decompressed, any
other file is compressed.

    ziso -i game.iso                 # -> game.zso
    ziso -i game.zso -o copy.iso
    ziso -i game.iso -l -c 12 -b 4096 -f
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path

from .const import DEFAULT_BLOCK_SIZE, DEFAULT_LEVEL
from .convert import (COMPRESS, compress_file, decompress_file, default_output,
                      detect_mode)
from .errors import ZisoError
from .options import ZisoOptions
from .progress import NullReporter, ProgressReporter
from .reader import ZisoReader


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ziso",
        description="Convert ISO images to LZ4 compressed ZISO and back.")
    p.add_argument("-i", "--input", required=True, help="ISO or ZSO file")
    p.add_argument("-o", "--output",
                   help="output file (default: input name with .zso/.iso)")
    p.add_argument("-c", "--compression", type=int,
                   default=os.getenv("ZISO_COMPRESSION_LEVEL", str(DEFAULT_LEVEL)),
                   metavar="1-12", help="compression level (default: 12)")
    p.add_argument("-l", "--lz4hc", action="store_true",
                   help="use LZ4 high compression; readers may not support it")
    p.add_argument("-b", "--block-size", type=int,
                   default=os.getenv("ZISO_BLOCK_SIZE", str(DEFAULT_BLOCK_SIZE)),
                   metavar="SIZE", help="block size in bytes, at least 512 (default: 2048)")
    p.add_argument("-a", "--index-shift", type=int, default=None, metavar="0-4",
                   help="force a coarser index alignment")
    p.add_argument("-f", "--force", action="store_true",
                   help="overwrite the output file")
    p.add_argument("-k", "--keep-output", action="store_true",
                   help="keep the output when something goes wrong")
    p.add_argument("-q", "--quiet", action="store_true", help="no progress output")
    p.add_argument("-v", "--verbose", action="store_true",
                   help="print diagnostic messages to stderr")
    p.add_argument("--info", action="store_true",
                   help="describe a ZSO file instead of converting it")
    return p


def cmd_info(path: str) -> None:
    with ZisoReader.open(path) as reader:
        h = reader.header
        stored = int(reader.offsets[-1]) - h.index_end
        raw = int(reader.raw[:-1].sum())
        ratio = stored / h.uncompressed_size if h.uncompressed_size else 0
        print(f"ZSO file:     {path} ({len(reader.buf):,} bytes)")
        print(f"Version:      {h.version}")
        print(f"Size:         {h.uncompressed_size:,} bytes")
        print(f"Block size:   {h.block_size:,} bytes")
        print(f"Blocks:       {len(reader)} ({raw} stored raw)")
        print(f"Index shift:  {h.index_shift}")
        print(f"Compression:  {ratio:.4f} (stored/original)")


def run(args) -> None:
    options = ZisoOptions(
        block_size=args.block_size,
        compression_level=args.compression,
        lz4hc=args.lz4hc,
        overwrite=args.force,
        keep_output=args.keep_output,
        index_shift=args.index_shift,
    ).validate()

    mode = detect_mode(args.input)
    output = Path(args.output) if args.output else default_output(args.input, mode)
    reporter = NullReporter() if args.quiet else ProgressReporter(mode=mode)

    if mode == COMPRESS:
        print("ISO file detected. Compressing to ZISO")
        header = compress_file(args.input, output, options, reporter)
        print(f"Input:        {args.input} ({header.uncompressed_size:,} bytes)")
    else:
        print("ZISO file detected. Decompressing...")
        size = decompress_file(args.input, output, options, reporter)
        print(f"Input:        {args.input} ({size:,} bytes decoded)")
    print(f"Output:       {output} ({output.stat().st_size:,} bytes)")


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s: %(message)s", stream=sys.stderr)
    t0 = time.time()
    try:
        if args.info:
            cmd_info(args.input)
            return 0
        run(args)
    except ZisoError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    print("The file was processed without any problem")
    print(f"Total execution time: {time.time() - t0:.3f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
