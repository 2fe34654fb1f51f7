"""Tests for path-level conversion, the CLI and progress output."""

import contextlib
import io
import logging
import os
import random
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from ziso.cli import main
from ziso.convert import (COMPRESS, DECOMPRESS, compress_file, convert,
                          decompress_file, default_output, detect_mode)
from ziso.errors import (BlockEncodingFailure, InputUnavailable, InvalidContainer,
                         OutputUnavailable)
from ziso.options import ZisoOptions
from ziso.progress import ProgressReporter
from ziso.reader import ZisoReader

IMAGE = bytes(4096) + random.Random(5).randbytes(3000) + b"CD001" * 400


class TempDirTest(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self._tmp.name)
        self.iso = self.dir / "game.iso"
        self.iso.write_bytes(IMAGE)

    def tearDown(self):
        self._tmp.cleanup()

    def corrupt_zso(self):
        """A ZSO whose second (compressed) block cannot be inflated."""
        zso = self.dir / "bad.zso"
        compress_file(self.iso, zso)
        with ZisoReader.open(zso) as r:
            start, end = r.block_range(1)
            self.assertFalse(r.is_raw(1))
        data = bytearray(zso.read_bytes())
        data[start:end] = b"\xff" * (end - start)
        zso.write_bytes(bytes(data))
        return zso


class TestConvert(TempDirTest):

    def test_detect_and_default_names(self):
        self.assertEqual(detect_mode(self.iso), COMPRESS)
        self.assertEqual(default_output(self.iso, COMPRESS), self.dir / "game.zso")
        mode, zso = convert(self.iso)
        self.assertEqual((mode, zso), (COMPRESS, self.dir / "game.zso"))
        self.assertEqual(detect_mode(zso), DECOMPRESS)

        self.iso.unlink()
        mode, iso = convert(zso)
        self.assertEqual((mode, iso), (DECOMPRESS, self.iso))
        self.assertEqual(iso.read_bytes(), IMAGE)

    def test_file_roundtrip_hc(self):
        zso, out = self.dir / "a.zso", self.dir / "a.iso"
        header = compress_file(self.iso, zso, ZisoOptions(lz4hc=True, block_size=1024))
        self.assertEqual(header.uncompressed_size, len(IMAGE))
        self.assertLess(zso.stat().st_size, len(IMAGE))
        self.assertEqual(decompress_file(zso, out), len(IMAGE))
        self.assertEqual(out.read_bytes(), IMAGE)

    def test_refuses_existing_output(self):
        zso = self.dir / "game.zso"
        zso.write_bytes(b"keep me")
        with self.assertRaises(OutputUnavailable):
            compress_file(self.iso, zso)
        self.assertEqual(zso.read_bytes(), b"keep me")

    def test_overwrite_allowed(self):
        zso = self.dir / "game.zso"
        zso.write_bytes(b"old")
        compress_file(self.iso, zso, ZisoOptions(overwrite=True))
        with ZisoReader.open(zso) as r:
            self.assertEqual(b"".join(r), IMAGE)

    def test_missing_input(self):
        with self.assertRaises(InputUnavailable):
            compress_file(self.dir / "nope.iso", self.dir / "nope.zso")
        with self.assertRaises(InputUnavailable):
            detect_mode(self.dir / "nope.iso")
        self.assertFalse((self.dir / "nope.zso").exists())

    def test_failed_output_removed(self):
        zso = self.corrupt_zso()
        out = self.dir / "out.iso"
        with self.assertRaises(InvalidContainer):
            decompress_file(zso, out)
        self.assertFalse(out.exists())

    def test_failed_output_kept_on_request(self):
        zso = self.corrupt_zso()
        out = self.dir / "out.iso"
        with self.assertRaises(InvalidContainer):
            decompress_file(zso, out, ZisoOptions(keep_output=True))
        self.assertEqual(out.read_bytes(), IMAGE[:2048])

    def test_short_zso_rejected(self):
        zso = self.dir / "tiny.zso"
        zso.write_bytes(b"ZISO")
        with self.assertRaises(InvalidContainer):
            decompress_file(zso, self.dir / "tiny.iso")
        self.assertFalse((self.dir / "tiny.iso").exists())

    def test_cleanup_failure_logged_and_original_error_kept(self):
        zso = self.corrupt_zso()
        out = self.dir / "out.iso"
        with mock.patch.object(Path, "unlink", side_effect=PermissionError("busy")), \
                self.assertLogs("ziso.convert", logging.WARNING) as logs, \
                self.assertRaises(InvalidContainer):
            decompress_file(zso, out)
        self.assertIn("remove it manually", logs.output[0])
        self.assertTrue(out.exists())

    def test_failed_compression_removes_output(self):
        zso = self.dir / "game.zso"
        with mock.patch("ziso.convert.compress_stream",
                        side_effect=BlockEncodingFailure("boom")):
            with self.assertRaises(BlockEncodingFailure):
                compress_file(self.iso, zso)
            self.assertFalse(zso.exists())
            with self.assertRaises(BlockEncodingFailure):
                compress_file(self.iso, zso, ZisoOptions(keep_output=True))
            self.assertTrue(zso.exists())

    def test_same_input_and_output_refused(self):
        for opts in (ZisoOptions(), ZisoOptions(overwrite=True)):
            with self.assertRaises(OutputUnavailable):
                compress_file(self.iso, self.dir / "." / "game.iso", opts)
            self.assertEqual(self.iso.read_bytes(), IMAGE)
        zso = self.dir / "game.zso"
        compress_file(self.iso, zso)
        with self.assertRaises(OutputUnavailable):
            decompress_file(zso, zso, ZisoOptions(overwrite=True))
        with ZisoReader.open(zso) as r:
            self.assertEqual(b"".join(r), IMAGE)


class TestCli(TempDirTest):

    def run_cli(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            code = main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_compress_then_decompress(self):
        code, out, _ = self.run_cli("-i", str(self.iso), "-q", "-c", "3", "-b", "1024")
        self.assertEqual(code, 0)
        self.assertIn("Compressing to ZISO", out)
        self.assertIn("Total execution time", out)
        zso = self.dir / "game.zso"
        with ZisoReader.open(zso) as r:
            self.assertEqual(r.header.block_size, 1024)

        back = self.dir / "back.iso"
        code, out, _ = self.run_cli("-i", str(zso), "-o", str(back), "-q")
        self.assertEqual(code, 0)
        self.assertIn("Decompressing", out)
        self.assertEqual(back.read_bytes(), IMAGE)

    def test_existing_output_needs_force(self):
        self.assertEqual(self.run_cli("-i", str(self.iso), "-q")[0], 0)
        code, _, err = self.run_cli("-i", str(self.iso), "-q")
        self.assertEqual(code, 1)
        self.assertIn("ERROR", err)
        self.assertEqual(self.run_cli("-i", str(self.iso), "-q", "-f")[0], 0)

    def test_bad_level(self):
        code, _, err = self.run_cli("-i", str(self.iso), "-c", "13")
        self.assertEqual(code, 1)
        self.assertIn("compression level", err)
        self.assertFalse((self.dir / "game.zso").exists())

    def test_info(self):
        self.run_cli("-i", str(self.iso), "-q")
        code, out, _ = self.run_cli("-i", str(self.dir / "game.zso"), "--info")
        self.assertEqual(code, 0)
        self.assertIn(f"{len(IMAGE):,} bytes", out)
        self.assertIn("Index shift:  0", out)

    def test_progress_printed(self):
        code, _, err = self.run_cli("-i", str(self.iso))
        self.assertEqual(code, 0)
        self.assertIn("Compressing(100%)", err)

    def test_env_block_size(self):
        os.environ["ZISO_BLOCK_SIZE"] = "4096"
        try:
            self.run_cli("-i", str(self.iso), "-q")
        finally:
            del os.environ["ZISO_BLOCK_SIZE"]
        with ZisoReader.open(self.dir / "game.zso") as r:
            self.assertEqual(r.header.block_size, 4096)


class TestProgress(unittest.TestCase):

    def test_redraws_only_on_change(self):
        s = io.StringIO()
        rep = ProgressReporter(stream=s)
        rep.update(10, 100, 5)
        rep.update(10, 100, 5)
        rep.update(11, 100, 5)
        rep.finish()
        lines = s.getvalue().split("\r")
        self.assertTrue(lines[0].startswith("Compressing(10%) - Ratio(50%)"))
        self.assertTrue(lines[1].startswith("Compressing(11%) - Ratio(45%)"))
        self.assertEqual(lines[2], "\n")

    def test_decompress_mode_and_empty_total(self):
        s = io.StringIO()
        rep = ProgressReporter(stream=s, mode="decompress")
        rep.update(0, 0)
        self.assertIn("Decompressing(100%)", s.getvalue())

    def test_finish_without_updates_is_silent(self):
        s = io.StringIO()
        ProgressReporter(stream=s).finish()
        self.assertEqual(s.getvalue(), "")


if __name__ == "__main__":
    unittest.main()
