from __future__ import annotations

import contextlib
import io
import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path

from vpk.cli import cmd_extract, main

from vpk_fixtures import build_vpk


def _build(tmp_path: Path) -> Path:
    files = [
        ("txt", "docs", "readme", b"hello ", 0, b"world\n"),
        ("txt", " ", "rootfile", b"", 0, b"at root"),
        ("vmt", "materials/brick", "wall", b"", 1, b'"LightmappedGeneric"'),
    ]
    return build_vpk(tmp_path, files)


def _run(argv):
    out = io.StringIO()
    err = io.StringIO()
    code = 0
    with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
        try:
            main(argv)
        except SystemExit as exc:
            code = exc.code
    return code, out.getvalue(), err.getvalue()


class CliTests(unittest.TestCase):
    def run_with_tmpdir(self, func):
        with tempfile.TemporaryDirectory() as tmp:
            func(Path(tmp))

    def test_list(self):
        def scenario(tmp_path: Path):
            dir_path = _build(tmp_path)
            code, out, _ = _run(["list", str(dir_path)])
            self.assertEqual(0, code)
            self.assertEqual(
                [" /rootfile.txt", "docs/readme.txt", "materials/brick/wall.vmt"],
                out.splitlines(),
            )
            code, out, _ = _run(["list", "--long", str(dir_path)])
            self.assertIn("12\t", out)
            self.assertTrue(out.splitlines()[-1].endswith("\t1\tmaterials/brick/wall.vmt"))

        self.run_with_tmpdir(scenario)

    def test_info(self):
        def scenario(tmp_path: Path):
            dir_path = _build(tmp_path)
            code, out, _ = _run(["info", str(tmp_path / "pak01.vpk")])
            self.assertEqual(0, code)
            self.assertIn("Version: 1", out)
            self.assertIn("Files: 3", out)
            self.assertIn("Archives: 2", out)
            self.assertIn("pak01_001.vpk", out)
            self.assertIn(str(dir_path), out)

        self.run_with_tmpdir(scenario)

    def test_extract_all(self):
        def scenario(tmp_path: Path):
            dir_path = _build(tmp_path)
            outdir = tmp_path / "out"
            code, out, _ = _run(["extract", str(dir_path), "--outdir", str(outdir), "--quiet"])
            self.assertEqual(0, code)
            self.assertIn("Done: 3 files", out)
            self.assertEqual(b"hello world\n", (outdir / "docs" / "readme.txt").read_bytes())
            self.assertEqual(b"at root", (outdir / "rootfile.txt").read_bytes())
            self.assertEqual(b'"LightmappedGeneric"', (outdir / "materials" / "brick" / "wall.vmt").read_bytes())

        self.run_with_tmpdir(scenario)

    def test_extract_filter_and_exists(self):
        def scenario(tmp_path: Path):
            dir_path = _build(tmp_path)
            outdir = tmp_path / "out"
            cmd_extract(str(dir_path), outdir=str(outdir), paths=["materials"], quiet=True)
            self.assertTrue((outdir / "materials" / "brick" / "wall.vmt").exists())
            self.assertFalse((outdir / "docs").exists())

            cmd_extract(str(dir_path), outdir=str(outdir), paths=["materials/brick/wall.vmt"], quiet=True)
            self.assertTrue((outdir / "materials" / "brick" / "wall (1).vmt").exists())

            target = outdir / "materials" / "brick" / "wall.vmt"
            target.write_bytes(b"local edit")
            cmd_extract(str(dir_path), outdir=str(outdir), paths=["materials"], exists="skip", quiet=True)
            self.assertEqual(b"local edit", target.read_bytes())
            cmd_extract(str(dir_path), outdir=str(outdir), paths=["materials"], exists="overwrite", quiet=True)
            self.assertEqual(b'"LightmappedGeneric"', target.read_bytes())

            code, _, err = _run(["extract", str(dir_path), "materials", "--outdir", str(outdir), "--exists", "fail"])
            self.assertEqual(2, code)
            self.assertIn("Destination exists", err)

        self.run_with_tmpdir(scenario)

    def test_cat(self):
        def scenario(tmp_path: Path):
            dir_path = _build(tmp_path)
            raw = io.BytesIO()
            wrapper = io.TextIOWrapper(raw)
            with contextlib.redirect_stdout(wrapper):
                main(["cat", str(dir_path), "docs/readme.txt"])
            self.assertEqual(b"hello world\n", raw.getvalue())

            code, _, err = _run(["cat", str(dir_path), "docs/nope.txt"])
            self.assertEqual(2, code)
            self.assertIn("docs/nope.txt", err)

        self.run_with_tmpdir(scenario)

    def test_errors_exit_2(self):
        def scenario(tmp_path: Path):
            code, _, err = _run(["list", str(tmp_path / "absent_dir.vpk")])
            self.assertEqual(2, code)
            self.assertIn("Error:", err)

            (tmp_path / "junk_dir.vpk").write_bytes(b"\x00" * 32)
            code, _, err = _run(["info", str(tmp_path / "junk_dir.vpk")])
            self.assertEqual(2, code)
            self.assertIn("signature", err)

            build_vpk(tmp_path, [("txt", "a", "b", b"", 4, b"x")], name="holes", missing=(4,))
            code, _, err = _run(["list", str(tmp_path / "holes_dir.vpk")])
            self.assertEqual(2, code)
            self.assertIn("holes_004.vpk", err)

        self.run_with_tmpdir(scenario)

    def test_undecodable_names_subprocess(self):
        def scenario(tmp_path: Path):
            files = [
                ("txt", "docs", "caf\udce9", b"", 0, b"latin-1 name"),
                ("txt", "docs", "ok", b"", 0, b"plain"),
            ]
            dir_path = build_vpk(tmp_path, files)
            env = dict(os.environ, PYTHONIOENCODING="utf-8")
            root = str(Path(__file__).resolve().parent)

            res = subprocess.run(
                [sys.executable, "-m", "vpk.cli", "list", str(dir_path)],
                capture_output=True, cwd=root, env=env,
            )
            self.assertEqual(0, res.returncode, res.stderr)
            self.assertEqual(["docs/caf\ufffd.txt", "docs/ok.txt"], res.stdout.decode("utf-8").splitlines())

            outdir = tmp_path / "out"
            res = subprocess.run(
                [sys.executable, "-m", "vpk.cli", "extract", str(dir_path), "--outdir", str(outdir)],
                capture_output=True, cwd=root, env=env,
            )
            self.assertEqual(0, res.returncode, res.stderr)
            self.assertIn("extracting: docs/caf\ufffd.txt", res.stdout.decode("utf-8"))
            self.assertEqual(b"plain", (outdir / "docs" / "ok.txt").read_bytes())
            raw_name = os.fsencode(os.path.join(str(outdir), "docs")) + b"/caf\xe9.txt"
            with open(raw_name, "rb") as fh:
                self.assertEqual(b"latin-1 name", fh.read())

        self.run_with_tmpdir(scenario)

    def test_overwrite_replaces_symlink_not_target(self):
        def scenario(tmp_path: Path):
            dir_path = _build(tmp_path)
            outside = tmp_path / "outside.txt"
            outside.write_bytes(b"keep me")
            brick = tmp_path / "out" / "materials" / "brick"
            brick.mkdir(parents=True)
            link = brick / "wall.vmt"
            try:
                os.symlink(str(outside), str(link))
            except (OSError, NotImplementedError):
                self.skipTest("symlinks not supported")
            cmd_extract(str(dir_path), outdir=str(tmp_path / "out"), paths=["materials"], exists="overwrite", quiet=True)
            self.assertEqual(b"keep me", outside.read_bytes())
            self.assertFalse(link.is_symlink())
            self.assertEqual(b'"LightmappedGeneric"', link.read_bytes())

        self.run_with_tmpdir(scenario)

    def test_overwrite_refuses_directory(self):
        def scenario(tmp_path: Path):
            dir_path = _build(tmp_path)
            outdir = tmp_path / "out"
            (outdir / "materials" / "brick" / "wall.vmt").mkdir(parents=True)
            code, _, err = _run(["extract", str(dir_path), "materials", "--outdir", str(outdir), "--exists", "overwrite"])
            self.assertEqual(2, code)
            self.assertIn("Cannot overwrite directory", err)
            self.assertTrue((outdir / "materials" / "brick" / "wall.vmt").is_dir())

        self.run_with_tmpdir(scenario)


if __name__ == "__main__":
    unittest.main()
