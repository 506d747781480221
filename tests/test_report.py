"""Tests for benchwrap.report — output files, benchstat and report formatting."""

from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from benchwrap.errors import StorageError, ToolError
from benchwrap.git import Revision
from benchwrap.report import (
    TemporaryOutputDir,
    benchstat_command,
    compose_report,
    format_header,
    require_tool,
    run_benchstat,
    write_outputs,
)
from tool_test_helpers import FakeTools


def _rev(name: str, canonical_id: str, output: bytes = b"") -> Revision:
    return Revision(name=name, canonical_id=canonical_id, output=bytearray(output))


class TestFormatHeader(unittest.TestCase):
    def test_single_revision(self) -> None:
        self.assertEqual(format_header([_rev("v0.42", "abc123")]), "v0.42: abc123\n")

    def test_two_revisions(self) -> None:
        header = format_header([_rev("HEAD~1", "111"), _rev("HEAD", "222")])
        self.assertEqual(header, "old:\t111\nnew:\t222\n")

    def test_three_revisions_aligned(self) -> None:
        header = format_header(
            [_rev("v0.42", "aaa"), _rev("cdd48c8a", "bbb"), _rev("master", "ccc")]
        )
        self.assertEqual(
            header,
            "v0.42   \taaa\ncdd48c8a\tbbb\nmaster  \tccc\n",
        )

    def test_alignment_counts_characters_not_bytes(self) -> None:
        header = format_header([_rev("ünï", "1"), _rev("abcd", "2"), _rev("x", "3")])
        self.assertEqual(header, "ünï \t1\nabcd\t2\nx   \t3\n")


class TestComposeReport(unittest.TestCase):
    def test_single_revision_report(self) -> None:
        report = compose_report([_rev("master", "ffff")], b"name  time/op\nFoo  10ns")
        self.assertEqual(report, b"master: ffff\n\nname  time/op\nFoo  10ns\n")

    def test_comparison_output_verbatim(self) -> None:
        raw = b"\xff\xfe not utf-8"
        report = compose_report([_rev("a", "1"), _rev("b", "2")], raw)
        self.assertEqual(report, b"old:\t1\nnew:\t2\n\n" + raw + b"\n")


    def test_undecodable_name_written_back_as_bytes(self) -> None:
        name = os.fsdecode(b"caf\xe9")
        report = compose_report([_rev(name, "abc")], b"x")
        self.assertEqual(report, b"caf\xe9: abc\n\nx\n")


class TestBenchstatCommand(unittest.TestCase):
    def test_plain(self) -> None:
        argv = benchstat_command([Path("/t/aaaaa"), Path("/t/bbbbb")])
        self.assertEqual(argv, ["benchstat", "/t/aaaaa", "/t/bbbbb"])

    def test_html_and_delta_test(self) -> None:
        argv = benchstat_command([Path("/t/aaaaa")], html=True, delta_test="utest")
        self.assertEqual(argv, ["benchstat", "-html", "-delta-test", "utest", "/t/aaaaa"])

    def test_custom_executable(self) -> None:
        argv = benchstat_command([Path("/t/x")], executable="/opt/bin/benchstat")
        self.assertEqual(argv[0], "/opt/bin/benchstat")


class TestRunBenchstat(unittest.TestCase):
    def test_returns_output(self) -> None:
        fake = FakeTools(benchstat_output=b"table\n")
        with patch("benchwrap.runner.subprocess.run", fake):
            self.assertEqual(run_benchstat([Path("/t/a")]), b"table")

    def test_nonzero_exit_is_tool_error(self) -> None:
        fake = FakeTools(benchstat_output=b"bad input\n", benchstat_returncode=1)
        with patch("benchwrap.runner.subprocess.run", fake):
            with self.assertRaises(ToolError) as ctx:
                run_benchstat([Path("/t/a")])
        self.assertIn("bad input", str(ctx.exception))

    @patch("benchwrap.runner.subprocess.run", side_effect=FileNotFoundError(2, "No such file"))
    def test_missing_executable_is_tool_error(self, _mock_run: MagicMock) -> None:
        with self.assertRaises(ToolError):
            run_benchstat([Path("/t/a")])


class TestRequireTool(unittest.TestCase):
    @patch("benchwrap.report.shutil.which", return_value="/usr/bin/benchstat")
    def test_found(self, _mock_which: MagicMock) -> None:
        self.assertEqual(require_tool("benchstat"), "/usr/bin/benchstat")

    @patch("benchwrap.report.shutil.which", return_value=None)
    def test_missing(self, _mock_which: MagicMock) -> None:
        with self.assertRaises(ToolError) as ctx:
            require_tool("benchstat")
        self.assertIn("no benchstat binary in $PATH", str(ctx.exception))


class TestWriteOutputs(unittest.TestCase):
    def test_writes_files_named_by_short_id(self) -> None:
        revs = [_rev("old", "abcdef123", b"run1run2"), _rev("new", "987654321", b"x")]
        with tempfile.TemporaryDirectory() as tmp:
            paths = write_outputs(revs, Path(tmp))
            self.assertEqual([p.name for p in paths], ["abcde", "98765"])
            self.assertEqual(paths[0].read_bytes(), b"run1run2")
            self.assertEqual(paths[1].read_bytes(), b"x")
            self.assertEqual(revs[0].output_path, paths[0])

    def test_write_failure_is_storage_error(self) -> None:
        revs = [_rev("old", "abcdef")]
        with tempfile.TemporaryDirectory() as tmp:
            missing = Path(tmp) / "gone"
            with self.assertRaises(StorageError):
                write_outputs(revs, missing)


class TestTemporaryOutputDir(unittest.TestCase):
    def test_created_and_removed(self) -> None:
        with TemporaryOutputDir() as path:
            self.assertTrue(path.is_dir())
            self.assertTrue(path.name.startswith("bw"))
            (path / "abcde").write_bytes(b"data")
        self.assertFalse(path.exists())

    def test_removed_on_error(self) -> None:
        with self.assertRaises(RuntimeError):
            with TemporaryOutputDir() as path:
                raise RuntimeError("boom")
        self.assertFalse(path.exists())

    @patch("benchwrap.report.tempfile.mkdtemp", side_effect=PermissionError(13, "denied"))
    def test_creation_failure_is_storage_error(self, _mock_mkdtemp: MagicMock) -> None:
        with self.assertRaises(StorageError):
            with TemporaryOutputDir():
                pass

    @patch("benchwrap.report.shutil.rmtree", side_effect=OSError(16, "busy"))
    def test_removal_failure_is_logged(self, _mock_rmtree: MagicMock) -> None:
        with self.assertLogs("benchwrap", level="WARNING") as logs:
            with TemporaryOutputDir() as path:
                pass
        self.assertTrue(any("could not remove" in line for line in logs.output))
        path.rmdir()


if __name__ == "__main__":
    unittest.main()
