import contextlib
import io
import os
import tempfile
import unittest
from unittest import mock

from pert.cli import build_parser, main

SAMPLE_CSV = "1, 2, 1, task1\n2, 3, 3, task2\n1, 3, 5, task3\n1, 4, 10, task4\n3, 4, 2, task5\n"


def run_cli(argv, stdin_data=""):
    if isinstance(stdin_data, str):
        stdin_data = stdin_data.encode("utf-8")
    stdin = io.TextIOWrapper(io.BytesIO(stdin_data), encoding="utf-8")
    stdout, stderr = io.StringIO(), io.StringIO()
    with mock.patch("sys.stdin", stdin), \
            contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
        code = main(argv)
    return code, stdout.getvalue(), stderr.getvalue()


class TestCli(unittest.TestCase):
    def test_reads_standard_input_and_writes_dot(self):
        code, out, _ = run_cli([], SAMPLE_CSV)
        self.assertEqual(code, 0)
        self.assertTrue(out.startswith("digraph PERT {"))
        self.assertIn('0 [label="1\\l0..0"]', out)
        self.assertIn('label="task4(10)\\lT: 0 / F: 0", style=bold', out)

    def test_reads_file_and_writes_output_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            src = os.path.join(tmp, "tasks.csv")
            dst = os.path.join(tmp, "out.dot")
            with open(src, "w", encoding="utf-8") as handle:
                handle.write(SAMPLE_CSV)
            code, out, _ = run_cli([src, "-o", dst])
            self.assertEqual(code, 0)
            self.assertEqual(out, "")
            with open(dst, encoding="utf-8") as handle:
                self.assertIn("rankdir", handle.read())

    def test_table_format(self):
        code, out, _ = run_cli(["--format", "table"], SAMPLE_CSV)
        self.assertEqual(code, 0)
        self.assertIn("Fastest Begin", out)
        self.assertIn("task4", out)

    def test_paths_strategy_matches_default(self):
        _, default_out, _ = run_cli([], SAMPLE_CSV)
        _, paths_out, _ = run_cli(["--strategy", "paths"], SAMPLE_CSV)
        self.assertEqual(default_out, paths_out)

    def test_explain_prints_calculation_log(self):
        code, _, err = run_cli(["--explain"], SAMPLE_CSV)
        self.assertEqual(code, 0)
        self.assertIn("FORWARD PASS", err)

    def test_malformed_input_fails(self):
        code, out, err = run_cli([], "1,2,x,task\n")
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("error: Row 1 is malformed", err)

    def test_undecodable_input_fails(self):
        code, out, err = run_cli([], b"1,2,1,\xff\xfe\n")
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("error: Row 1 is malformed (undecodable bytes)", err)

    def test_byte_order_mark_is_accepted(self):
        code, out, _ = run_cli([], b"\xef\xbb\xbf" + SAMPLE_CSV.encode("utf-8"))
        self.assertEqual(code, 0)
        self.assertTrue(out.startswith("digraph PERT {"))

    def test_duplicate_start_fails(self):
        code, _, err = run_cli([], "1,3,1,a\n2,3,1,b\n")
        self.assertEqual(code, 1)
        self.assertIn("Start node is duplicated", err)

    def test_missing_file_fails(self):
        code, _, err = run_cli([os.path.join(tempfile.gettempdir(), "no-such-pert.csv")])
        self.assertEqual(code, 1)
        self.assertIn("error:", err)

    def test_parser_defaults(self):
        args = build_parser().parse_args([])
        self.assertEqual(args.input, "-")
        self.assertEqual(args.format, "dot")
        self.assertEqual(args.strategy, "relaxation")


if __name__ == "__main__":
    unittest.main()
