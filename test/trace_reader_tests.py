import io
import os
import tempfile
import unittest
from unittest import mock

from errors import TraceFormatError, TraceOpenError
from instruction import Instruction, OperationType
from trace_reader import TraceReader, parse_records, read_trace

R = OperationType.READ
W = OperationType.WRITE


def write_trace(contents: str) -> str:
    fd, path = tempfile.mkstemp(suffix=".t")
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(contents)
    return path


class TestParseRecords(unittest.TestCase):

    def test_basic_records(self):
        records = list(parse_records(["R 0\n", "w 0x40\n", "W 7ffd3a2c\n", "r 0XFF\n"]))
        self.assertEqual(records, [
            Instruction(R, 0x0),
            Instruction(W, 0x40),
            Instruction(W, 0x7FFD3A2C),
            Instruction(R, 0xFF),
        ])

    def test_glued_operation(self):
        self.assertEqual(list(parse_records(["R1f W20"])), [Instruction(R, 0x1F), Instruction(W, 0x20)])

    def test_record_split_over_lines(self):
        self.assertEqual(list(parse_records(["R\n", "   40\n"])), [Instruction(R, 0x40)])

    def test_blank_lines(self):
        self.assertEqual(list(parse_records(["\n", "  \n", "R 1\n", "\n"])), [Instruction(R, 0x1)])

    def test_unknown_operation(self):
        with self.assertRaises(TraceFormatError) as ctx:
            list(parse_records(["R 0\n", "X 40\n"]))
        self.assertEqual(ctx.exception.record_number, 2)

    def test_bad_address(self):
        with self.assertRaises(TraceFormatError):
            list(parse_records(["R zz\n"]))

    def test_address_wider_than_64_bits(self):
        self.assertEqual(list(parse_records(["R ffffffffffffffff"])), [Instruction(R, (1 << 64) - 1)])
        with self.assertRaises(TraceFormatError):
            list(parse_records(["R 10000000000000000"]))

    def test_missing_address(self):
        with self.assertRaises(TraceFormatError):
            list(parse_records(["R 0\n", "W\n"]))


class TestTraceReader(unittest.TestCase):

    def setUp(self):
        self.paths = []

    def tearDown(self):
        for path in self.paths:
            os.remove(path)

    def trace(self, contents):
        path = write_trace(contents)
        self.paths.append(path)
        return path

    def test_reads_in_file_order(self):
        path = self.trace("R 0\nW 40\nR 80\n")
        with TraceReader(path) as reader:
            records = list(reader)
        self.assertEqual([r.address for r in records], [0x0, 0x40, 0x80])
        self.assertEqual(reader.records_read, 3)
        self.assertFalse(reader.truncated)

    def test_truncates_on_first_malformed_record(self):
        # Everything after the bad record is dropped, not skipped over
        path = self.trace("R 0\nW 40\nQ 80\nR c0\nR 100\n")
        with TraceReader(path) as reader:
            records = list(reader)
        self.assertEqual(records, [Instruction(R, 0x0), Instruction(W, 0x40)])
        self.assertTrue(reader.truncated)
        self.assertEqual(reader.truncated_at, 3)

    def test_is_one_shot(self):
        path = self.trace("R 0\nR 40\n")
        with TraceReader(path) as reader:
            self.assertEqual(len(list(reader)), 2)
            self.assertEqual(list(reader), [])

    def test_missing_file(self):
        with self.assertRaises(TraceOpenError):
            with TraceReader("/nonexistent/trace.t"):
                pass

    def test_must_be_opened(self):
        with self.assertRaises(RuntimeError):
            list(TraceReader("unused.t"))

    def test_stdin(self):
        with mock.patch("sys.stdin", io.StringIO("W 10\nR 20\n")):
            with TraceReader("-") as reader:
                records = list(reader)
        self.assertEqual(records, [Instruction(W, 0x10), Instruction(R, 0x20)])

    def test_stdin_undecodable_bytes_truncate(self):
        raw = io.BytesIO(b"R 0\nR 40\nR \xff\xfe 80\nR 0\n")
        piped = io.TextIOWrapper(raw, encoding="utf-8")
        with mock.patch("sys.stdin", piped):
            with TraceReader("-") as reader:
                records = list(reader)
        self.assertEqual(records, [Instruction(R, 0x0), Instruction(R, 0x40)])
        self.assertTrue(reader.truncated)
        self.assertEqual(reader.truncated_at, 3)
        # the process's stdin is left open
        self.assertFalse(raw.closed)

    def test_read_trace_line_limit(self):
        path = self.trace("R 0\nR 40\nR 80\nR c0\n")
        self.assertEqual(len(read_trace(path)), 4)
        self.assertEqual(len(read_trace(path, 2)), 2)

    def test_non_ascii_bytes_truncate(self):
        path = self.trace("R 0\nR é40\nR 80\n")
        self.assertEqual(read_trace(path), [Instruction(R, 0x0)])


if __name__ == "__main__":
    unittest.main()
