"""
Trace file reading.

A trace is a sequence of whitespace separated records. Each record is one
operation character (R/r for a read, W/w for a write) followed by a
hexadecimal address, with or without a 0x prefix:

    R 7ffd3a2c
    w 0x601040

The operation may be glued to its address ("R7ffd3a2c") and a record may be
split over two lines. Reading stops at the first record that cannot be parsed;
the rest of the trace is not replayed.
"""
from typing import Iterable, Iterator
from constants import LOGGER_NAME
from errors import TraceFormatError, TraceOpenError
from instruction import Instruction, OperationType
import io
import itertools
import logging
import re
import sys

LOGGER = logging.getLogger(LOGGER_NAME)

STDIN_PATH = "-"
MAX_ADDRESS = (1 << 64) - 1

_ADDRESS_RE = re.compile(r"(?:0[xX])?([0-9a-fA-F]+)")


def _tokens(lines: Iterable[str]) -> Iterator[str]:
    for line in lines:
        yield from line.split()


def parse_address(text: str, record_number: int) -> int:
    match = _ADDRESS_RE.fullmatch(text)
    if match is None:
        raise TraceFormatError(f"Record {record_number}: bad address {text!r}", record_number)
    address = int(match.group(1), 16)
    if address > MAX_ADDRESS:
        raise TraceFormatError(f"Record {record_number}: address {text!r} does not fit in 64 bits", record_number)
    return address


def parse_records(lines: Iterable[str]) -> Iterator[Instruction]:
    """Yield one Instruction per record, raising TraceFormatError at the first bad one."""
    tokens = _tokens(lines)
    record_number = 0
    for token in tokens:
        record_number += 1
        op_char, address_text = token[0], token[1:]
        try:
            op = OperationType.from_char(op_char)
        except ValueError:
            raise TraceFormatError(f"Record {record_number}: unknown operation {op_char!r}", record_number) from None
        if not address_text:
            address_text = next(tokens, None)
            if address_text is None:
                raise TraceFormatError(f"Record {record_number}: missing address", record_number)
        yield Instruction(op, parse_address(address_text, record_number))


class TraceReader:
    """
    One-shot, lazy stream of Instructions read from a trace file.
    Use as a context manager; iterating yields records in file order.
    """

    def __init__(self, path: str, line_limit: int | None = None):
        self.path = path
        self.line_limit = line_limit
        self.records_read = 0
        self.truncated = False
        self.truncated_at = None
        self._file = None

    def __enter__(self):
        if self.path == STDIN_PATH:
            buffer = getattr(sys.stdin, "buffer", None)
            if buffer is None:
                # already a text stream with no bytes underneath
                self._file = sys.stdin
            else:
                self._file = io.TextIOWrapper(buffer, encoding="ascii", errors="replace")
            return self
        try:
            self._file = open(self.path, "r", encoding="ascii", errors="replace")
        except OSError as e:
            raise TraceOpenError(f"Error: could not open the trace file: {self.path}") from e
        return self

    def __exit__(self, exc_type, exc, tb):
        if self.path == STDIN_PATH:
            # sys.stdin stays open for the rest of the process
            if isinstance(self._file, io.TextIOWrapper) and self._file is not sys.stdin:
                self._file.detach()
        elif self._file is not None:
            self._file.close()
        self._file = None

    def __iter__(self) -> Iterator[Instruction]:
        if self._file is None:
            raise RuntimeError("TraceReader must be opened with 'with' before iterating")
        lines = self._file
        if self.line_limit is not None:
            lines = itertools.islice(lines, self.line_limit)
        try:
            for instr in parse_records(lines):
                self.records_read += 1
                yield instr
        except TraceFormatError as e:
            self.truncated = True
            self.truncated_at = e.record_number
            LOGGER.warning(f"Trace {self.path} truncated after {self.records_read} records: {e}")


def read_trace(path: str, line_limit: int | None = None) -> list[Instruction]:
    """Read a whole trace into memory, optionally only its first ``line_limit`` lines."""
    with TraceReader(path, line_limit) as reader:
        return list(reader)
