#!/usr/bin/env python3
"""
LogPack Stream Transform
========================
compress(input, output) / decompress(input, output) over seekable binary streams.

Fallback policy, applied the same way in both directions:
  - binary content (NUL in the first 1024 bytes) is copied verbatim
  - an empty stream, or one whose first line does not parse, is copied verbatim
  - any later line that does not parse is written through unchanged

Caller streams are never closed; the text views created here are detached
on every exit path.
"""

from __future__ import annotations

import io
import shutil
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from typing import Any, BinaryIO, Dict, Iterator

from logpack.classifier import detect_newline, is_binary
from logpack.decoder import decode_first, resolve
from logpack.encoder import EncoderState, encode_first, encode_line
from logpack.grammar import LogRecord, RawLine, parse_compressed, parse_plain, render_plain

TEXT_ENCODING = "utf-8"
# Undecodable bytes survive the text round trip as lone surrogates.
TEXT_ERRORS = "surrogateescape"

MODE_BINARY = "binary"
MODE_VERBATIM = "verbatim"
MODE_DELTA = "delta"


@dataclass
class TransformStats:
    mode: str = MODE_VERBATIM
    newline: str = "\n"
    lines: int = 0
    records: int = 0
    raw_lines: int = 0
    time_resets: int = 0
    number_resets: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@contextmanager
def _text_reader(stream: BinaryIO) -> Iterator[io.TextIOWrapper]:
    reader = io.TextIOWrapper(stream, encoding=TEXT_ENCODING, errors=TEXT_ERRORS, newline=None)
    try:
        yield reader
    finally:
        reader.detach()


@contextmanager
def _text_writer(stream: BinaryIO) -> Iterator[io.TextIOWrapper]:
    writer = io.TextIOWrapper(stream, encoding=TEXT_ENCODING, errors=TEXT_ERRORS, newline="")
    try:
        yield writer
    finally:
        writer.flush()
        writer.detach()


def _iter_lines(reader: io.TextIOWrapper) -> Iterator[str]:
    # Universal newlines: \r\n, \r and \n all arrive as a trailing \n.
    for line in reader:
        yield line[:-1] if line.endswith("\n") else line


def _copy_verbatim(src: BinaryIO, dst: BinaryIO, start: int, stats: TransformStats) -> TransformStats:
    src.seek(start)
    shutil.copyfileobj(src, dst)
    return stats


def compress(input: BinaryIO, output: BinaryIO) -> TransformStats:
    """Delta-code a structured log stream into `output`."""
    start = input.tell()
    if is_binary(input):
        return _copy_verbatim(input, output, start, TransformStats(mode=MODE_BINARY))

    stats = TransformStats(newline=detect_newline(input))
    with _text_reader(input) as reader:
        lines = _iter_lines(reader)
        first = parse_plain(next(lines, ""))
        if isinstance(first, LogRecord):
            stats.mode = MODE_DELTA
            state = EncoderState.seed(first)
            with _text_writer(output) as writer:
                writer.write(encode_first(first) + stats.newline)
                stats.lines = stats.records = 1
                for line in lines:
                    parsed = parse_plain(line)
                    stats.lines += 1
                    if isinstance(parsed, RawLine):
                        stats.raw_lines += 1
                    else:
                        stats.records += 1
                    writer.write(encode_line(parsed, state) + stats.newline)
            stats.time_resets = state.time_resets
            stats.number_resets = state.number_resets
            return stats

    return _copy_verbatim(input, output, start, stats)


def decompress(input: BinaryIO, output: BinaryIO) -> TransformStats:
    """Rebuild the canonical log text from a delta-coded stream."""
    start = input.tell()
    if is_binary(input):
        return _copy_verbatim(input, output, start, TransformStats(mode=MODE_BINARY))

    stats = TransformStats(newline=detect_newline(input))
    with _text_reader(input) as reader:
        lines = _iter_lines(reader)
        seeded = decode_first(parse_compressed(next(lines, "")))
        if seeded is not None:
            stats.mode = MODE_DELTA
            first, state = seeded
            with _text_writer(output) as writer:
                writer.write(render_plain(first) + stats.newline)
                stats.lines = stats.records = 1
                for line in lines:
                    parsed = parse_compressed(line)
                    # A delta that leaves the calendar range is written through like a raw line.
                    record = None if isinstance(parsed, RawLine) else resolve(parsed, state)
                    stats.lines += 1
                    if record is None:
                        stats.raw_lines += 1
                        writer.write(line + stats.newline)
                    else:
                        stats.records += 1
                        writer.write(render_plain(record) + stats.newline)
            stats.time_resets = state.time_resets
            stats.number_resets = state.number_resets
            return stats

    return _copy_verbatim(input, output, start, stats)
