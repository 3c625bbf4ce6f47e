#!/usr/bin/env python3
"""
LogPack Record Grammar
======================
PLAIN:      2024-01-01 00:00:00,000 100    INFO  message text
COMPRESSED: 20240101000000000 100 1 message text   (first field may be a ms delta)

Parsers never raise on malformed content: anything that does not fit the
grammar comes back as a RawLine carrying the original text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Union

MAX_LEVEL_LEN = 5
NUMBER_WIDTH = 6

LEVEL_CODES = {"INFO": "1", "ERROR": "0"}
LEVEL_NAMES = {code: name for name, code in LEVEL_CODES.items()}

_RE_PLAIN_TS = re.compile(r"(\d{4})-(\d{2})-(\d{2}) (\d{2}):(\d{2}):(\d{2}),(\d{3})", re.ASCII)
_RE_COMPACT_TS = re.compile(r"(\d{4})(\d{2})(\d{2})(\d{2})(\d{2})(\d{2})(\d{3})", re.ASCII)
_RE_INT = re.compile(r"[+-]?\d+", re.ASCII)

ONE_MS = timedelta(milliseconds=1)


# =========================================================
# 1. RESULT TYPES
# =========================================================

@dataclass(frozen=True)
class LogRecord:
    timestamp: datetime
    number: int
    level: str
    message: str


@dataclass(frozen=True)
class RawLine:
    text: str


@dataclass(frozen=True)
class Absolute:
    value: datetime


@dataclass(frozen=True)
class Relative:
    delta_ms: int


@dataclass(frozen=True)
class CompressedRecord:
    time: Union[Absolute, Relative]
    number: int
    level: str
    message: str

    @property
    def is_absolute(self) -> bool:
        return isinstance(self.time, Absolute)


PlainLine = Union[LogRecord, RawLine]
CompressedLine = Union[CompressedRecord, RawLine]


# =========================================================
# 2. TOKEN HELPERS
# =========================================================

def split_fields(line: str, count: int) -> List[str]:
    """
    Split on ' ' into at most `count` non-empty fields. Runs of spaces count as
    one separator; the last field keeps the rest of the line, minus leading spaces.
    """
    fields: List[str] = []
    rest = line
    while rest and len(fields) < count - 1:
        rest = rest.lstrip(" ")
        if not rest:
            break
        cut = rest.find(" ")
        if cut < 0:
            fields.append(rest)
            return fields
        fields.append(rest[:cut])
        rest = rest[cut + 1:]
    rest = rest.lstrip(" ")
    if rest:
        fields.append(rest)
    return fields


def parse_int(token: str) -> Optional[int]:
    if not _RE_INT.fullmatch(token):
        return None
    return int(token)


def _build_datetime(m: Optional[re.Match]) -> Optional[datetime]:
    if m is None:
        return None
    y, mo, d, h, mi, s, ms = (int(g) for g in m.groups())
    try:
        return datetime(y, mo, d, h, mi, s, ms * 1000)
    except ValueError:
        return None


def parse_plain_timestamp(text: str) -> Optional[datetime]:
    return _build_datetime(_RE_PLAIN_TS.fullmatch(text))


def parse_compact_timestamp(text: str) -> Optional[datetime]:
    return _build_datetime(_RE_COMPACT_TS.fullmatch(text))


def format_plain_timestamp(ts: datetime) -> str:
    # strftime('%Y') does not zero-pad years below 1000 on every platform.
    return (
        f"{ts.year:04d}-{ts.month:02d}-{ts.day:02d} "
        f"{ts.hour:02d}:{ts.minute:02d}:{ts.second:02d},{ts.microsecond // 1000:03d}"
    )


def format_compact_timestamp(ts: datetime) -> str:
    return (
        f"{ts.year:04d}{ts.month:02d}{ts.day:02d}"
        f"{ts.hour:02d}{ts.minute:02d}{ts.second:02d}{ts.microsecond // 1000:03d}"
    )


def delta_ms(later: datetime, earlier: datetime) -> int:
    return (later - earlier) // ONE_MS


def compress_level(level: str) -> str:
    return LEVEL_CODES.get(level, level)


def expand_level(code: str) -> str:
    return LEVEL_NAMES.get(code, code)


# =========================================================
# 3. PARSERS
# =========================================================

def parse_plain(line: str) -> PlainLine:
    fields = split_fields(line, 5)
    if len(fields) != 5:
        return RawLine(line)
    date, time, number, level, message = fields
    ts = parse_plain_timestamp(f"{date} {time}")
    num = parse_int(number)
    if ts is None or num is None or len(level) > MAX_LEVEL_LEN:
        return RawLine(line)
    return LogRecord(ts, num, level, message)


def parse_compressed(line: str) -> CompressedLine:
    fields = split_fields(line, 4)
    if len(fields) != 4:
        return RawLine(line)
    head, number, level, message = fields
    num = parse_int(number)
    if num is None or len(level) > MAX_LEVEL_LEN:
        return RawLine(line)

    ts = parse_compact_timestamp(head)
    if ts is not None:
        return CompressedRecord(Absolute(ts), num, level, message)
    span = parse_int(head)
    if span is not None:
        return CompressedRecord(Relative(span), num, level, message)
    return RawLine(line)


# =========================================================
# 4. RENDERERS
# =========================================================

def render_plain(record: LogRecord) -> str:
    return (
        f"{format_plain_timestamp(record.timestamp)} "
        f"{record.number:<{NUMBER_WIDTH}} "
        f"{record.level:<{MAX_LEVEL_LEN}} {record.message}"
    )


def render_compressed(head: str, number: int, level: str, message: str) -> str:
    return f"{head} {number} {compress_level(level)} {message}"
