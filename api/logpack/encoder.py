#!/usr/bin/env python3
"""
LogPack Encoder
===============
Rolling-baseline delta coder for plain log records.

Time and number deltas above MAX_TIME_SPAN / MAX_NUMBER_SPAN are written as
absolute values and move the baseline. Negative deltas are always written as
signed deltas, however large.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from logpack.grammar import (
    LogRecord,
    PlainLine,
    RawLine,
    delta_ms,
    format_compact_timestamp,
    render_compressed,
)

MAX_TIME_SPAN = 999
MAX_NUMBER_SPAN = 999


@dataclass
class EncoderState:
    date: datetime
    number: int
    time_resets: int = 0
    number_resets: int = 0

    @classmethod
    def seed(cls, record: LogRecord) -> "EncoderState":
        return cls(date=record.timestamp, number=record.number)


def encode_first(record: LogRecord) -> str:
    """First record of a stream is always fully absolute."""
    return render_compressed(
        format_compact_timestamp(record.timestamp), record.number, record.level, record.message
    )


def encode_record(record: LogRecord, state: EncoderState) -> str:
    span = delta_ms(record.timestamp, state.date)
    if span > MAX_TIME_SPAN:
        head = format_compact_timestamp(record.timestamp)
        state.date = record.timestamp
        state.time_resets += 1
    else:
        head = str(span)

    number = record.number - state.number
    if number > MAX_NUMBER_SPAN:
        number = record.number
        state.number = record.number
        state.number_resets += 1

    return render_compressed(head, number, record.level, record.message)


def encode_line(parsed: PlainLine, state: EncoderState) -> str:
    if isinstance(parsed, RawLine):
        return parsed.text
    return encode_record(parsed, state)
