#!/usr/bin/env python3
"""
LogPack Decoder
===============
Inverse of the encoder: rebuilds absolute values against the same rolling
baseline and re-renders every record in canonical padded form.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from logpack.encoder import MAX_NUMBER_SPAN
from logpack.grammar import (
    ONE_MS,
    Absolute,
    CompressedLine,
    CompressedRecord,
    LogRecord,
    RawLine,
    expand_level,
    render_plain,
)


@dataclass
class DecoderState:
    date: datetime
    number: int
    time_resets: int = 0
    number_resets: int = 0


def decode_first(parsed: CompressedLine) -> Optional[tuple[LogRecord, DecoderState]]:
    """Seed the baseline from an absolute first line; None if the line cannot seed one."""
    if not isinstance(parsed, CompressedRecord) or not parsed.is_absolute:
        return None
    ts = parsed.time.value
    record = LogRecord(ts, parsed.number, expand_level(parsed.level), parsed.message)
    return record, DecoderState(date=ts, number=parsed.number)


def resolve(parsed: CompressedRecord, state: DecoderState) -> Optional[LogRecord]:
    if isinstance(parsed.time, Absolute):
        ts = parsed.time.value
        state.date = ts
        state.time_resets += 1
    else:
        try:
            ts = state.date + parsed.time.delta_ms * ONE_MS
        except OverflowError:
            return None

    number = parsed.number
    if number > MAX_NUMBER_SPAN:
        state.number = number
        state.number_resets += 1
    else:
        number += state.number

    return LogRecord(ts, number, expand_level(parsed.level), parsed.message)


def decode_line(line: str, parsed: CompressedLine, state: DecoderState) -> str:
    if isinstance(parsed, RawLine):
        return parsed.text
    record = resolve(parsed, state)
    if record is None:
        return line
    return render_plain(record)
