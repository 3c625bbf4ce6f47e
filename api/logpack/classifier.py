#!/usr/bin/env python3
"""
LogPack Format Classifier
=========================
Bounded prefix peeks that decide how a stream is handled before the main pass.
Both peeks restore the stream position, so the caller sees an untouched stream.
"""

from __future__ import annotations

from typing import BinaryIO

BINARY_PEEK_BYTES = 1024
NEWLINE_PEEK_BYTES = 2000


def _peek(stream: BinaryIO, size: int) -> bytes:
    pos = stream.tell()
    try:
        return stream.read(size)
    finally:
        stream.seek(pos)


def is_binary(stream: BinaryIO) -> bool:
    """True if a NUL byte shows up in the first 1024 bytes."""
    return b"\x00" in _peek(stream, BINARY_PEEK_BYTES)


def is_crlf(stream: BinaryIO) -> bool:
    """True if a CR byte shows up in the first 2000 bytes."""
    return b"\r" in _peek(stream, NEWLINE_PEEK_BYTES)


def detect_newline(stream: BinaryIO) -> str:
    return "\r\n" if is_crlf(stream) else "\n"
