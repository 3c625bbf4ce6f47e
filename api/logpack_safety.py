#!/usr/bin/env python3
"""
LogPack Safety - Mandatory Round-Trip Verification (MRTV)
=========================================================
The delta transform re-renders records in canonical padding, so a log that
uses different padding (or has raw lines that look like compressed records)
would not come back byte-for-byte. seal() proves the round trip with xxh64
fingerprints before committing to the delta-coded form; when the proof fails
the original bytes are stored behind a SAFE tag instead.

Container layout:
  delta form:  <zstd|gzip frame of the delta-coded text>
  safe form:   b'SAFE' + <zstd|gzip frame of the original bytes>
"""

from __future__ import annotations

import io
import tempfile
from dataclasses import asdict, dataclass, field
from typing import Any, BinaryIO, Dict, Optional

import xxhash

from logpack.outer_codec import unwrap, wrap
from logpack.transform import compress, decompress
from logpack_settings import LogPackSettings

SAFE_TAG = b"SAFE"
READ_CHUNK = 1 << 20


class _HashSink(io.RawIOBase):
    """Write-only sink that fingerprints whatever passes through it."""

    def __init__(self):
        super().__init__()
        self.hasher = xxhash.xxh64()
        self.size = 0

    def writable(self) -> bool:
        return True

    def write(self, b) -> int:
        self.hasher.update(b)
        self.size += len(b)
        return len(b)


def fingerprint(stream: BinaryIO) -> tuple[str, int]:
    """xxh64 hex digest and byte length of the rest of `stream`; position is restored."""
    pos = stream.tell()
    h = xxhash.xxh64()
    size = 0
    for chunk in iter(lambda: stream.read(READ_CHUNK), b""):
        h.update(chunk)
        size += len(chunk)
    stream.seek(pos)
    return h.hexdigest(), size


@dataclass
class SealReport:
    form: str
    codec: str
    level: int
    verified: Optional[bool] = None
    bytes_in: int = 0
    source_xxh64: str = ""
    restored_xxh64: Optional[str] = None
    fallback_reason: Optional[str] = None
    transform: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class LogPackSafety:
    def __init__(self, settings: Optional[LogPackSettings] = None):
        self.settings = settings or LogPackSettings()

    def seal(self, src: BinaryIO, dst: BinaryIO) -> SealReport:
        codec = self.settings.codec
        level = self.settings.effective_level
        start = src.tell()
        source_hash, size = fingerprint(src)
        report = SealReport(form="delta", codec=codec, level=level, bytes_in=size, source_xxh64=source_hash)

        with tempfile.TemporaryFile() as spool:
            report.transform = compress(src, spool).to_dict()
            spool_size = spool.tell()
            spool.seek(0)

            if self.settings.verify:
                sink = _HashSink()
                decompress(spool, sink)
                spool.seek(0)
                report.restored_xxh64 = sink.hasher.hexdigest()
                report.verified = sink.size == size and report.restored_xxh64 == source_hash
                if not report.verified:
                    report.form = "safe"
                    report.fallback_reason = "round-trip mismatch"

            if report.form == "safe":
                src.seek(start)
                dst.write(SAFE_TAG)
                wrap(src, dst, codec=codec, level=level, source_size=size)
            else:
                wrap(spool, dst, codec=codec, level=level, source_size=spool_size)
        return report

    @staticmethod
    def unseal(src: BinaryIO, dst: BinaryIO) -> str:
        """Restore a sealed container into `dst`; returns the form that was found."""
        pos = src.tell()
        if src.read(len(SAFE_TAG)) == SAFE_TAG:
            unwrap(src, dst)
            return "safe"
        src.seek(pos)
        with tempfile.TemporaryFile() as spool:
            unwrap(src, spool)
            spool.seek(0)
            decompress(spool, dst)
        return "delta"
