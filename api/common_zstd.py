#!/usr/bin/env python3
"""
Shared zstd context factory for LogPack outer compression.

Delta-coded logs are short repetitive text lines, so the compressor is tuned
for text: long-distance matching plus a window sized to the input.
"""

from __future__ import annotations

import math
import os
from typing import Optional

import zstandard as zstd

DEFAULT_LEVEL = 19


def _adaptive_window_log(source_size: Optional[int]) -> int:
    """Window log clamped to 20..27 (27 keeps decoding within default limits)."""
    if not source_size or source_size <= 0:
        return 25
    wl = int(math.ceil(math.log2(max(1, int(source_size)))))
    return max(20, min(27, wl))


def ldm_disabled() -> bool:
    return os.getenv("LOGPACK_DISABLE_LDM", "").strip() == "1"


def make_cctx(
    *,
    level: int = DEFAULT_LEVEL,
    threads: Optional[int] = -1,
    text_like: bool = True,
    source_size: Optional[int] = None,
    write_checksum: bool = True,
) -> zstd.ZstdCompressor:
    """
    Build a zstd compressor with consistent defaults.

    - `threads=-1` means "all cores".
    - Text-like input at level >= 9 gets LDM unless LOGPACK_DISABLE_LDM=1.
    """
    eff_threads = -1 if threads in (None, 0) else int(threads)
    want_ldm = text_like and int(level) >= 9 and not ldm_disabled()

    if want_ldm:
        params = zstd.ZstdCompressionParameters.from_level(
            int(level),
            source_size=source_size or 0,
            window_log=_adaptive_window_log(source_size),
            enable_ldm=True,
            threads=eff_threads,
            write_checksum=write_checksum,
        )
        return zstd.ZstdCompressor(compression_params=params)

    return zstd.ZstdCompressor(
        level=int(level),
        threads=eff_threads,
        write_checksum=write_checksum,
    )


def make_dctx() -> zstd.ZstdDecompressor:
    return zstd.ZstdDecompressor()
