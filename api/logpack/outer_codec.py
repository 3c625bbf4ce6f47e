#!/usr/bin/env python3
"""
LogPack Outer Codec
===================
General-purpose byte compression applied after the delta transform.
zstd is the default; gzip is kept for archives produced by gzip-based tooling.
unwrap() picks the codec from the frame magic.
"""

from __future__ import annotations

import gzip
import shutil
import zlib
from typing import BinaryIO, Optional

import zstandard as zstd

from common_zstd import make_cctx, make_dctx
from logpack.errors import CorruptContainerError, UnknownContainerError

ZSTD_MAGIC = b"\x28\xb5\x2f\xfd"
GZIP_MAGIC = b"\x1f\x8b"

CODECS = ("zstd", "gzip")
COPY_CHUNK = 1 << 20


def sniff_codec(stream: BinaryIO) -> Optional[str]:
    pos = stream.tell()
    head = stream.read(4)
    stream.seek(pos)
    if head.startswith(ZSTD_MAGIC):
        return "zstd"
    if head.startswith(GZIP_MAGIC):
        return "gzip"
    return None


def wrap(
    src: BinaryIO,
    dst: BinaryIO,
    codec: str = "zstd",
    level: int = 19,
    source_size: Optional[int] = None,
) -> None:
    if codec == "zstd":
        cctx = make_cctx(level=level, source_size=source_size)
        cctx.copy_stream(src, dst, size=source_size or -1, read_size=COPY_CHUNK, write_size=COPY_CHUNK)
    elif codec == "gzip":
        # mtime=0 keeps the output deterministic for identical input.
        with gzip.GzipFile(fileobj=dst, mode="wb", compresslevel=level, mtime=0) as gz:
            shutil.copyfileobj(src, gz, COPY_CHUNK)
    else:
        raise ValueError(f"unknown codec: {codec!r}")


def _unwrap_zstd(src: BinaryIO, dst: BinaryIO) -> None:
    # copy_stream stops quietly at end of input, so frame completion is checked here.
    dctx = make_dctx()
    dobj = None
    for chunk in iter(lambda: src.read(COPY_CHUNK), b""):
        while chunk:
            if dobj is None:
                dobj = dctx.decompressobj(write_size=COPY_CHUNK)
            dst.write(dobj.decompress(chunk))
            if not dobj.eof:
                break
            chunk = dobj.unused_data
            dobj = None
    if dobj is not None:
        raise CorruptContainerError("zstd frame is truncated")


def unwrap(src: BinaryIO, dst: BinaryIO) -> str:
    """Decompress `src` into `dst`; returns the codec that was detected.

    Raises UnknownContainerError for an unrecognised prefix and
    CorruptContainerError when a zstd or gzip frame is truncated or damaged.
    """
    codec = sniff_codec(src)
    if codec == "zstd":
        try:
            _unwrap_zstd(src, dst)
        except zstd.ZstdError as exc:
            raise CorruptContainerError(f"corrupt zstd frame: {exc}") from exc
    elif codec == "gzip":
        try:
            with gzip.GzipFile(fileobj=src, mode="rb") as gz:
                shutil.copyfileobj(gz, dst, COPY_CHUNK)
        except (EOFError, gzip.BadGzipFile, zlib.error) as exc:
            raise CorruptContainerError(f"corrupt gzip stream: {exc}") from exc
    else:
        raise UnknownContainerError("input is neither a zstd nor a gzip stream")
    return codec
