#!/usr/bin/env python3
"""
File-level pack/unpack with temporary-file staging.

Output is written to a temporary file in the destination directory and moved
into place with os.replace, so a failed run never leaves a partial output file.
The finished file gets the umask-derived mode, not the private mode of the
temporary file.
"""

from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Union

from logpack_safety import LogPackSafety, SealReport
from logpack_settings import LogPackSettings

PathLike = Union[str, Path]


def _default_file_mode() -> int:
    """Mode an ordinary open(..., "w") would give a new file under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


@contextmanager
def staged_output(out_path: PathLike) -> Iterator[BinaryIO]:
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{out_path.name}.", suffix=".tmp", dir=str(out_path.parent))
    try:
        with os.fdopen(fd, "wb") as tmp:
            yield tmp
        # mkstemp creates 0600; outputs get the same mode as any other written file.
        os.chmod(tmp_name, _default_file_mode())
        os.replace(tmp_name, out_path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def pack_file(in_path: PathLike, out_path: PathLike, settings: Optional[LogPackSettings] = None) -> SealReport:
    safety = LogPackSafety(settings)
    with open(in_path, "rb") as src, staged_output(out_path) as dst:
        return safety.seal(src, dst)


def unpack_file(in_path: PathLike, out_path: PathLike) -> str:
    with open(in_path, "rb") as src, staged_output(out_path) as dst:
        return LogPackSafety.unseal(src, dst)
