#!/usr/bin/env python3
"""
LogPack runtime settings.

Read from the environment, overridden by CLI flags:
  LOGPACK_CODEC=zstd|gzip
  LOGPACK_LEVEL=<int>
  LOGPACK_VERIFY=0|1
"""

from __future__ import annotations

import os
from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

Codec = Literal["zstd", "gzip"]

DEFAULT_LEVELS = {"zstd": 19, "gzip": 9}
LEVEL_RANGES = {"zstd": (1, 22), "gzip": (1, 9)}

_FALSY = {"0", "false", "no", "off"}


class LogPackSettings(BaseModel):
    codec: Codec = "zstd"
    level: Optional[int] = Field(default=None, ge=1, le=22)
    verify: bool = True

    @model_validator(mode="after")
    def validate_level_for_codec(self):
        if self.level is None:
            return self
        lo, hi = LEVEL_RANGES[self.codec]
        if not lo <= self.level <= hi:
            raise ValueError(f"level for codec={self.codec} must be within {lo}..{hi}")
        return self

    @property
    def effective_level(self) -> int:
        return self.level if self.level is not None else DEFAULT_LEVELS[self.codec]

    @classmethod
    def from_env(cls, **overrides) -> "LogPackSettings":
        data = {}
        codec = os.environ.get("LOGPACK_CODEC", "").strip().lower()
        if codec:
            data["codec"] = codec
        level = os.environ.get("LOGPACK_LEVEL", "").strip()
        if level:
            data["level"] = level
        verify = os.environ.get("LOGPACK_VERIFY", "").strip().lower()
        if verify:
            data["verify"] = verify not in _FALSY
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**data)
