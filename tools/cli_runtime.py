#!/usr/bin/env python3
"""Shared runtime helpers for LogPack CLI wrappers."""

from __future__ import annotations

import hashlib
import io
import json
import os
import platform
import sys
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List


def resolve_repo_root(script_file: str) -> Path:
    """Resolve repo root for source and PyInstaller-frozen execution."""
    meipass = getattr(sys, "_MEIPASS", None)
    if meipass:
        root = Path(meipass)
        if (root / "api").exists():
            return root
        if (root / "_internal" / "api").exists():
            return root / "_internal"
    return Path(script_file).resolve().parent.parent


def ensure_api_path(repo_root: Path) -> None:
    api_dir = str(repo_root / "api")
    if api_dir not in sys.path:
        sys.path.insert(0, api_dir)


def _component_version(module: str) -> Any:
    try:
        mod = __import__(module)
    except ImportError:
        return None
    return getattr(mod, "__version__", None) or getattr(mod, "VERSION", None)


def get_build_info(tool: str, repo_root: Path) -> Dict[str, Any]:
    return {
        "tool": tool,
        "logpack_version": os.environ.get("LOGPACK_BUILD_VERSION", "dev"),
        "build_commit": os.environ.get("GITHUB_SHA") or os.environ.get("LOGPACK_BUILD_COMMIT") or "",
        "platform": platform.platform(),
        "system": platform.system(),
        "machine": platform.machine(),
        "python": platform.python_version(),
        "frozen": bool(getattr(sys, "frozen", False)),
        "repo_root": str(repo_root),
        "components": {
            "zstandard": _component_version("zstandard"),
            "xxhash": _component_version("xxhash"),
            "pydantic": _component_version("pydantic"),
        },
    }


def _check(name: str, ok: bool, severity: str = "error", **extra: Any) -> Dict[str, Any]:
    row = {"name": name, "ok": bool(ok), "severity": severity}
    row.update(extra)
    return row


def summarize_checks(checks: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    checks = list(checks)
    errors = sum(1 for c in checks if not c.get("ok") and c.get("severity") == "error")
    warnings = sum(1 for c in checks if not c.get("ok") and c.get("severity") == "warning")
    return {
        "checks_total": len(checks),
        "checks_passed": sum(1 for c in checks if c.get("ok")),
        "errors": errors,
        "warnings": warnings,
        "ok": errors == 0,
    }


SELF_TEST_LOG = (
    b"2024-01-01 00:00:00,000 100    INFO  service started\n"
    b"2024-01-01 00:00:00,250 101    ERROR connection refused\n"
    b"java.net.ConnectException: Connection refused\n"
    b"2024-01-01 00:00:05,000 2000   WARN  retrying\n"
)


def self_test_core(*, tool: str, repo_root: Path) -> Dict[str, Any]:
    checks: List[Dict[str, Any]] = []
    started = time.time()
    ensure_api_path(repo_root)

    try:
        from logpack.transform import compress, decompress  # type: ignore

        packed = io.BytesIO()
        restored = io.BytesIO()
        stats = compress(io.BytesIO(SELF_TEST_LOG), packed)
        packed.seek(0)
        decompress(packed, restored)
        checks.append(_check("delta_roundtrip", restored.getvalue() == SELF_TEST_LOG, mode=stats.mode))
        checks.append(_check("delta_shrinks", len(packed.getvalue()) < len(SELF_TEST_LOG), severity="warning"))
    except Exception as exc:
        checks.append(_check("delta_roundtrip", False, detail=str(exc)))

    for codec in ("zstd", "gzip"):
        try:
            from logpack_safety import LogPackSafety  # type: ignore
            from logpack_settings import LogPackSettings  # type: ignore

            sealed = io.BytesIO()
            out = io.BytesIO()
            report = LogPackSafety(LogPackSettings(codec=codec)).seal(io.BytesIO(SELF_TEST_LOG), sealed)
            sealed.seek(0)
            LogPackSafety.unseal(sealed, out)
            checks.append(_check(f"{codec}_seal_roundtrip", out.getvalue() == SELF_TEST_LOG, form=report.form))
        except Exception as exc:
            checks.append(_check(f"{codec}_seal_roundtrip", False, detail=str(exc)))

    return {
        "version": "logpack-cli-self-test-v1",
        "build": get_build_info(tool, repo_root),
        "summary": summarize_checks(checks),
        "checks": checks,
        "duration_seconds": round(time.time() - started, 3),
        "fingerprint_sha256": hashlib.sha256(SELF_TEST_LOG).hexdigest(),
    }


def version_result(*, tool: str, repo_root: Path) -> Dict[str, Any]:
    return {
        "version": "logpack-cli-version-v1",
        "build": get_build_info(tool, repo_root),
    }


def emit_json(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2))
