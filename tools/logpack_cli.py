#!/usr/bin/env python3
"""
logpack_cli.py
==============
Delta-code structured logs, then compress them.

Usage:
    python tools/logpack_cli.py <inputFile> <outputFile>        pack
    python tools/logpack_cli.py -d <inputFile> <outputFile>     unpack
    python tools/logpack_cli.py --version | --self-test [--json]

Environment:
    LOGPACK_CODEC=zstd|gzip   LOGPACK_LEVEL=<int>   LOGPACK_VERIFY=0|1
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from cli_runtime import emit_json, ensure_api_path, resolve_repo_root, self_test_core, version_result

REPO_ROOT = resolve_repo_root(__file__)
ensure_api_path(REPO_ROOT)

from pydantic import ValidationError  # noqa: E402

from logpack.errors import LogPackError  # noqa: E402
from logpack.staging import pack_file, unpack_file  # noqa: E402
from logpack_settings import LogPackSettings  # noqa: E402

CLI_SCHEMA = "logpack.cli.v1"
TOOL = "logpack"

USAGE = (
    "Usage:\n"
    "logpack [-d] <inputFile> <outputFile>\n"
    "\t-d flag turns on the decompression mode\n"
)


def _envelope(command: str, ok: bool, result: Dict[str, Any]) -> Dict[str, Any]:
    return {"schema_version": CLI_SCHEMA, "tool": TOOL, "command": command, "ok": ok, "result": result}


def _fail(command: str, message: str, as_json: bool) -> int:
    if as_json:
        emit_json(_envelope(command, False, {"error": message}))
    else:
        print(f"ERROR: {message}", file=sys.stderr)
    return 1


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog=TOOL, add_help=True, usage="%(prog)s [-d] <inputFile> <outputFile>")
    ap.add_argument("-d", dest="decompress", action="store_true", help="decompression mode")
    ap.add_argument("input", nargs="?")
    ap.add_argument("output", nargs="?")
    ap.add_argument("--codec", choices=("zstd", "gzip"), default=None)
    ap.add_argument("--level", type=int, default=None)
    ap.add_argument("--no-verify", dest="verify", action="store_false", default=None,
                    help="skip the round-trip verification pass")
    ap.add_argument("--json", action="store_true")
    ap.add_argument("--version", action="store_true")
    ap.add_argument("--self-test", action="store_true")
    return ap


def _cmd_pack(args: argparse.Namespace) -> int:
    try:
        settings = LogPackSettings.from_env(codec=args.codec, level=args.level, verify=args.verify)
    except ValidationError as exc:
        return _fail("pack", f"invalid settings: {exc.errors()[0].get('msg')}", args.json)

    try:
        report = pack_file(args.input, args.output, settings)
    except (LogPackError, OSError) as exc:
        return _fail("pack", str(exc), args.json)

    result = report.to_dict()
    result["bytes_out"] = Path(args.output).stat().st_size
    if report.fallback_reason:
        print(f"[WARN] {report.fallback_reason}: stored original bytes unchanged", file=sys.stderr)

    if args.json:
        emit_json(_envelope("pack", True, result))
    else:
        ratio = report.bytes_in / max(1, result["bytes_out"])
        print(
            f"[pack] mode={report.transform.get('mode')} form={report.form} codec={report.codec} "
            f"{report.bytes_in} -> {result['bytes_out']} bytes ({ratio:.2f}x)"
        )
    return 0


def _cmd_unpack(args: argparse.Namespace) -> int:
    try:
        form = unpack_file(args.input, args.output)
    except (LogPackError, OSError) as exc:
        return _fail("unpack", str(exc), args.json)

    result = {"form": form, "bytes_out": Path(args.output).stat().st_size}
    if args.json:
        emit_json(_envelope("unpack", True, result))
    else:
        print(f"[unpack] form={form} -> {result['bytes_out']} bytes")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    ap = _build_parser()
    args, extra = ap.parse_known_args(argv)

    if args.version:
        result = version_result(tool=TOOL, repo_root=REPO_ROOT)
        if args.json:
            emit_json(_envelope("version", True, result))
        else:
            build = result["build"]
            print(f"logpack {build.get('logpack_version', 'dev')} ({build.get('system', '?')}/{build.get('machine', '?')})")
        return 0

    if args.self_test:
        result = self_test_core(tool=TOOL, repo_root=REPO_ROOT)
        ok = bool(result["summary"]["ok"])
        if args.json:
            emit_json(_envelope("self_test", ok, result))
        else:
            summary = result["summary"]
            print(f"[self-test] ok={summary['ok']} passed={summary['checks_passed']}/{summary['checks_total']}")
        return 0 if ok else 1

    if extra or not args.input or not args.output or not Path(args.input).is_file():
        print(USAGE)
        return 2

    return _cmd_unpack(args) if args.decompress else _cmd_pack(args)


if __name__ == "__main__":
    raise SystemExit(main())
