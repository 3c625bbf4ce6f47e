"""tests/test_safety.py — MRTV (Mandatory Round-Trip Verification) for packed logs."""
import io

import pytest

from logpack.errors import CorruptContainerError
from logpack.outer_codec import GZIP_MAGIC, ZSTD_MAGIC
from logpack_safety import SAFE_TAG, LogPackSafety, fingerprint
from logpack_settings import LogPackSettings


def _seal(raw, **settings):
    out = io.BytesIO()
    report = LogPackSafety(LogPackSettings(**settings)).seal(io.BytesIO(raw), out)
    return report, out.getvalue()


def _unseal(blob):
    out = io.BytesIO()
    form = LogPackSafety.unseal(io.BytesIO(blob), out)
    return form, out.getvalue()


def test_canonical_log_keeps_delta_form(app_log):
    report, blob = _seal(app_log)
    assert report.form == "delta"
    assert report.verified is True
    assert report.restored_xxh64 == report.source_xxh64
    assert report.transform["mode"] == "delta"
    assert blob.startswith(ZSTD_MAGIC)
    assert _unseal(blob) == ("delta", app_log)


def test_non_canonical_padding_falls_back_to_safe(scenario_log):
    report, blob = _seal(scenario_log)
    assert report.form == "safe"
    assert report.verified is False
    assert report.fallback_reason
    assert blob.startswith(SAFE_TAG)
    assert _unseal(blob) == ("safe", scenario_log)


def test_verify_disabled_commits_delta_form(scenario_log):
    report, blob = _seal(scenario_log, verify=False)
    assert report.form == "delta"
    assert report.verified is None
    form, restored = _unseal(blob)
    assert form == "delta"
    assert restored.startswith(b"2024-01-01 00:00:00,000 100    INFO  start")


def test_gzip_codec(app_log):
    report, blob = _seal(app_log, codec="gzip")
    assert report.level == 9
    assert blob.startswith(GZIP_MAGIC)
    assert _unseal(blob)[1] == app_log


@pytest.mark.parametrize("raw", [b"", b"\x00\x01binary\xff", b"free text only\n"])
def test_passthrough_inputs_roundtrip(raw):
    report, blob = _seal(raw)
    assert report.verified is True
    assert _unseal(blob)[1] == raw


def test_fingerprint_restores_position():
    stream = io.BytesIO(b"abcdef")
    stream.seek(2)
    digest, size = fingerprint(stream)
    assert size == 4
    assert stream.tell() == 2
    assert digest == fingerprint(io.BytesIO(b"cdef"))[0]


@pytest.mark.parametrize("codec", ["zstd", "gzip"])
@pytest.mark.parametrize("cut", [0.5, -4], ids=["half", "checksum"])
def test_truncated_delta_form_is_rejected(codec, cut, app_log):
    report, blob = _seal(app_log, codec=codec)
    assert report.form == "delta"
    end = int(len(blob) * cut) if cut > 0 else len(blob) + cut
    out = io.BytesIO()
    with pytest.raises(CorruptContainerError):
        LogPackSafety.unseal(io.BytesIO(blob[:end]), out)
    assert out.getvalue() == b""


@pytest.mark.parametrize("codec", ["zstd", "gzip"])
def test_truncated_safe_form_is_rejected(codec, scenario_log):
    report, blob = _seal(scenario_log, codec=codec)
    assert report.form == "safe"
    with pytest.raises(CorruptContainerError):
        _unseal(blob[:-4])
