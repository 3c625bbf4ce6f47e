"""Stream-level compress/decompress behaviour, including the fallback policy."""
import io

import pytest

from logpack.transform import MODE_BINARY, MODE_DELTA, MODE_VERBATIM, compress, decompress


def _compress(raw: bytes) -> bytes:
    out = io.BytesIO()
    compress(io.BytesIO(raw), out)
    return out.getvalue()


def _decompress(raw: bytes) -> bytes:
    out = io.BytesIO()
    decompress(io.BytesIO(raw), out)
    return out.getvalue()


def test_concrete_scenario(scenario_log):
    packed = _compress(scenario_log)
    assert packed == b"20240101000000000 100 1 start\n500 1 0 fail\n"
    assert _decompress(packed) == (
        b"2024-01-01 00:00:00,000 100    INFO  start\n"
        b"2024-01-01 00:00:00,500 101    ERROR fail\n"
    )


def test_fixture_wire_format(app_log):
    assert _compress(app_log).decode().splitlines() == [
        "20240301120000000 1000 1 Application starting",
        "15 1 1 Loading configuration from /etc/app/config.yml",
        "420 2 DEBUG Connection pool initialised size=8",
        "20240301120001730 3 WARN Slow response from upstream: 1302 ms",
        "1 4 0 Request failed",
        "System.InvalidOperationException: upstream returned 503",
        "   at App.Client.Send(Request r)",
        "   at App.Worker.Run()",
        "170 5 1 Retry scheduled",
        "20240301120009002 5000 1 Batch 5000 accepted",
        "0 -2 1 Late ack for batch 4998",
        "-502 1 1 Clock adjusted backwards",
    ]


def test_roundtrip_canonical_log(app_log):
    packed = _compress(app_log)
    assert len(packed) < len(app_log)
    assert _decompress(packed) == app_log


def test_roundtrip_keeps_crlf(app_log_crlf):
    packed = _compress(app_log_crlf)
    assert b"\r\n" in packed
    assert _decompress(packed) == app_log_crlf


def test_roundtrip_non_utf8_message():
    raw = b"2024-01-01 00:00:00,000 100    INFO  caf\xe9\n2024-01-01 00:00:00,001 101    INFO  \xff\xfe\n"
    assert _decompress(_compress(raw)) == raw


def test_missing_final_newline_is_added(scenario_log):
    packed = _compress(scenario_log.rstrip(b"\n"))
    assert packed.endswith(b"0 fail\n")


@pytest.mark.parametrize("fn", [compress, decompress])
def test_binary_passthrough(fn):
    raw = b"2024-01-01 00:00:00,000 100 INFO x\n\x00\x01\x02 payload"
    out = io.BytesIO()
    stats = fn(io.BytesIO(raw), out)
    assert stats.mode == MODE_BINARY
    assert out.getvalue() == raw


def test_first_line_fallback_copies_everything():
    raw = b"# header\r\n2024-01-01 00:00:00,000 100 INFO x\n"
    out = io.BytesIO()
    stats = compress(io.BytesIO(raw), out)
    assert stats.mode == MODE_VERBATIM
    assert out.getvalue() == raw


def test_decompress_relative_first_line_is_verbatim():
    raw = b"500 1 0 fail\n"
    assert _decompress(raw) == raw


@pytest.mark.parametrize("fn", [compress, decompress])
def test_empty_stream(fn):
    out = io.BytesIO()
    assert fn(io.BytesIO(b""), out).mode == MODE_VERBATIM
    assert out.getvalue() == b""


def test_reset_law_time_and_number():
    raw = (
        b"2024-01-01 00:00:00,000 100    INFO  a\n"
        b"2024-01-01 00:00:01,000 1100   INFO  b\n"
        b"2024-01-01 00:00:01,999 2099   INFO  c\n"
    )
    packed = _compress(raw)
    assert packed.splitlines() == [
        b"20240101000000000 100 1 a",
        b"20240101000001000 1100 1 b",
        b"999 999 1 c",
    ]
    assert _decompress(packed) == raw


def test_stats_and_streams_left_open(app_log):
    src, dst = io.BytesIO(app_log), io.BytesIO()
    stats = compress(src, dst)
    assert not src.closed and not dst.closed
    assert stats.mode == MODE_DELTA
    assert stats.lines == 12
    assert stats.records == 9
    assert stats.raw_lines == 3
    assert stats.time_resets == 2
    assert stats.number_resets == 1
    assert stats.to_dict()["newline"] == "\n"


def test_starts_from_current_position():
    prefix = b"junk that is skipped\n"
    src = io.BytesIO(prefix + b"not a record\n")
    src.seek(len(prefix))
    dst = io.BytesIO()
    compress(src, dst)
    assert dst.getvalue() == b"not a record\n"


def test_out_of_range_delta_counts_as_raw_line():
    packed = b"99991231235959999 1 1 last\n5 1 1 overflow\n0 1 1 fits\n"
    dst = io.BytesIO()
    stats = decompress(io.BytesIO(packed), dst)
    assert dst.getvalue().splitlines() == [
        b"9999-12-31 23:59:59,999 1      INFO  last",
        b"5 1 1 overflow",
        b"9999-12-31 23:59:59,999 2      INFO  fits",
    ]
    assert stats.lines == 3
    assert stats.records == 2
    assert stats.raw_lines == 1
