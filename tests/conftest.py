"""tests/conftest.py — Shared fixtures for the LogPack test suite."""
import sys
from pathlib import Path

import pytest

# Add api/ and tools/ to sys.path for module imports
REPO_ROOT = Path(__file__).resolve().parent.parent
for _p in (REPO_ROOT / "tools", REPO_ROOT / "api"):
    if str(_p) not in sys.path:
        sys.path.insert(0, str(_p))

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture
def fixtures_dir():
    return FIXTURES_DIR


@pytest.fixture
def app_log():
    return (FIXTURES_DIR / "app.log").read_bytes()


@pytest.fixture
def app_log_crlf(app_log):
    return app_log.replace(b"\n", b"\r\n")


@pytest.fixture
def scenario_log():
    return (
        b"2024-01-01 00:00:00,000 100 INFO start\n"
        b"2024-01-01 00:00:00,500 101 ERROR fail\n"
    )
