"""
Shared test fixtures and path constants for backtrace-parser tests.

Captured trace files live in ``tests/fixtures/``.  If fixture files move
or new ones are added, update this file.
"""

from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Fixture file paths -- edit here if files move or new ones are added
# ---------------------------------------------------------------------------
FIXTURE_DIR = Path(__file__).resolve().parent / "fixtures"

FULL_TRACE = FIXTURE_DIR / "full.txt"
NO_INFO_TRACE = FIXTURE_DIR / "no-info.txt"
UNRESOLVED_TRACE = FIXTURE_DIR / "unresolved.txt"


@pytest.fixture()
def full_trace_path() -> Path:
    return FULL_TRACE


@pytest.fixture()
def full_trace_text() -> str:
    return FULL_TRACE.read_text(encoding="utf-8")


@pytest.fixture()
def no_info_trace_path() -> Path:
    return NO_INFO_TRACE


@pytest.fixture()
def unresolved_trace_path() -> Path:
    return UNRESOLVED_TRACE


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------
def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (runs against captured trace fixtures)",
    )
