"""
Unit tests for the exception hierarchy (backtrace_parser.exceptions).
"""

from __future__ import annotations

import pickle

from backtrace_parser.exceptions import (
    BacktraceParserError,
    ConfigValidationError,
    ExportError,
    ParseError,
)


class TestHierarchy:

    def test_all_derive_from_base(self):
        for exc in (ParseError, ConfigValidationError, ExportError):
            assert issubclass(exc, BacktraceParserError)


class TestParseError:

    def test_line_and_column(self):
        text = "stack backtrace:\n  0: 0xZZ\n"
        err = ParseError(text, text.index("ZZ"), ("hex digits",))
        assert err.line == 2
        assert err.column == 8

    def test_message(self):
        text = "stack backtrace:\n  0: 0xZZ\n"
        err = ParseError(text, text.index("ZZ"), ("hex digits",))
        assert str(err) == (
            "Expected hex digits at line 2, column 8 (offset 24); found 'ZZ'"
        )

    def test_multiple_expectations_joined(self):
        err = ParseError("x", 0, ("'-'", "frame index"))
        assert str(err).startswith("Expected '-' or frame index at line 1")

    def test_end_of_input(self):
        err = ParseError("abc", 3, ("'at'",))
        assert err.unexpected == "end of input"

    def test_unexpected_newline(self):
        err = ParseError("a\nb", 1, ("'-'",))
        assert err.unexpected == repr("\n")

    def test_unexpected_truncated(self):
        err = ParseError("x" * 100, 0, ("frame index",))
        assert err.unexpected == repr("x" * 20)

    def test_picklable(self):
        err = ParseError("abc", 1, ("'-'",))
        clone = pickle.loads(pickle.dumps(err))
        assert clone.position == 1
        assert clone.expected == ("'-'",)
        assert str(clone) == str(err)
