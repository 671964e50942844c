"""
Custom exception hierarchy for backtrace-parser.

Callers can catch ``BacktraceParserError`` for anything raised by the
library, or a specific subclass:

- ``ParseError``: the input text does not match the backtrace grammar.
- ``ConfigValidationError``: a YAML config file is empty or unusable.
- ``ExportError``: the tabular export could not be written.
"""

from __future__ import annotations

# Characters of unexpected input quoted in a ParseError message
_EXCERPT_LEN = 20


class BacktraceParserError(Exception):
    """Base exception for all backtrace-parser errors."""


class ParseError(BacktraceParserError):
    """Raised when the input deviates from the backtrace grammar.

    Parsing is all-or-nothing: the first structural mismatch aborts the
    whole document and this is the only thing the caller gets back.

    Attributes:
        text: The input that failed to parse.
        position: Character offset into *text* where matching failed.
        expected: Descriptions of the tokens that would have been accepted
            at *position*, in the order the grammar tried them.
        line: 1-based line number of *position*.
        column: 1-based column of *position* within its line.
    """

    def __init__(self, text: str, position: int, expected: tuple[str, ...]) -> None:
        self.text = text
        self.position = position
        self.expected = tuple(expected)
        self.line = text.count("\n", 0, position) + 1
        self.column = position - (text.rfind("\n", 0, position) + 1) + 1
        super().__init__(self._render())

    @property
    def unexpected(self) -> str:
        """The input found at *position* (truncated), or ``"end of input"``."""
        rest = self.text[self.position:self.position + _EXCERPT_LEN]
        if not rest:
            return "end of input"
        rest = rest.split("\n", 1)[0]
        return repr(rest) if rest else repr("\n")

    def _render(self) -> str:
        if self.expected:
            wanted = " or ".join(self.expected)
        else:
            wanted = "valid backtrace text"
        return (
            f"Expected {wanted} at line {self.line}, column {self.column} "
            f"(offset {self.position}); found {self.unexpected}"
        )

    def __reduce__(self):
        return (type(self), (self.text, self.position, self.expected))


class ConfigValidationError(BacktraceParserError):
    """Raised when a backtrace-parser YAML config cannot be used.

    Schema violations surface as ``pydantic.ValidationError`` instead;
    this covers problems the schema cannot see, such as an empty file.
    """


class ExportError(BacktraceParserError):
    """Raised when the exporter fails to write output files.

    For example, permission errors, disk full, or unsupported format.
    """
