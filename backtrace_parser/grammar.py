"""
Grammar rules for the ``stack backtrace:`` text format.

Each rule is a plain function that takes a ``Scanner``, consumes the
token it recognizes and returns its value, or raises ``Mismatch``.
A rule that raises may leave the scanner anywhere; callers that want
to try an alternative take ``scanner.checkpoint()`` first and
``backtrack()`` to it (ordered choice, first match wins).

Every failed match is recorded on the scanner, and backtracking out of
an abandoned alternative forgets what that alternative recorded past
its starting point.  When the whole parse fails, ``Scanner.error()``
reports the furthest remaining position together with everything that
was expected there.

Token rules (in the order they appear in a frame)::

    header            "stack backtrace:"            (offset 0 only)
    frame_index       [0-9]+ ":"                    -> u64
    frame_pointer     "0x" [0-9a-fA-F]+             -> u64
    frame_no_symbols  "-" ws ("<unresolved>" | "<no info>")
    symbol_marker     "-" ws
    symbol_name       "<unknown>" | [^\\n]+          -> Span | None
    symbol_location   "at" ws [^:]* ":" [0-9]+      -> (Span, u32 | None)

``ws`` is any run of whitespace, newlines included, and may be empty.
"""

from __future__ import annotations

import logging
import re
from typing import NoReturn

from backtrace_parser.exceptions import ParseError
from backtrace_parser.model import Span

logger = logging.getLogger(__name__)

HEADER = "stack backtrace:"
UNKNOWN_SYMBOL = "<unknown>"
NO_INFO = "<no info>"
UNRESOLVED = "<unresolved>"
LOCATION_KEYWORD = "at"

U64_MAX = 2**64 - 1
U32_MAX = 2**32 - 1

_WHITESPACE = re.compile(r"\s*")
_DECIMAL = re.compile(r"[0-9]+")
_HEX = re.compile(r"[0-9a-fA-F]+")
_LINE = re.compile(r"[^\n]+")
_PATH = re.compile(r"[^:]*")


class Mismatch(Exception):
    """A rule did not match at the current position.

    Internal control-flow signal; never escapes the parser.  The public
    error is built from the scanner's bookkeeping by ``Scanner.error()``.
    """


class Cut(Exception):
    """A rule matched far enough to rule out every alternative.

    Not a ``Mismatch``, so optional branches let it through and the
    parse ends at the recorded position.
    """


Checkpoint = tuple[int, int, tuple[str, ...]]


class Scanner:
    """Scan position over an input string plus furthest-failure tracking."""

    __slots__ = ("text", "pos", "_furthest", "_expected")

    def __init__(self, text: str, pos: int = 0) -> None:
        self.text = text
        self.pos = pos
        self._furthest = pos
        self._expected: list[str] = []

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.text)

    def checkpoint(self) -> Checkpoint:
        return self.pos, self._furthest, tuple(self._expected)

    def backtrack(self, checkpoint: Checkpoint) -> None:
        """Return to *checkpoint* after an alternative failed.

        Failures recorded past the checkpoint belong to the abandoned
        branch and are forgotten.  Failures at the checkpoint position
        itself are kept: the branch did not get past its first token, so
        its expectation joins whatever is tried next from there.
        """
        pos, furthest, expected = checkpoint
        at_mark = self._expected if self._furthest == pos else []
        self.pos = pos
        self._furthest = furthest
        self._expected = list(expected)
        for item in at_mark:
            self._record(item, pos)

    def fail(
        self, expected: str, pos: int | None = None, cut: bool = False
    ) -> NoReturn:
        """Record that *expected* was wanted at *pos* and raise.

        Raises ``Mismatch``, or ``Cut`` when *cut* is set.
        """
        if pos is None:
            pos = self.pos
        self._record(expected, pos)
        if cut:
            raise Cut(expected)
        raise Mismatch(expected)

    def error(self) -> ParseError:
        """Build the user-facing error for the furthest recorded failure."""
        return ParseError(self.text, self._furthest, tuple(self._expected))

    def _record(self, expected: str, pos: int) -> None:
        if pos > self._furthest:
            self._furthest = pos
            self._expected = [expected]
        elif pos == self._furthest and expected not in self._expected:
            self._expected.append(expected)

    # -- Primitives ------------------------------------------------------

    def skip_whitespace(self) -> None:
        self.pos = _WHITESPACE.match(self.text, self.pos).end()

    def literal(self, token: str) -> Span:
        if not self.text.startswith(token, self.pos):
            self.fail(repr(token))
        start = self.pos
        self.pos += len(token)
        return Span(self.text, start, self.pos)

    def pattern(self, regex: re.Pattern[str], expected: str) -> Span:
        m = regex.match(self.text, self.pos)
        if m is None:
            self.fail(expected)
        self.pos = m.end()
        return Span(self.text, m.start(), m.end())


def _bounded_int(digits: Span, base: int, limit: int) -> int | None:
    """Convert *digits*; ``None`` when the value exceeds *limit*.

    Over-long digit runs are rejected by length before conversion so
    arbitrarily long input never reaches ``int()``.
    """
    significant = str(digits).lstrip("0") or "0"
    if len(significant) > len(format(limit, "x" if base == 16 else "d")):
        return None
    value = int(significant, base)
    return value if value <= limit else None


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

def header(sc: Scanner) -> None:
    if sc.pos != 0:
        sc.fail(repr(HEADER))
    sc.literal(HEADER)


def frame_index(sc: Scanner) -> int:
    """Frame number followed by ``:``, e.g. ``12:``."""
    start = sc.pos
    value = _bounded_int(sc.pattern(_DECIMAL, "frame index"), 10, U64_MAX)
    if value is None:
        sc.fail("frame index within 64 bits", start)
    sc.literal(":")
    return value


def frame_pointer(sc: Scanner) -> int:
    """Instruction pointer, e.g. ``0x55e06f94d05d``."""
    sc.literal("0x")
    start = sc.pos
    value = _bounded_int(sc.pattern(_HEX, "hex digits"), 16, U64_MAX)
    if value is None:
        sc.fail("frame pointer within 64 bits", start)
    return value


def frame_no_symbols(sc: Scanner) -> Span:
    """``- <unresolved>`` or ``- <no info>``; returns the marker."""
    sc.literal("-")
    sc.skip_whitespace()
    mark = sc.checkpoint()
    for marker in (UNRESOLVED, NO_INFO):
        try:
            return sc.literal(marker)
        except Mismatch:
            sc.backtrack(mark)
    raise Mismatch("frame without symbols")


def symbol_marker(sc: Scanner) -> None:
    sc.literal("-")
    sc.skip_whitespace()


def symbol_name(sc: Scanner) -> Span | None:
    """``<unknown>`` (no name) or the rest of the line."""
    mark = sc.checkpoint()
    try:
        sc.literal(UNKNOWN_SYMBOL)
        return None
    except Mismatch:
        sc.backtrack(mark)
    return sc.pattern(_LINE, "symbol name")


def symbol_location(
    sc: Scanner, strict_lineno: bool = False
) -> tuple[Span, int | None]:
    """``at PATH:LINE``.

    A line number that does not fit in 32 bits becomes ``None`` while
    the path is kept.  With *strict_lineno* it raises ``Cut`` instead, so
    the parse fails at the digits even when the clause is optional.
    """
    sc.literal(LOCATION_KEYWORD)
    sc.skip_whitespace()
    path = sc.pattern(_PATH, "source path")
    sc.literal(":")
    start = sc.pos
    lineno = _bounded_int(sc.pattern(_DECIMAL, "line number"), 10, U32_MAX)
    if lineno is None:
        if strict_lineno:
            sc.fail("line number within 32 bits", start, cut=True)
        logger.debug(
            "Line number at offset %d overflows 32 bits; dropping it for %s",
            start, path,
        )
    return path, lineno

