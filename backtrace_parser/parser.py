"""
Structural parser: drives the grammar rules into the document shape.

Document shape::

    backtrace  = header frame+ ws
    frame      = ws frame_index ws frame_pointer ws
                 (frame_no_symbols | symbol+)
    symbol     = ws symbol_marker symbol_name [ws symbol_location]

Two ways to consume a trace:

- ``BacktraceParser.parse()`` builds the whole ``Backtrace`` up front.
  It either returns a complete result or raises one ``ParseError``;
  nothing partial is ever returned.
- ``BacktraceParser.iter_frames()`` returns a ``FrameCursor``, a lazy
  single-pass cursor.  It yields ``FrameHandle`` objects whose
  ``symbols()`` read from the same shared scan position.  Handles are
  **not** restartable: once a frame's symbols have been consumed (or
  the cursor has moved past the frame) iterating them again yields
  nothing.  A mismatch is raised as ``ParseError`` at the point of
  iteration where it is reached, so frames yielded before it have
  already been seen by the caller.

``parse()`` is built on the cursor, so both share one implementation.
Repetition over frames and symbols is a loop, never recursion, so stack
depth does not grow with the size of the trace.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator, TypeVar

from backtrace_parser import grammar
from backtrace_parser.config import ParserConfig
from backtrace_parser.grammar import Cut, Mismatch, Scanner
from backtrace_parser.model import Backtrace, Frame, Symbol

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


class FrameHandle:
    """A frame yielded by ``FrameCursor``.

    ``index`` and ``pointer`` are parsed eagerly; the symbols are parsed
    on demand by ``symbols()`` from the cursor's shared scan position.
    """

    __slots__ = ("index", "pointer", "_cursor", "_pending", "_count")

    def __init__(
        self, cursor: FrameCursor, index: int, pointer: int, has_symbols: bool
    ) -> None:
        self.index = index
        self.pointer = pointer
        self._cursor = cursor
        self._pending = has_symbols
        self._count = 0

    def __repr__(self) -> str:
        return f"FrameHandle(index={self.index}, pointer={self.pointer:#x})"

    def symbols(self) -> Iterator[Symbol]:
        """Yield the remaining symbols of this frame.

        Advances the shared cursor.  Yields nothing once the frame's
        symbols have been consumed.
        """
        while self._pending:
            symbol = self._cursor._next_symbol(self)
            if symbol is None:
                return
            yield symbol

    def _drain(self) -> None:
        for _ in self.symbols():
            pass


class FrameCursor:
    """Lazy single-pass iterator over the frames of a backtrace.

    The header is checked on construction, so a document that does not
    start with ``stack backtrace:`` fails immediately.  Not thread-safe;
    one consumer per cursor.
    """

    def __init__(self, text: str, config: ParserConfig | None = None) -> None:
        self._config = config or ParserConfig()
        self._strict_lineno = self._config.lineno_overflow == "error"
        self._sc = Scanner(text)
        self._current: FrameHandle | None = None
        self._frames = 0
        self._done = False
        self._run(grammar.header)

    def __iter__(self) -> FrameCursor:
        return self

    def __next__(self) -> FrameHandle:
        if self._done:
            raise StopIteration
        if self._current is not None:
            self._current._drain()
            self._current = None

        sc = self._sc
        sc.skip_whitespace()
        if sc.at_end and (self._frames or self._config.allow_empty):
            self._done = True
            raise StopIteration

        index = self._run(grammar.frame_index)
        sc.skip_whitespace()
        pointer = self._run(grammar.frame_pointer)
        sc.skip_whitespace()

        mark = sc.checkpoint()
        try:
            grammar.frame_no_symbols(sc)
            has_symbols = False
        except Mismatch:
            sc.backtrack(mark)
            has_symbols = True

        handle = FrameHandle(self, index, pointer, has_symbols)
        if has_symbols:
            self._current = handle
        self._frames += 1
        return handle

    # -- Internals -------------------------------------------------------

    def _run(self, rule: Callable[[Scanner], _T]) -> _T:
        """Apply a required rule; a mismatch ends the parse."""
        try:
            return rule(self._sc)
        except (Mismatch, Cut):
            self._done = True
            self._current = None
            raise self._sc.error() from None

    def _next_symbol(self, handle: FrameHandle) -> Symbol | None:
        """Parse the next symbol of *handle*, or ``None`` when it has no more."""
        if handle is not self._current:
            handle._pending = False
            return None

        if handle._count == 0:
            # A frame that is not "<no info>"/"<unresolved>" needs one symbol
            symbol = self._run(self._symbol)
        else:
            symbol = self._run(self._optional_symbol)
            if symbol is None:
                handle._pending = False
                self._current = None
                return None

        handle._count += 1
        return symbol

    def _optional_symbol(self, sc: Scanner) -> Symbol | None:
        sc.skip_whitespace()
        mark = sc.checkpoint()
        try:
            return self._symbol(sc)
        except Mismatch:
            sc.backtrack(mark)
            return None

    def _symbol(self, sc: Scanner) -> Symbol:
        sc.skip_whitespace()
        grammar.symbol_marker(sc)
        name = grammar.symbol_name(sc)

        sc.skip_whitespace()
        mark = sc.checkpoint()
        try:
            filename, lineno = grammar.symbol_location(sc, self._strict_lineno)
        except Mismatch:
            sc.backtrack(mark)
            return Symbol(name=name)
        return Symbol(name=name, filename=filename, lineno=lineno)


class BacktraceParser:
    """Parser for ``stack backtrace:`` text.

    Holds nothing but its config; all scan state lives in the cursor
    created per call, so one instance can be reused across threads.
    """

    def __init__(self, config: ParserConfig | None = None) -> None:
        self.config = config or ParserConfig()

    def __repr__(self) -> str:
        return f"BacktraceParser(config={self.config!r})"

    def iter_frames(self, text: str) -> FrameCursor:
        """Return a lazy ``FrameCursor`` over *text*.

        Raises:
            ParseError: If *text* does not start with the header.  Later
                mismatches are raised while iterating.
        """
        return FrameCursor(text, self.config)

    def parse(self, text: str) -> Backtrace:
        """Parse a complete backtrace.

        Raises:
            ParseError: On the first structural mismatch anywhere in *text*.
        """
        frames = [
            Frame(handle.index, handle.pointer, tuple(handle.symbols()))
            for handle in self.iter_frames(text)
        ]
        logger.debug(
            "Parsed backtrace: %d frames, %d symbols",
            len(frames), sum(len(f.symbols) for f in frames),
        )
        return Backtrace(tuple(frames))
