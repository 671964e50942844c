"""
Data model returned by the backtrace parser.

- ``Span``: a borrowed view into the parsed input text.
- ``Symbol``: one resolved or partially resolved identifier in a frame.
- ``Frame``: one stack level (ordered symbols).
- ``Backtrace``: the whole document (ordered frames).

All text-bearing fields are ``Span`` objects: they keep a reference to
the caller's input string plus start/end offsets, and only build a new
``str`` when converted with ``str()``.  The input therefore stays alive
for as long as any ``Span`` derived from it does.

Every type here is frozen and compares by value, so parsing the same
input twice yields equal results.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePath
from typing import Iterator


class Span:
    """Read-only view of ``source[start:end]``.

    Compares and hashes like the ``str`` it covers, so
    ``symbol.name == "main"`` works without materializing anything
    beforehand.
    """

    __slots__ = ("source", "start", "end")

    def __init__(self, source: str, start: int, end: int) -> None:
        if not 0 <= start <= end <= len(source):
            raise ValueError(
                f"Invalid span [{start}:{end}] for input of length {len(source)}"
            )
        object.__setattr__(self, "source", source)
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __reduce__(self):
        return (Span, (self.source, self.start, self.end))

    def __str__(self) -> str:
        return self.source[self.start:self.end]

    def __repr__(self) -> str:
        return f"Span({str(self)!r}, start={self.start}, end={self.end})"

    def __len__(self) -> int:
        return self.end - self.start

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Span):
            if len(self) != len(other):
                return False
            return str(self) == str(other)
        if isinstance(other, str):
            return len(self) == len(other) and self.source.startswith(other, self.start)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(str(self))


@dataclass(frozen=True)
class Symbol:
    """A symbol entry within a frame.

    Attributes:
        name: Symbol name, or ``None`` when the trace printed ``<unknown>``.
        filename: Source path from the ``at PATH:LINE`` clause, if present.
        lineno: Line number from the same clause.  ``None`` when the clause
            is absent, or when the digits do not fit in 32 bits (in which
            case *filename* is still set).
    """

    name: Span | None = None
    filename: Span | None = None
    lineno: int | None = None

    @property
    def path(self) -> PurePath | None:
        """*filename* as a ``PurePath``, or ``None``."""
        if self.filename is None:
            return None
        return PurePath(str(self.filename))


@dataclass(frozen=True)
class Frame:
    """One stack level.

    ``symbols`` is empty exactly when the trace printed ``<no info>`` or
    ``<unresolved>`` for this frame.  ``index`` and ``pointer`` are the
    frame number and instruction pointer as printed; they are kept for
    reference only.
    """

    index: int
    pointer: int
    symbols: tuple[Symbol, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self.symbols)

    def __len__(self) -> int:
        return len(self.symbols)

    def __getitem__(self, i: int) -> Symbol:
        return self.symbols[i]


@dataclass(frozen=True)
class Backtrace:
    """A parsed ``stack backtrace:`` document: frames in text order."""

    frames: tuple[Frame, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[Frame]:
        return iter(self.frames)

    def __len__(self) -> int:
        return len(self.frames)

    def __getitem__(self, i: int) -> Frame:
        return self.frames[i]

    def iter_symbols(self) -> Iterator[Symbol]:
        """All symbols of all frames, flattened in text order."""
        for frame in self.frames:
            yield from frame.symbols
