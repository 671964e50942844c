"""
backtrace-parser: turn ``stack backtrace:`` text dumps into structured data.

Public API surface:

- ``parse(text, config=None)`` -- **recommended entry point**. Parses a
  complete trace and returns a ``Backtrace`` (frames -> symbols), or
  raises a single ``ParseError``.

- ``iter_frames(text, config=None)`` -- Lazy, single-pass alternative.
  Returns a ``FrameCursor``; see ``backtrace_parser.parser`` for its
  (non-restartable) iteration rules.

- ``parse_file(path, ...)`` -- Read a captured report from disk and
  ``parse()`` it.

- ``to_dataframe()`` / ``export_backtrace()`` -- Flatten a parsed trace
  into a table or write it as CSV / Parquet.

Example::

    import backtrace_parser

    bt = backtrace_parser.parse(report_text)
    for frame in bt.frames:
        for symbol in frame.symbols:
            print(symbol.name, symbol.filename, symbol.lineno)

Text fields are ``Span`` views into the string that was parsed; they
compare equal to plain strings and materialize one with ``str()``.
"""

from __future__ import annotations

import logging
from pathlib import Path

from backtrace_parser.config import (
    BacktraceConfig,
    OutputConfig,
    ParserConfig,
    load_config,
    save_config,
)
from backtrace_parser.exceptions import (
    BacktraceParserError,
    ConfigValidationError,
    ExportError,
    ParseError,
)
from backtrace_parser.export import export_backtrace, to_dataframe
from backtrace_parser.model import Backtrace, Frame, Span, Symbol
from backtrace_parser.parser import BacktraceParser, FrameCursor, FrameHandle

__all__ = [
    "parse",
    "iter_frames",
    "parse_file",
    "Backtrace",
    "Frame",
    "Symbol",
    "Span",
    "BacktraceParser",
    "FrameCursor",
    "FrameHandle",
    "BacktraceConfig",
    "ParserConfig",
    "OutputConfig",
    "load_config",
    "save_config",
    "to_dataframe",
    "export_backtrace",
    "BacktraceParserError",
    "ParseError",
    "ConfigValidationError",
    "ExportError",
]

logger = logging.getLogger(__name__)


def parse(text: str, config: ParserConfig | None = None) -> Backtrace:
    """Parse a ``stack backtrace:`` dump.

    Args:
        text: The full trace, starting with the ``stack backtrace:`` header.
        config: Optional parser settings (empty traces, line-number
            overflow).  Defaults to ``ParserConfig()``.

    Returns:
        A ``Backtrace`` with at least one frame (unless
        ``config.allow_empty`` is set).

    Raises:
        ParseError: If *text* deviates from the grammar anywhere.  No
            partial result is returned.
    """
    return BacktraceParser(config).parse(text)


def iter_frames(text: str, config: ParserConfig | None = None) -> FrameCursor:
    """Lazily iterate the frames of a ``stack backtrace:`` dump.

    Frame handles share one scan position and cannot be re-iterated once
    consumed.  Use ``parse()`` unless the trace is too large to hold as
    a tree.

    Raises:
        ParseError: Immediately if the header is missing; later
            mismatches are raised during iteration.
    """
    return BacktraceParser(config).iter_frames(text)


def parse_file(
    path: str | Path,
    encoding: str = "utf-8",
    config: ParserConfig | None = None,
) -> Backtrace:
    """Read *path* and parse its whole content as one backtrace.

    Args:
        path: Text file holding the captured trace.
        encoding: File encoding.
        config: Optional parser settings.

    Returns:
        The parsed ``Backtrace``.  Its spans reference the file content,
        which stays in memory for as long as the result does.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ParseError: If the content is not a valid backtrace.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Backtrace file not found: {path}")
    text = path.read_text(encoding=encoding)
    logger.info("parse_file() -- %s (%d chars)", path, len(text))
    backtrace = parse(text, config)
    logger.info("Parsed %d frames from %s", len(backtrace.frames), path)
    return backtrace
