"""
Tabular export for backtrace-parser.

Flattens a ``Backtrace`` into a pandas DataFrame (one row per symbol)
and writes it to disk as CSV or Parquet, for log analyzers and crash
dashboards that aggregate many traces.

Table schema:

- ``frame``: position of the frame in the trace (0-based).
- ``index``: frame number as printed.
- ``pointer``: instruction pointer as printed (``uint64``).
- ``symbol``: position of the symbol within its frame; null for frames
  printed as ``<no info>`` / ``<unresolved>``, which contribute a single
  row with all symbol fields null.
- ``name``, ``filename``: symbol text (nullable strings).
- ``lineno``: nullable ``UInt32``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import pandas as pd

from backtrace_parser.config import OutputConfig
from backtrace_parser.exceptions import ExportError
from backtrace_parser.model import Backtrace

logger = logging.getLogger(__name__)

_SUPPORTED_FORMATS = {"csv", "parquet"}

COLUMNS = ["frame", "index", "pointer", "symbol", "name", "filename", "lineno"]


def _text(span: object) -> str | None:
    return None if span is None else str(span)


def to_dataframe(backtrace: Backtrace) -> pd.DataFrame:
    """Flatten *backtrace* into one row per symbol.

    Args:
        backtrace: A parsed backtrace.

    Returns:
        DataFrame with the columns listed in the module docstring, in
        text order.
    """
    records: list[dict[str, object]] = []
    for pos, frame in enumerate(backtrace.frames):
        base = {"frame": pos, "index": frame.index, "pointer": frame.pointer}
        if not frame.symbols:
            records.append(
                {**base, "symbol": None, "name": None, "filename": None, "lineno": None}
            )
            continue
        for sym_pos, symbol in enumerate(frame.symbols):
            records.append({
                **base,
                "symbol": sym_pos,
                "name": _text(symbol.name),
                "filename": _text(symbol.filename),
                "lineno": symbol.lineno,
            })

    df = pd.DataFrame.from_records(records, columns=COLUMNS)
    return df.astype({
        "frame": "int64",
        "index": "uint64",
        "pointer": "uint64",
        "symbol": "Int64",
        "name": "string",
        "filename": "string",
        "lineno": "UInt32",
    })


def export_backtrace(
    backtrace: Backtrace,
    path: str | Path,
    output_format: Literal["csv", "parquet"] | None = None,
    config: OutputConfig | None = None,
) -> str:
    """Write *backtrace* as a table to *path*.

    The parent directory is created if it does not exist.  CSV files are
    written with ``utf-8-sig`` encoding (BOM) so they open cleanly in
    Excel.

    Args:
        backtrace: A parsed backtrace.
        path: Destination file (including extension).
        output_format: "csv" or "parquet".  Takes precedence over
            *config*.
        config: Output settings (``BacktraceConfig.output``); defaults to
            ``OutputConfig()``, i.e. Parquet.

    Returns:
        The path written, as a string.

    Raises:
        ExportError: If *output_format* is unsupported, or if the write fails.
    """
    if output_format is None:
        output_format = (config or OutputConfig()).output_format
    if output_format not in _SUPPORTED_FORMATS:
        raise ExportError(
            f"Unsupported output format: '{output_format}'. "
            f"Supported formats: {sorted(_SUPPORTED_FORMATS)}"
        )

    path = Path(path)
    df = to_dataframe(backtrace)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if output_format == "csv":
            df.to_csv(path, index=False, encoding="utf-8-sig")
        else:  # parquet
            df.to_parquet(path, index=False, engine="pyarrow")
    except Exception as exc:
        raise ExportError(
            f"Failed to write {path.name} as {output_format}: {exc}"
        ) from exc

    logger.info(
        "Exported backtrace -> %s (%d frames, %d rows)",
        path, len(backtrace.frames), len(df),
    )
    return str(path)
