"""
Configuration models and YAML I/O for backtrace-parser.

Key models:
- BacktraceConfig: Top-level config (parser + output).
- ParserConfig: Knobs for the two grammar decisions callers may need to
  change (empty traces, line-number overflow).
- OutputConfig: Tabular export settings.

Key functions:
- load_config(path) -> BacktraceConfig: Load and validate from YAML.
- save_config(config, path): Serialize to YAML.

Example file::

    parser:
      allow_empty: false
      lineno_overflow: drop
    output:
      output_format: parquet
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

from backtrace_parser.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)


class ParserConfig(BaseModel):
    """Parser behaviour.

    The defaults implement the reference grammar: at least one frame
    after the header, and an out-of-range line number only drops that
    field.
    """

    allow_empty: bool = Field(
        False,
        description="If True, a header with no frames parses to an empty Backtrace",
    )
    lineno_overflow: Literal["drop", "error"] = Field(
        "drop",
        description=(
            "'drop' sets lineno to None when it does not fit in 32 bits; "
            "'error' fails the whole parse instead"
        ),
    )


class OutputConfig(BaseModel):
    """Output settings, read by ``export_backtrace(config=...)``."""

    output_format: Literal["csv", "parquet"] = Field(
        "parquet", description="Format used by export_backtrace()"
    )


class BacktraceConfig(BaseModel):
    """Top-level configuration for backtrace-parser.

    Maps 1:1 to the YAML config file.
    """

    parser: ParserConfig = Field(default_factory=ParserConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


def load_config(path: str | Path) -> BacktraceConfig:
    """Load and validate a YAML config into a BacktraceConfig model.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ConfigValidationError: If the file is empty or not a mapping.
        pydantic.ValidationError: If the YAML content fails schema validation.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if raw is None:
        raise ConfigValidationError(f"Config file is empty: {path}")
    if not isinstance(raw, dict):
        raise ConfigValidationError(
            f"Config file must contain a mapping, got {type(raw).__name__}: {path}"
        )
    config = BacktraceConfig.model_validate(raw)
    logger.info(
        "Loaded config from %s (lineno_overflow=%s, output_format=%s)",
        path, config.parser.lineno_overflow, config.output.output_format,
    )
    return config


def save_config(config: BacktraceConfig, path: str | Path) -> None:
    """Serialize a BacktraceConfig to YAML.

    Writes a human-readable YAML file with a header comment.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json")
    with open(path, "w", encoding="utf-8") as f:
        f.write("# backtrace-parser settings (parser, output); read by load_config()\n")
        yaml.dump(
            data,
            f,
            allow_unicode=True,
            default_flow_style=False,
            sort_keys=False,
        )
    logger.info("Saved config to %s", path)
