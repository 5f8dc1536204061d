"""Render labelled byte spans of source text as compiler-style diagnostics."""

from spanlight.config import Charset, Config, DefaultStyles, find_config, load_config
from spanlight.diagnostic import Diagnostic, DiagnosticSnapshot, Footnote, Label
from spanlight.errors import (
    ConfigError,
    InvalidSpan,
    NoSourceAttached,
    OffsetOutOfBounds,
    SpanlightError,
    WriteFailure,
)
from spanlight.source import Source, SourceSpan
from spanlight.style import Color, Style

__version__ = "0.1.0"

__all__ = [
    "Charset",
    "Color",
    "Config",
    "ConfigError",
    "DefaultStyles",
    "Diagnostic",
    "DiagnosticSnapshot",
    "Footnote",
    "InvalidSpan",
    "Label",
    "NoSourceAttached",
    "OffsetOutOfBounds",
    "Source",
    "SourceSpan",
    "SpanlightError",
    "Style",
    "WriteFailure",
    "find_config",
    "load_config",
]
