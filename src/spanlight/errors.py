"""Errors raised while building or rendering diagnostics."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spanlight.source import SourceSpan


class SpanlightError(Exception):
    """Base class for every error raised by spanlight."""


class NoSourceAttached(SpanlightError):
    """Rendering was requested for a diagnostic without a source."""

    def __init__(self) -> None:
        super().__init__("diagnostic has no source attached")


class OffsetOutOfBounds(SpanlightError):
    """A byte offset lies past the end of the source text."""

    def __init__(self, offset: int, length: int) -> None:
        self.offset = offset
        self.length = length
        super().__init__(f"offset {offset} is out of bounds for source of length {length}")


class InvalidSpan(SpanlightError):
    """A label's span cannot be placed in the source."""

    def __init__(self, span: SourceSpan, label_index: int | None, reason: str) -> None:
        self.span = span
        self.label_index = label_index
        self.reason = reason
        where = f"label {label_index}" if label_index is not None else "span"
        super().__init__(f"{where} has invalid span {span.start}..{span.end}: {reason}")


class WriteFailure(SpanlightError):
    """The output stream rejected a rendered diagnostic."""

    def __init__(self, cause: OSError | ValueError) -> None:
        self.cause = cause
        super().__init__(f"failed to write diagnostic: {cause}")


class ConfigError(SpanlightError):
    """A configuration file holds a value of the wrong shape."""
