"""Diagnostics: a title, a source, labels pointing into it and footnotes."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import IO

import click

from spanlight import output
from spanlight.config import Config
from spanlight.errors import WriteFailure
from spanlight.source import Source, SourceSpan
from spanlight.style import Style

SpanLike = SourceSpan | tuple[int, int] | range


@dataclass(frozen=True)
class Label:
    """Points to a span of the diagnostic's source, optionally with a message.

    A label without a style uses the indicator style of the render config.
    """

    span: SourceSpan
    text: str | None = None
    style: Style | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "span", SourceSpan.coerce(self.span))

    @classmethod
    def styled(cls, span: SpanLike, text: str | None, style: Style) -> Label:
        return cls(span, text, style)


@dataclass(frozen=True)
class Footnote:
    """A message shown after the source excerpt."""

    text: str
    style: Style | None = None


@dataclass(frozen=True)
class DiagnosticSnapshot:
    """An immutable copy of a diagnostic, as seen by the renderer."""

    title: str
    source: Source | None
    labels: tuple[Label, ...]
    footnotes: tuple[Footnote, ...]


@dataclass
class Diagnostic:
    """A diagnostic under construction.

    Labels and footnotes are accumulated with the ``add_*`` methods or the
    chaining ``with_*`` ones. Every render works on a :meth:`snapshot`, so a
    rendered diagnostic can keep being extended afterwards; mutating it from
    another thread while a render is running is not supported.
    """

    title: str
    source: Source | None = None
    labels: list[Label] = field(default_factory=list)
    footnotes: list[Footnote] = field(default_factory=list)

    def with_source(self, source: Source) -> Diagnostic:
        self.source = source
        return self

    def add_label(self, label: Label) -> None:
        self.labels.append(label)

    def with_label(self, label: Label) -> Diagnostic:
        self.add_label(label)
        return self

    def with_labels(self, labels: list[Label]) -> Diagnostic:
        """Replace the labels of this diagnostic."""
        self.labels = list(labels)
        return self

    def add_footnote(self, footnote: Footnote | str) -> None:
        if isinstance(footnote, str):
            footnote = Footnote(footnote)
        self.footnotes.append(footnote)

    def with_footnote(self, footnote: Footnote | str) -> Diagnostic:
        self.add_footnote(footnote)
        return self

    def snapshot(self) -> DiagnosticSnapshot:
        return DiagnosticSnapshot(
            self.title, self.source, tuple(self.labels), tuple(self.footnotes)
        )

    def render(self, config: Config | None = None) -> str:
        """Render in expanded mode. Does no I/O."""
        return output.render(self.snapshot(), config or Config())

    def render_compact(self, config: Config | None = None) -> str:
        """Render in compact mode. Does no I/O."""
        return output.render(self.snapshot(), config or Config(), compact=True)

    def print(self, config: Config | None = None, file: IO[str] | None = None) -> None:
        """Render in expanded mode and write to ``file`` (stderr by default)."""
        config = config or Config()
        _write(self.render(config), config, file)

    def print_compact(self, config: Config | None = None, file: IO[str] | None = None) -> None:
        config = config or Config()
        _write(self.render_compact(config), config, file)

    def emit(self, config: Config | None = None, file: IO[str] | None = None) -> None:
        """Print in the mode picked by ``config.compact_by_default``."""
        config = config or Config()
        if config.compact_by_default:
            self.print_compact(config, file)
        else:
            self.print(config, file)


def _write(text: str, config: Config, file: IO[str] | None) -> None:
    try:
        click.echo(text, file=file or sys.stderr, nl=False, color=config.color_enabled)
    except (OSError, ValueError) as e:
        # closed streams raise ValueError
        raise WriteFailure(e) from e
