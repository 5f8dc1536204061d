"""Shared test helpers for the spanlight test suite."""

from __future__ import annotations

from spanlight.config import Config
from spanlight.diagnostic import Diagnostic, Label
from spanlight.source import Source


def diagnostic(text: str, *labels: Label, title: str = "t", name: str | None = None) -> Diagnostic:
    """Build a diagnostic over ``text`` with the given labels."""
    return Diagnostic(title, Source(text, name)).with_labels(list(labels))


def render(text: str, *labels: Label, compact: bool = False, **config) -> str:
    """Render uncolored, with any Config field overridden by keyword."""
    cfg = Config(color_enabled=False, **config)
    diag = diagnostic(text, *labels)
    return diag.render_compact(cfg) if compact else diag.render(cfg)


def body(rendered: str) -> list[str]:
    """Rows of a rendered expanded diagnostic after the title, blank and header."""
    return rendered.splitlines()[3:]
