"""Final assembly of a rendered diagnostic into text."""

from __future__ import annotations

from typing import TYPE_CHECKING

from spanlight.layout import build_layout
from spanlight.rows import ExcerptRenderer, Row, RowKind, Segment
from spanlight.text import cut_to_width, display_width

if TYPE_CHECKING:
    from spanlight.config import Config
    from spanlight.diagnostic import DiagnosticSnapshot, Footnote
    from spanlight.layout import Layout


def fit_row(row: Row, max_width: int, ellipsis: str) -> Row:
    """Shorten ``row`` to ``max_width`` cells, ending it with ``ellipsis``.

    Caret runs are kept whole: when the cut would fall inside one, the row is
    cut just before that run instead.
    """
    if row.width <= max_width:
        return row
    limit = max(max_width - display_width(ellipsis), 0)
    fitted = Row(row.kind)
    col = 0
    for seg in row.segments:
        if col + seg.width <= limit:
            fitted.segments.append(seg)
            col += seg.width
            continue
        if not seg.caret:
            fitted.put(cut_to_width(seg.text, limit - col), seg.style)
        break
    return fitted.put(ellipsis)


def paint_row(row: Row, enabled: bool) -> str:
    return "".join(_paint(seg, enabled) for seg in row.segments)


def _paint(seg: Segment, enabled: bool) -> str:
    if seg.style is None:
        return seg.text
    return seg.style.paint(seg.text, enabled)


def assemble(rows: list[Row], config: Config) -> str:
    """Fit every row to ``config.max_width`` and join the rows into text."""
    lines = []
    for row in rows:
        if config.max_width is not None:
            row = fit_row(row, config.max_width, config.charset.ellipsis)
        lines.append(paint_row(row, config.color_enabled))
    return "\n".join(lines) + "\n"


def _title_rows(title: str) -> list[Row]:
    return [Row(RowKind.TITLE).put(line) for line in title.splitlines() or [""]]


def _header_row(layout: Layout, config: Config, *, compact: bool) -> Row:
    styles = config.styles
    name = layout.source.name or "unknown"
    row = Row(RowKind.HEADER)
    if not compact:
        row.put(" " * (layout.line_number_width + 1))
    row.put("@", styles.left_column).put(" ").put("[", styles.left_column)
    row.put(name, styles.source_name)
    return row.put("]:" if compact else "]", styles.left_column)


def _footnote_rows(footnotes: tuple[Footnote, ...], config: Config, indent: int) -> list[Row]:
    rows = []
    marker = config.charset.footnote
    for footnote in footnotes:
        lines = footnote.text.splitlines() or [""]
        row = Row(RowKind.FOOTNOTE).put(" " * indent)
        row.put(marker, config.styles.footnote_indicator).put(" ")
        rows.append(row.put(lines[0], footnote.style).rstrip())
        for extra in lines[1:]:
            cont = Row(RowKind.FOOTNOTE).put(" " * (indent + display_width(marker) + 1))
            rows.append(cont.put(extra, footnote.style).rstrip())
    return rows


def expanded_rows(diagnostic: DiagnosticSnapshot, config: Config) -> list[Row]:
    """Title, blank line, header and excerpt, then a blank line and footnotes."""
    layout = build_layout(diagnostic, config)
    rows = _title_rows(layout.title)
    rows.append(Row(RowKind.BLANK))
    rows.append(_header_row(layout, config, compact=False))
    rows.extend(ExcerptRenderer(layout, config).render())
    if diagnostic.footnotes:
        rows.append(Row(RowKind.BLANK))
        rows.extend(_footnote_rows(diagnostic.footnotes, config, layout.line_number_width + 1))
    return rows


def compact_rows(diagnostic: DiagnosticSnapshot, config: Config) -> list[Row]:
    """Title, header, fused excerpt, leftover label texts, footnotes."""
    layout = build_layout(diagnostic, config)
    renderer = ExcerptRenderer(layout, config, compact=True)
    rows = _title_rows(layout.title)
    rows.append(_header_row(layout, config, compact=True))
    rows.extend(renderer.render())
    rows.extend(renderer.items())
    rows.extend(_footnote_rows(diagnostic.footnotes, config, 0))
    return rows


def render(diagnostic: DiagnosticSnapshot, config: Config, *, compact: bool = False) -> str:
    rows = compact_rows(diagnostic, config) if compact else expanded_rows(diagnostic, config)
    return assemble(rows, config)
