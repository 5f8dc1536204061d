"""Turns a :class:`~spanlight.layout.Layout` into display rows.

The excerpt is drawn row by row: a gutter with line numbers, a margin of
leader slots for multi-line labels, then the source text or its
annotations. Rows stay structured (styled segments) until the output
assembler fits them to the terminal width and paints them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING

from spanlight.style import Style
from spanlight.text import display_width, wrap_to_width

if TYPE_CHECKING:
    from spanlight.config import Config
    from spanlight.layout import LabelLayout, Layout, LineLayout

# label text is not wrapped into columns narrower than this
MIN_WRAP_WIDTH = 12


class RowKind(Enum):
    TITLE = auto()
    BLANK = auto()
    HEADER = auto()
    SOURCE = auto()
    UNDERLINE = auto()
    TEXT = auto()
    CONNECTOR = auto()
    ELISION = auto()
    ITEM = auto()
    FOOTNOTE = auto()


@dataclass
class Segment:
    text: str
    style: Style | None = None
    # caret runs are never split when a row is shortened
    caret: bool = False

    @property
    def width(self) -> int:
        return display_width(self.text)


@dataclass
class Row:
    kind: RowKind
    segments: list[Segment] = field(default_factory=list)

    def put(self, text: str, style: Style | None = None, *, caret: bool = False) -> Row:
        if text:
            self.segments.append(Segment(text, style, caret))
        return self

    @property
    def width(self) -> int:
        return sum(seg.width for seg in self.segments)

    def plain(self) -> str:
        return "".join(seg.text for seg in self.segments)

    def rstrip(self) -> Row:
        """Drop trailing whitespace, which carries no information."""
        while self.segments:
            last = self.segments[-1]
            stripped = last.text.rstrip(" ")
            if stripped:
                last.text = stripped
                break
            self.segments.pop()
        return self


class ExcerptRenderer:
    """Draws the annotated source excerpt of one layout.

    ``compact`` fuses label text onto underline rows and sends whatever does
    not fit to a trailing list; otherwise every label gets rows of its own.
    """

    def __init__(self, layout: Layout, config: Config, *, compact: bool = False) -> None:
        self.layout = layout
        self.config = config
        self.compact = compact
        self.charset = config.charset
        self.styles = config.styles
        self.prefix_width = layout.line_number_width + 3 + 2 * layout.slot_count
        self.active: dict[int, LabelLayout] = {}
        self.deferred: list[LabelLayout] = []
        self.rows: list[Row] = []

    # ── styles and columns ────────────────────────────────────────

    def _single_style(self, lab: LabelLayout) -> Style:
        return lab.label.style or self.styles.singleline_indicator

    def _multi_style(self, lab: LabelLayout) -> Style:
        return lab.label.style or self.styles.multiline_indicator

    def _col(self, col: int) -> int:
        return max(col - self.layout.indent_trim, 0)

    def _underline_cols(self, lab: LabelLayout) -> tuple[int, int]:
        """Start column and caret count of a single-line label."""
        start = lab.span.start_col - self.layout.indent_trim
        end = start + lab.span.display_width
        return max(start, 0), max(end - max(start, 0), 1)

    def _fits(self, used: int, text: str) -> bool:
        max_width = self.config.max_width
        return max_width is None or used + 1 + display_width(text) <= max_width

    def _wrap(self, text: str, col: int) -> list[str]:
        available = None
        if self.config.max_width is not None:
            available = self.config.max_width - self.prefix_width - col
        pieces: list[str] = []
        for para in text.splitlines() or [""]:
            if available is None or available < MIN_WRAP_WIDTH or display_width(para) <= available:
                pieces.append(para)
            else:
                pieces.extend(wrap_to_width(para, available) or [""])
        return pieces

    # ── row prefixes ──────────────────────────────────────────────

    def _gutter(self, kind: RowKind, number: int | None = None) -> Row:
        width = self.layout.line_number_width
        style = self.styles.left_column
        row = Row(kind)
        if number is not None:
            row.put(f"{number + 1:>{width}}", style).put(" ")
            row.put(self.charset.vertical_bar, style)
        else:
            glyph = self.charset.elision if kind is RowKind.ELISION else self.charset.separator
            row.put(" " * (width + 1)).put(glyph, style)
        return row.put(" ")

    def _margin(self, row: Row, corner: LabelLayout | None = None, glyph: str = "") -> Row:
        """Draw the leader slots, furthest slot first.

        With ``corner`` the slot of that label gets ``glyph`` and a horizontal
        connector runs from it to the source area, crossing nearer leaders.
        """
        cs = self.charset
        count = self.layout.slot_count
        for pos in range(count):
            slot = count - 1 - pos
            held = self.active.get(slot)
            if corner is None or slot > corner.slot:
                if held is not None:
                    row.put(cs.leader, self._multi_style(held)).put(" ")
                else:
                    row.put("  ")
            elif slot == corner.slot:
                style = self._multi_style(corner)
                row.put(glyph, style).put(cs.horizontal_bar, style)
            else:
                style = self._multi_style(corner)
                if held is not None:
                    row.put(cs.crossing, self._multi_style(held))
                else:
                    row.put(cs.horizontal_bar, style)
                row.put(cs.horizontal_bar, style)
        return row

    def _annotation(self, kind: RowKind) -> Row:
        return self._margin(self._gutter(kind))

    def _emit(self, row: Row) -> None:
        self.rows.append(row.rstrip())

    # ── rows ──────────────────────────────────────────────────────

    def render(self) -> list[Row]:
        for i, group in enumerate(self.layout.groups):
            if i:
                self._emit(self._annotation(RowKind.ELISION))
            for line in group:
                self._line(line)
        return self.rows

    def _line(self, line: LineLayout) -> None:
        # leaders alive above this line: those passing it and those ending on it
        self.active = {lab.slot: lab for lab in (*line.passing(), *line.ending)}
        self._source_row(line)
        primaries = self._merged(line) if self.compact else {}
        for rung in range(line.rung_count):
            if self.compact:
                self._compact_rung(line, rung, primaries)
            else:
                self._expanded_rung(line, rung)
        for lab in line.starting:
            self._start_marker(lab)
        for lab in line.ending:
            self._end_marker(lab)

    def _source_row(self, line: LineLayout) -> None:
        row = self._margin(self._gutter(RowKind.SOURCE, line.number))
        text = line.text[self.layout.indent_trim :] if line.text.strip() else line.text
        row.put(text, self.layout.source.style or self.styles.source)
        self._emit(row)

    def _underline_row(self, labs: list[LabelLayout]) -> Row:
        """One caret run per label, left to right."""
        row = self._annotation(RowKind.UNDERLINE)
        col = 0
        for lab in labs:
            start, width = self._underline_cols(lab)
            row.put(" " * max(start - col, 0))
            row.put(self.charset.underliner * width, self._single_style(lab), caret=True)
            col = max(col, start + width)
        return row

    def _expanded_rung(self, line: LineLayout, rung: int) -> None:
        labs = line.on_rung(rung)
        row = self._underline_row(labs)
        self._emit(row)

        # text rows right to left; labels still waiting keep a bar at their column
        pending = [lab for lab in labs if lab.label.text]
        while pending:
            lab = pending.pop()
            start, _ = self._underline_cols(lab)
            bars = [(self._underline_cols(p)[0], self._single_style(p)) for p in pending]
            for piece in self._wrap(lab.label.text or "", start):
                text_row = self._annotation(RowKind.TEXT)
                col = 0
                for bar_col, bar_style in bars:
                    text_row.put(" " * max(bar_col - col, 0)).put(self.charset.pending, bar_style)
                    col = bar_col + 1
                text_row.put(" " * max(start - col, 0)).put(piece, self._single_style(lab))
                self._emit(text_row)

    def _merged(self, line: LineLayout) -> dict[int, list[LabelLayout]]:
        """Group labels underlining exactly the same columns, keyed by the first one."""
        groups: dict[tuple[int, int], list[LabelLayout]] = {}
        for lab, _ in sorted(line.singles, key=lambda item: item[0].index):
            groups.setdefault(self._underline_cols(lab), []).append(lab)
        return {members[0].index: members for members in groups.values()}

    def _compact_rung(
        self, line: LineLayout, rung: int, primaries: dict[int, list[LabelLayout]]
    ) -> None:
        labs = [lab for lab in line.on_rung(rung) if lab.index in primaries]
        if not labs:
            return
        row = self._underline_row(labs)

        last = labs[-1]
        for lab in labs[:-1]:
            self._defer(primaries[lab.index])
        members = primaries[last.index]
        text = ", ".join(m.label.text for m in members if m.label.text)
        if text and "\n" not in text and self._fits(row.width, text):
            row.put(" ").put(text, self._single_style(last))
        else:
            self._defer(members)
        self._emit(row)

    def _defer(self, labs: list[LabelLayout]) -> None:
        self.deferred.extend(lab for lab in labs if lab.label.text)

    def _start_marker(self, lab: LabelLayout) -> None:
        style = self._multi_style(lab)
        row = self._margin(self._gutter(RowKind.CONNECTOR), lab, self.charset.top_corner)
        row.put(self.charset.horizontal_bar * self._col(lab.span.start_col), style)
        row.put(self.charset.underliner, style, caret=True)
        self._emit(row)
        self.active[lab.slot] = lab

    def _end_marker(self, lab: LabelLayout) -> None:
        style = self._multi_style(lab)
        col = self._col(lab.span.marker_col)
        row = self._margin(self._gutter(RowKind.CONNECTOR), lab, self.charset.bottom_corner)
        row.put(self.charset.horizontal_bar * col, style)
        row.put(self.charset.underliner, style, caret=True)
        del self.active[lab.slot]

        text = lab.label.text
        if not text:
            self._emit(row)
            return
        if self.compact:
            if "\n" not in text and self._fits(row.width, text):
                row.put(" ").put(text, style)
            else:
                self._defer([lab])
            self._emit(row)
            return

        pieces = self._wrap(text, col + 2)
        row.put(" ").put(pieces[0], style)
        self._emit(row)
        for piece in pieces[1:]:
            cont = self._annotation(RowKind.TEXT)
            cont.put(" " * (col + 2)).put(piece, style)
            self._emit(cont)

    def items(self) -> list[Row]:
        """Trailing list of label texts that found no place in the excerpt."""
        rows = []
        left = self.styles.left_column
        for lab in sorted(self.deferred, key=lambda lab: lab.index):
            span = lab.span
            if span.is_multiline:
                where = f"lines {span.start_line + 1}-{span.end_line + 1}"
            else:
                where = f"line {span.start_line + 1}"
            lines = (lab.label.text or "").splitlines()
            row = Row(RowKind.ITEM).put(self.charset.vertical_bar, left).put(" ")
            row.put("[", left).put(where, self.styles.source).put("]: ", left)
            row.put(lines[0] if lines else "")
            rows.append(row.rstrip())
            indent = 2 + len(where) + 4
            for extra in lines[1:]:
                rows.append(Row(RowKind.ITEM).put(" " * indent).put(extra).rstrip())
        return rows
