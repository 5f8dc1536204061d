"""Layout of labels onto the source lines of a diagnostic.

Resolves byte spans to line/column positions, decides which lines are shown,
stacks colliding underlines onto rungs and gives every multi-line label its
own leader slot. Everything here is computed per render call; the result is
consumed by :mod:`spanlight.rows`.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from spanlight.errors import InvalidSpan, NoSourceAttached, OffsetOutOfBounds
from spanlight.source import LineIndex, Source, SourceSpan
from spanlight.text import expand_tabs, indent_width

if TYPE_CHECKING:
    from spanlight.config import Config
    from spanlight.diagnostic import DiagnosticSnapshot, Label

logger = logging.getLogger(__name__)

# Rung of a multi-line label on a line it only passes through. Such labels
# are drawn as a leader glyph in their slot, never as an underline.
THROUGH_RUNG = -1


@dataclass(frozen=True)
class ResolvedSpan:
    """A span as 0-based lines and display columns; ``end_col`` is exclusive."""

    start_line: int
    start_col: int
    end_line: int
    end_col: int

    @property
    def is_multiline(self) -> bool:
        return self.start_line != self.end_line

    @property
    def display_width(self) -> int:
        """Cells underlined on a single line; empty spans still get one caret."""
        if self.is_multiline:
            return 0
        return max(self.end_col - self.start_col, 1)

    @property
    def marker_col(self) -> int:
        """Column of the last covered cell, where an end marker points."""
        return max(self.end_col - 1, 0)


def resolve_span(span: SourceSpan, index: LineIndex, tab_width: int = 4) -> ResolvedSpan:
    """Resolve a byte span against a line index.

    A non-empty span ending exactly at the start of a line is treated as
    ending at the end of the line before it. Raises InvalidSpan when
    ``start > end`` and OffsetOutOfBounds when an offset is past the text.
    """
    if span.start > span.end:
        raise InvalidSpan(span, None, "start is after end")
    start = index.locate(span.start, tab_width)
    end_offset = span.end
    if span.end > span.start:
        end_line = index.line_of(span.end)
        if end_line > start.line and index.line_starts[end_line] == span.end:
            _, end_offset = index.line_bounds(end_line - 1)
    end = index.locate(end_offset, tab_width)
    if end.line == start.line and end.col < start.col:
        # the span ended inside a multi-byte character it also starts in
        return ResolvedSpan(start.line, start.col, start.line, start.col)
    return ResolvedSpan(start.line, start.col, end.line, end.col)


def _overlaps(a: tuple[int, int], b: tuple[int, int]) -> bool:
    return a[0] < b[1] and b[0] < a[1]


def assign_rungs(intervals: Sequence[tuple[int, int]]) -> list[int]:
    """Stack half-open column intervals so overlapping ones never share a rung.

    Narrow intervals are placed first and take the lowest free rung, so inner
    annotations sit nearest the source line. Ties go to the leftmost interval,
    then to the earlier one in ``intervals``.
    """
    order = sorted(
        range(len(intervals)),
        key=lambda i: (intervals[i][1] - intervals[i][0], intervals[i][0], i),
    )
    rungs: list[list[tuple[int, int]]] = []
    result = [0] * len(intervals)
    for i in order:
        interval = intervals[i]
        for rung, placed in enumerate(rungs):
            if not any(_overlaps(interval, other) for other in placed):
                placed.append(interval)
                result[i] = rung
                break
        else:
            result[i] = len(rungs)
            rungs.append([interval])
    return result


def schedule_line(
    singles: Sequence[LabelLayout], through: Sequence[LabelLayout] = ()
) -> dict[int, int]:
    """Map label indexes to rungs for one source line.

    Single-line labels are stacked with :func:`assign_rungs`; multi-line
    labels passing through the line get :data:`THROUGH_RUNG`.
    """
    rungs = assign_rungs(
        [(lab.span.start_col, lab.span.start_col + lab.span.display_width) for lab in singles]
    )
    schedule = {lab.index: rung for lab, rung in zip(singles, rungs)}
    schedule.update((lab.index, THROUGH_RUNG) for lab in through)
    return schedule


def assign_leader_slots(line_ranges: Sequence[tuple[int, int]]) -> list[int]:
    """Give each inclusive ``(start_line, end_line)`` range a leader slot.

    Ranges sharing any line get distinct slots. Ranges are registered by start
    line, then by position in ``line_ranges``; each takes the lowest slot free
    at its start, so a later range sits further from the source text.
    """
    order = sorted(range(len(line_ranges)), key=lambda i: (line_ranges[i][0], i))
    slot_ends: list[int] = []
    result = [0] * len(line_ranges)
    for i in order:
        start, end = line_ranges[i]
        for slot, busy_until in enumerate(slot_ends):
            if busy_until < start:
                slot_ends[slot] = end
                result[i] = slot
                break
        else:
            result[i] = len(slot_ends)
            slot_ends.append(end)
    return result


def group_lines(
    line_ranges: Sequence[tuple[int, int]],
    line_count: int,
    context: int = 0,
    merge_gap: int = 1,
) -> list[tuple[int, int]]:
    """Merge the inclusive line ranges to display into sorted, disjoint groups.

    Each range is widened by ``context`` lines. Groups separated by at most
    ``merge_gap`` hidden lines are joined and the gap is shown.
    """
    last = line_count - 1
    widened = sorted(
        (max(start - context, 0), min(end + context, last)) for start, end in line_ranges
    )
    groups: list[tuple[int, int]] = []
    for start, end in widened:
        if groups and start - groups[-1][1] - 1 <= merge_gap:
            prev_start, prev_end = groups[-1]
            groups[-1] = (prev_start, max(prev_end, end))
        else:
            groups.append((start, end))
    return groups


@dataclass
class LabelLayout:
    """A label together with where it landed."""

    index: int
    label: Label
    span: ResolvedSpan
    slot: int | None = None


@dataclass
class LineLayout:
    """One displayed source line and the labels touching it."""

    number: int
    text: str
    singles: list[tuple[LabelLayout, int]] = field(default_factory=list)
    starting: list[LabelLayout] = field(default_factory=list)
    ending: list[LabelLayout] = field(default_factory=list)
    through: list[LabelLayout] = field(default_factory=list)
    # label index to rung, as given by schedule_line
    schedule: dict[int, int] = field(default_factory=dict)

    @property
    def rung_count(self) -> int:
        return max((rung for _, rung in self.singles), default=-1) + 1

    def on_rung(self, rung: int) -> list[LabelLayout]:
        """Labels underlined on ``rung``, left to right."""
        found = [lab for lab, r in self.singles if r == rung]
        return sorted(found, key=lambda lab: (lab.span.start_col, lab.index))

    def passing(self) -> list[LabelLayout]:
        """Multi-line labels whose leader runs past this line."""
        return [lab for lab in self.through if self.schedule.get(lab.index) == THROUGH_RUNG]


@dataclass
class Layout:
    """Everything the row renderers need, computed once per render."""

    title: str
    source: Source
    labels: list[LabelLayout]
    groups: list[list[LineLayout]]
    slot_count: int
    line_number_width: int
    indent_trim: int = 0

    def lines(self) -> list[LineLayout]:
        return [line for group in self.groups for line in group]


def _resolve_labels(labels: Sequence[Label], source: Source, tab_width: int) -> list[LabelLayout]:
    index = source.line_index
    resolved = []
    for i, label in enumerate(labels):
        try:
            span = resolve_span(label.span, index, tab_width)
        except OffsetOutOfBounds as e:
            raise InvalidSpan(label.span, i, str(e)) from e
        except InvalidSpan as e:
            raise InvalidSpan(label.span, i, e.reason) from e
        resolved.append(LabelLayout(i, label, span))
    return resolved


def build_layout(diagnostic: DiagnosticSnapshot, config: Config) -> Layout:
    """Lay out every label of ``diagnostic``.

    Raises NoSourceAttached without a source and InvalidSpan when any label
    does not fit the source; nothing is rendered in either case.
    """
    source = diagnostic.source
    if source is None:
        raise NoSourceAttached()

    labels = _resolve_labels(diagnostic.labels, source, config.tab_width)

    multiline = [lab for lab in labels if lab.span.is_multiline]
    slots = assign_leader_slots([(lab.span.start_line, lab.span.end_line) for lab in multiline])
    for lab, slot in zip(multiline, slots):
        lab.slot = slot

    wanted: list[tuple[int, int]] = []
    by_line: dict[int, list[LabelLayout]] = defaultdict(list)
    for lab in labels:
        span = lab.span
        wanted.append((span.start_line, span.end_line))
        if not span.is_multiline:
            by_line[span.start_line].append(lab)

    ranges = group_lines(wanted, source.line_count, config.context_lines, config.merge_gap)

    groups: list[list[LineLayout]] = []
    for first, last in ranges:
        group = []
        for number in range(first, last + 1):
            line = LineLayout(number, expand_tabs(source.line(number), config.tab_width))
            for lab in multiline:
                if lab.span.start_line == number:
                    line.starting.append(lab)
                elif lab.span.end_line == number:
                    line.ending.append(lab)
                elif lab.span.start_line < number < lab.span.end_line:
                    line.through.append(lab)
            line.starting.sort(key=lambda lab: lab.slot)
            line.ending.sort(key=lambda lab: lab.slot)
            singles = by_line.get(number, [])
            line.schedule = schedule_line(singles, line.through)
            line.singles = [(lab, line.schedule[lab.index]) for lab in singles]
            group.append(line)
        groups.append(group)

    indent_trim = 0
    if config.trim_indent:
        indents = [
            indent_width(line.text) for group in groups for line in group if line.text.strip()
        ]
        indent_trim = min(indents, default=0)

    last_line = ranges[-1][1] if ranges else 0
    layout = Layout(
        title=diagnostic.title,
        source=source,
        labels=labels,
        groups=groups,
        slot_count=max(slots, default=-1) + 1,
        line_number_width=len(str(last_line + 1)),
        indent_trim=indent_trim,
    )
    logger.debug(
        "laid out %d labels in %d line groups, %d leader slots",
        len(labels),
        len(groups),
        layout.slot_count,
    )
    return layout
