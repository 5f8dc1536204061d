"""Source text, byte spans into it, and the offset-to-line index."""

from __future__ import annotations

import threading
from bisect import bisect_right
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from spanlight.errors import OffsetOutOfBounds
from spanlight.style import Style
from spanlight.text import display_width


@dataclass(frozen=True)
class SourceSpan:
    """A half-open range ``[start, end)`` of byte offsets into a source.

    Spans are plain values and are not checked on construction; a span that
    does not fit its source is reported when the diagnostic is rendered.
    """

    start: int
    end: int

    @classmethod
    def coerce(cls, value: SourceSpan | tuple[int, int] | range) -> SourceSpan:
        """Accept a span, a ``(start, end)`` pair or a step-1 ``range``."""
        if isinstance(value, SourceSpan):
            return value
        if isinstance(value, range):
            if value.step != 1:
                raise ValueError("span ranges must have a step of 1")
            return cls(value.start, value.stop)
        start, end = value
        return cls(int(start), int(end))

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def contains(self, offset: int) -> bool:
        return self.start <= offset < self.end

    def __str__(self) -> str:
        return f"{self.start}..{self.end}"


@dataclass(frozen=True)
class Location:
    """Where a byte offset falls: 0-based line, byte column and display column."""

    line: int
    byte_col: int
    col: int


class LineIndex:
    """Maps byte offsets of a UTF-8 buffer to lines.

    Built with one scan for newlines; lookups binary-search the line starts.
    """

    def __init__(self, data: bytes) -> None:
        self.data = data
        starts = [0]
        pos = data.find(b"\n")
        while pos != -1:
            starts.append(pos + 1)
            pos = data.find(b"\n", pos + 1)
        self.line_starts = starts

    def __len__(self) -> int:
        return len(self.line_starts)

    def check(self, offset: int) -> None:
        if offset < 0 or offset > len(self.data):
            raise OffsetOutOfBounds(offset, len(self.data))

    def snap(self, offset: int) -> int:
        """Move an offset inside a multi-byte character back to its first byte."""
        data = self.data
        while 0 < offset < len(data) and data[offset] & 0xC0 == 0x80:
            offset -= 1
        return offset

    def line_of(self, offset: int) -> int:
        """Return the 0-based line holding ``offset``.

        An offset right after a newline belongs to the following line.
        """
        self.check(offset)
        return bisect_right(self.line_starts, offset) - 1

    def line_bounds(self, line: int) -> tuple[int, int]:
        """Return the byte range of ``line`` without its line terminator."""
        start = self.line_starts[line]
        if line + 1 < len(self.line_starts):
            end = self.line_starts[line + 1] - 1
        else:
            end = len(self.data)
        if end > start and self.data[end - 1 : end] == b"\r":
            end -= 1
        return start, end

    def locate(self, offset: int, tab_width: int = 4) -> Location:
        self.check(offset)
        offset = self.snap(offset)
        line = bisect_right(self.line_starts, offset) - 1
        start, end = self.line_bounds(line)
        prefix = self.data[start : min(offset, end)].decode("utf-8")
        return Location(line, offset - start, display_width(prefix, tab_width))


class Source:
    """A named piece of source text that diagnostics point into.

    The line index is built on first use and then shared by every render of
    every diagnostic attached to this source.
    """

    __slots__ = ("_text", "_data", "_name", "_style", "_index", "_lock")

    def __init__(self, text: str, name: str | None = None, style: Style | None = None) -> None:
        self._text = text
        self._data = text.encode("utf-8")
        self._name = name
        self._style = style
        self._index: LineIndex | None = None
        self._lock = threading.Lock()

    @classmethod
    def from_path(cls, path: str | Path, name: str | None = None) -> Source:
        path = Path(path)
        return cls(path.read_text(encoding="utf-8"), name if name is not None else str(path))

    @property
    def text(self) -> str:
        return self._text

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def style(self) -> Style | None:
        return self._style

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Source(name={self._name!r}, length={len(self._data)})"

    @property
    def line_index(self) -> LineIndex:
        index = self._index
        if index is None:
            with self._lock:
                if self._index is None:
                    self._index = LineIndex(self._data)
                index = self._index
        return index

    @property
    def line_count(self) -> int:
        return len(self.line_index)

    def line(self, n: int) -> str:
        """Return the 0-based line ``n`` without its terminator."""
        start, end = self.line_index.line_bounds(n)
        return self._data[start:end].decode("utf-8")

    def line_span(self, n: int) -> SourceSpan:
        return SourceSpan(*self.line_index.line_bounds(n))

    def lines(self) -> Iterator[str]:
        for n in range(self.line_count):
            yield self.line(n)

    def locate(self, offset: int, tab_width: int = 4) -> Location:
        return self.line_index.locate(offset, tab_width)

    def span_text(self, span: SourceSpan) -> str:
        """Extract the text covered by a span."""
        index = self.line_index
        index.check(span.start)
        index.check(span.end)
        start, end = index.snap(span.start), index.snap(span.end)
        return self._data[start:end].decode("utf-8")
