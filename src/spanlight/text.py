"""Display-width helpers for laying out source text in a terminal."""

from __future__ import annotations

from wcwidth import wcwidth

TAB = "\t"
ZERO_WIDTH_JOINER = "\u200d"
VARIATION_SELECTOR_16 = "\ufe0f"
# emoji modifiers that fuse with the preceding emoji
SKIN_TONES = frozenset("\U0001f3fb\U0001f3fc\U0001f3fd\U0001f3fe\U0001f3ff")


def char_width(ch: str, previous: str = "") -> int:
    """Return the cell width of ``ch`` given the character before it.

    Characters glued to a preceding character by a zero width joiner, skin
    tone modifiers and variation selectors take no cells of their own.
    Control characters are given zero width.
    """
    if ch in (ZERO_WIDTH_JOINER, VARIATION_SELECTOR_16) or ch in SKIN_TONES:
        return 0
    if previous == ZERO_WIDTH_JOINER:
        return 0
    return max(wcwidth(ch), 0)


def display_width(s: str, tab_width: int = 4, start_col: int = 0) -> int:
    """Return the number of cells ``s`` occupies when written at ``start_col``."""
    col = start_col
    previous = ""
    for ch in s:
        if ch == TAB:
            col = next_tab_stop(col, tab_width)
        else:
            col += char_width(ch, previous)
        previous = ch
    return col - start_col


def next_tab_stop(col: int, tab_width: int) -> int:
    if tab_width <= 0:
        return col
    return (col // tab_width + 1) * tab_width


def expand_tabs(s: str, tab_width: int = 4) -> str:
    """Replace tabs with spaces up to the next tab stop.

    Unlike ``str.expandtabs`` the stops are measured in display cells, so
    wide characters before a tab are accounted for.
    """
    if TAB not in s:
        return s
    out: list[str] = []
    col = 0
    previous = ""
    for ch in s:
        if ch == TAB:
            stop = next_tab_stop(col, tab_width)
            out.append(" " * (stop - col))
            col = stop
        else:
            out.append(ch)
            col += char_width(ch, previous)
        previous = ch
    return "".join(out)


def indent_width(s: str, tab_width: int = 4) -> int:
    """Return the width of the leading whitespace of ``s``."""
    stripped = s.lstrip(" \t")
    return display_width(s[: len(s) - len(stripped)], tab_width)


def cut_to_width(s: str, width: int) -> str:
    """Return the longest prefix of ``s`` that fits in ``width`` cells."""
    if width <= 0:
        return ""
    col = 0
    previous = ""
    for i, ch in enumerate(s):
        w = char_width(ch, previous)
        if col + w > width:
            return s[:i]
        col += w
        previous = ch
    return s


def wrap_to_width(s: str, width: int) -> list[str]:
    """Break ``s`` into lines of at most ``width`` cells.

    Lines are broken between words where possible; a word wider than
    ``width``, such as a run of CJK text, is split between characters.
    """
    lines: list[str] = []
    current = ""
    for word in s.split():
        if current and display_width(current) + 1 + display_width(word) <= width:
            current += " " + word
            continue
        if current:
            lines.append(current)
        current = word
        while display_width(current) > width:
            head = cut_to_width(current, width) or current[0]
            lines.append(head)
            current = current[len(head) :]
    if current:
        lines.append(current)
    return lines
