"""Terminal styles: a foreground color plus a few modifiers."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum


class Color(Enum):
    BLACK = 30
    RED = 31
    GREEN = 32
    YELLOW = 33
    BLUE = 34
    MAGENTA = 35
    CYAN = 36
    WHITE = 37
    BRIGHT_BLACK = 90
    BRIGHT_RED = 91
    BRIGHT_GREEN = 92
    BRIGHT_YELLOW = 93
    BRIGHT_BLUE = 94
    BRIGHT_MAGENTA = 95
    BRIGHT_CYAN = 96
    BRIGHT_WHITE = 97


# SGR codes of the modifiers, in emission order
_MODIFIERS = (
    ("bold", 1),
    ("dim", 2),
    ("italic", 3),
    ("underline", 4),
)
_RESET = "\033[0m"


@dataclass(frozen=True)
class Style:
    """An immutable set of display attributes.

    Styles are built by chaining, ``Style().red().bolded()``, and combined
    with ``|``: the right-hand color wins and modifiers accumulate.
    """

    fg: Color | None = None
    bold: bool = False
    dim: bool = False
    italic: bool = False
    underline: bool = False

    def with_fg(self, color: Color) -> Style:
        return replace(self, fg=color)

    def black(self) -> Style:
        return self.with_fg(Color.BLACK)

    def red(self) -> Style:
        return self.with_fg(Color.RED)

    def green(self) -> Style:
        return self.with_fg(Color.GREEN)

    def yellow(self) -> Style:
        return self.with_fg(Color.YELLOW)

    def blue(self) -> Style:
        return self.with_fg(Color.BLUE)

    def magenta(self) -> Style:
        return self.with_fg(Color.MAGENTA)

    def cyan(self) -> Style:
        return self.with_fg(Color.CYAN)

    def white(self) -> Style:
        return self.with_fg(Color.WHITE)

    def bright_blue(self) -> Style:
        return self.with_fg(Color.BRIGHT_BLUE)

    def bright_red(self) -> Style:
        return self.with_fg(Color.BRIGHT_RED)

    def bolded(self) -> Style:
        return replace(self, bold=True)

    def dimmed(self) -> Style:
        return replace(self, dim=True)

    def italicized(self) -> Style:
        return replace(self, italic=True)

    def underlined(self) -> Style:
        return replace(self, underline=True)

    def __or__(self, other: Style) -> Style:
        if not isinstance(other, Style):
            return NotImplemented
        return Style(
            fg=other.fg if other.fg is not None else self.fg,
            bold=self.bold or other.bold,
            dim=self.dim or other.dim,
            italic=self.italic or other.italic,
            underline=self.underline or other.underline,
        )

    @property
    def is_plain(self) -> bool:
        return self == _PLAIN

    def sgr(self) -> str:
        """Return the ANSI escape sequence that turns this style on."""
        codes = [str(code) for name, code in _MODIFIERS if getattr(self, name)]
        if self.fg is not None:
            codes.append(str(self.fg.value))
        if not codes:
            return ""
        return f"\033[{';'.join(codes)}m"

    def paint(self, text: str, enabled: bool = True) -> str:
        if not enabled or not text or self.is_plain:
            return text
        return f"{self.sgr()}{text}{_RESET}"

    @classmethod
    def parse(cls, words: str) -> Style:
        """Build a style from words such as ``"bright_blue bold"``.

        Raises ValueError on an unknown word.
        """
        style = cls()
        for word in words.replace(",", " ").split():
            key = word.strip().lower()
            if key in {name for name, _ in _MODIFIERS}:
                style = replace(style, **{key: True})
                continue
            try:
                style = style.with_fg(Color[key.upper()])
            except KeyError:
                raise ValueError(f"unknown style attribute '{word}'") from None
        return style


_PLAIN = Style()
