"""Rendering configuration and TOML loading for spanlight.toml."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

from spanlight.errors import ConfigError
from spanlight.style import Style

CONFIG_FILENAME = "spanlight.toml"


@dataclass(frozen=True)
class Charset:
    """Glyphs used to draw a diagnostic."""

    vertical_bar: str = "│"
    separator: str = ":"
    elision: str = "⋮"
    underliner: str = "^"
    horizontal_bar: str = "─"
    top_corner: str = "╭"
    bottom_corner: str = "╰"
    leader: str = "│"
    crossing: str = "┼"
    pending: str = "│"
    ellipsis: str = "…"
    footnote: str = ">"

    @classmethod
    def ascii(cls) -> Charset:
        return cls(
            vertical_bar="|",
            separator=":",
            elision=".",
            underliner="^",
            horizontal_bar="-",
            top_corner=",",
            bottom_corner="`",
            leader="|",
            crossing="+",
            pending="|",
            ellipsis="~",
            footnote=">",
        )


@dataclass(frozen=True)
class DefaultStyles:
    source_name: Style = Style().white().bolded()
    source: Style = Style().white()
    left_column: Style = Style().bright_blue().bolded()
    multiline_indicator: Style = Style().yellow()
    singleline_indicator: Style = Style().yellow()
    footnote_indicator: Style = Style().bright_blue().bolded()


@dataclass(frozen=True)
class Config:
    """Parameters of one render call. Never mutated by the renderer."""

    color_enabled: bool = True
    context_lines: int = 0
    tab_width: int = 4
    max_width: int | None = None
    compact_by_default: bool = False
    # gaps of at most this many lines between displayed ranges are shown in full
    merge_gap: int = 1
    trim_indent: bool = False
    charset: Charset = field(default_factory=Charset)
    styles: DefaultStyles = field(default_factory=DefaultStyles)

    def __post_init__(self) -> None:
        if self.context_lines < 0:
            raise ConfigError("context_lines must not be negative")
        if self.tab_width < 1:
            raise ConfigError("tab_width must be at least 1")
        if self.max_width is not None and self.max_width < 1:
            raise ConfigError("max_width must be at least 1")
        if self.merge_gap < 0:
            raise ConfigError("merge_gap must not be negative")

    def updated(self, **changes: Any) -> Config:
        """Return a copy with the given fields replaced, skipping ``None`` values.

        ``max_width`` is the one field where ``None`` is meaningful, so pass
        ``max_width=0`` to clear it.
        """
        values = {k: v for k, v in changes.items() if v is not None}
        if values.get("max_width") == 0:
            values["max_width"] = None
        return replace(self, **values)


_SCALARS = {
    "color_enabled": bool,
    "context_lines": int,
    "tab_width": int,
    "max_width": int,
    "compact_by_default": bool,
    "merge_gap": int,
    "trim_indent": bool,
}
_STYLE_NAMES = {f.name for f in fields(DefaultStyles)}


def find_config(start: Path | None = None) -> Path | None:
    """Return the nearest spanlight.toml at or above ``start``, if there is one.

    ``start`` may be a directory or a file being rendered; the search begins
    in the current directory when it is omitted.
    """
    here = (start or Path.cwd()).resolve()
    if here.is_file():
        here = here.parent
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Path) -> Config:
    """Parse a spanlight.toml file into a Config."""
    with open(path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"{path}: {e}") from e
    return config_from_dict(data)


def config_from_dict(data: dict[str, Any]) -> Config:
    render = data.get("render", {})
    if not isinstance(render, dict):
        raise ConfigError("[render] must be a table")

    values: dict[str, Any] = {}
    for key, kind in _SCALARS.items():
        if key not in render:
            continue
        value = render[key]
        # bool is a subclass of int, so check it explicitly
        if kind is int and (isinstance(value, bool) or not isinstance(value, int)):
            raise ConfigError(f"render.{key} must be an integer")
        if kind is bool and not isinstance(value, bool):
            raise ConfigError(f"render.{key} must be true or false")
        values[key] = value

    charset = render.get("charset", "unicode")
    if charset == "ascii":
        values["charset"] = Charset.ascii()
    elif charset != "unicode":
        raise ConfigError(f"render.charset must be 'unicode' or 'ascii', not {charset!r}")

    styles = render.get("styles", {})
    if not isinstance(styles, dict):
        raise ConfigError("[render.styles] must be a table")
    style_values = {}
    for name, value in styles.items():
        if name not in _STYLE_NAMES:
            continue
        try:
            style_values[name] = Style.parse(str(value))
        except ValueError as e:
            raise ConfigError(f"render.styles.{name}: {e}") from e
    if style_values:
        values["styles"] = replace(DefaultStyles(), **style_values)

    return Config(**values)
