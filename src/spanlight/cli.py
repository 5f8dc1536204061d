"""spanlight command line tool."""

from __future__ import annotations

import functools
import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from spanlight import __version__
from spanlight.config import Charset, Config, find_config, load_config
from spanlight.diagnostic import Diagnostic, Footnote, Label
from spanlight.errors import SpanlightError
from spanlight.source import Source, SourceSpan
from spanlight.style import Style

_log = logging.getLogger("spanlight")


def _configure_logging(verbosity: int) -> None:
    """Set up the ``spanlight`` logger: warnings, then info with -v, debug with -vv."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(format="%(name)s: %(levelname)s: %(message)s")
    _log.setLevel(level)


def _render_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by every command that renders diagnostics."""
    options = [
        click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False),
                     help="Read settings from this spanlight.toml."),
        click.option("--compact/--expanded", default=None, help="Rendering mode."),
        click.option("--color/--no-color", default=None, help="Emit ANSI colors."),
        click.option("--tab-width", type=click.IntRange(min=1), default=None,
                     help="Cells between tab stops."),
        click.option("--context", "context_lines", type=click.IntRange(min=0), default=None,
                     help="Unlabelled lines shown around labels."),
        click.option("--max-width", type=click.IntRange(min=0), default=None,
                     help="Shorten rows to this many cells (0 disables)."),
        click.option("--ascii", "use_ascii", is_flag=True, help="Draw with ASCII glyphs only."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_config(
    start: Path,
    config_path: str | None,
    compact: bool | None,
    color: bool | None,
    tab_width: int | None,
    context_lines: int | None,
    max_width: int | None,
    use_ascii: bool,
) -> Config:
    """Config file values first, then whatever was given on the command line."""
    found = Path(config_path) if config_path is not None else find_config(start)
    if found is None:
        config = Config()
    else:
        _log.info("using config %s", found)
        config = load_config(found)
    return config.updated(
        compact_by_default=compact,
        color_enabled=color,
        tab_width=tab_width,
        context_lines=context_lines,
        max_width=max_width,
        charset=Charset.ascii() if use_ascii else None,
    )


def _fail(message: str) -> None:
    click.echo(f"error: {message}", err=True)
    raise SystemExit(1)


def _emit(diagnostics: list[Diagnostic], config: Config) -> None:
    texts = [
        d.render_compact(config) if config.compact_by_default else d.render(config)
        for d in diagnostics
    ]
    click.echo("\n".join(texts), nl=False, color=config.color_enabled)


def _handles_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except SpanlightError as e:
            _fail(str(e))
        except UnicodeDecodeError as e:
            _fail(f"source is not valid UTF-8: {e}")
    return wrapper


def _parse_label(value: str) -> Label:
    parts = value.split(":", 2)
    if len(parts) < 2:
        raise click.BadParameter(f"expected START:END[:TEXT], got {value!r}")
    try:
        span = SourceSpan(int(parts[0]), int(parts[1]))
    except ValueError:
        raise click.BadParameter(f"span bounds must be integers in {value!r}") from None
    return Label(span, parts[2] if len(parts) == 3 else None)


@click.group()
@click.version_option(__version__, prog_name="spanlight")
@click.option("-v", "--verbose", count=True, help="Log more (repeat for debug output).")
def main(verbose: int) -> None:
    """Render labelled source spans as compiler-style diagnostics."""
    _configure_logging(verbose)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--label", "-l", "labels", multiple=True,
              help="Byte span to label, as START:END[:TEXT]. Repeatable.")
@click.option("--footnote", "-f", "footnotes", multiple=True, help="Footnote text. Repeatable.")
@click.option("--title", "-t", default=None, help="Diagnostic title (defaults to the file name).")
@_render_options
@_handles_errors
def render(
    file: str,
    labels: tuple[str, ...],
    footnotes: tuple[str, ...],
    title: str | None,
    **options: Any,
) -> None:
    """Render a diagnostic for FILE from spans given on the command line."""
    config = _build_config(Path(file), **options)
    parsed = [_parse_label(value) for value in labels]
    diagnostic = Diagnostic(title if title is not None else file, Source.from_path(file))
    diagnostic.with_labels(parsed)
    for text in footnotes:
        diagnostic.add_footnote(text)
    _emit([diagnostic], config)


def _object(value: Any, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise TypeError(f"{what} must be an object, not {type(value).__name__}")
    return value


def _style(value: Any) -> Style | None:
    if value is None:
        return None
    return Style.parse(str(value))


def diagnostic_from_json(data: dict[str, Any], base_dir: Path) -> Diagnostic:
    """Build a diagnostic from its JSON description.

    Source paths are resolved against ``base_dir``. Raises KeyError,
    TypeError or ValueError on a malformed description.
    """
    data = _object(data, "diagnostic")
    diagnostic = Diagnostic(str(data.get("title", "")))
    source = data.get("source")
    if source is not None:
        source = _object(source, "source")
        if "path" in source:
            path = base_dir / source["path"]
            diagnostic.with_source(Source.from_path(path, source.get("name", source["path"])))
        elif isinstance(source["text"], str):
            diagnostic.with_source(Source(source["text"], source.get("name")))
        else:
            raise TypeError("source text must be a string")
    for item in data.get("labels", []):
        item = _object(item, "label")
        text = item.get("text")
        diagnostic.add_label(
            Label(SourceSpan(int(item["start"]), int(item["end"])),
                  None if text is None else str(text), _style(item.get("style")))
        )
    for item in data.get("footnotes", []):
        if isinstance(item, str):
            diagnostic.add_footnote(item)
        else:
            item = _object(item, "footnote")
            diagnostic.add_footnote(Footnote(str(item["text"]), _style(item.get("style"))))
    return diagnostic


@main.command()
@click.argument("json_file", type=click.Path(exists=True, dir_okay=False))
@_render_options
@_handles_errors
def report(json_file: str, **options: Any) -> None:
    """Render the diagnostics described in JSON_FILE.

    The file holds one diagnostic object or a list of them.
    """
    path = Path(json_file)
    config = _build_config(path, **options)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        items = data if isinstance(data, list) else [data]
        diagnostics = [diagnostic_from_json(item, path.parent) for item in items]
    except (KeyError, TypeError, ValueError, OSError) as e:
        _fail(f"invalid diagnostic description in {json_file}: {e}")
    _log.info("rendering %d diagnostics from %s", len(diagnostics), json_file)
    _emit(diagnostics, config)
