"""Tests for the expanded and compact renderings."""

from __future__ import annotations

from spanlight.config import Charset, Config
from spanlight.diagnostic import Diagnostic, Footnote, Label
from spanlight.source import Source
from spanlight.style import Style
from tests.helpers import body, diagnostic, render


class TestExpanded:
    def test_single_label(self):
        out = render("let x = 1;\n", Label((4, 5), "unused variable"))
        assert out == (
            "t\n"
            "\n"
            "  @ [unknown]\n"
            "1 │ let x = 1;\n"
            "  :     ^\n"
            "  :     unused variable\n"
        )

    def test_caret_run_matches_span(self):
        rows = body(render("abcdefghijkl\n", Label((3, 8), "x")))
        underline = rows[1]
        prefix = len("  : ")
        assert underline[prefix:] == "   ^^^^^"
        assert underline[prefix:].index("^") == 3

    def test_source_name_in_header(self):
        diag = diagnostic("abc\n", Label((0, 1), "a"), name="src/main.rs")
        out = diag.render(Config(color_enabled=False))
        assert out.splitlines()[2] == "  @ [src/main.rs]"

    def test_overlapping_labels_stack_inner_first(self):
        rows = body(render("abcdefghijkl\n", Label((2, 10), "outer"), Label((4, 6), "inner")))
        assert rows == [
            "1 │ abcdefghijkl",
            "  :     ^^",
            "  :     inner",
            "  :   ^^^^^^^^",
            "  :   outer",
        ]

    def test_labels_on_one_rung(self):
        rows = body(render("foo(a, b)\n", Label((4, 5), "first"), Label((7, 8), "second")))
        assert rows == [
            "1 │ foo(a, b)",
            "  :     ^  ^",
            "  :     │  second",
            "  :     first",
        ]

    def test_label_without_text(self):
        rows = body(render("foo(a, b)\n", Label((4, 5))))
        assert rows == ["1 │ foo(a, b)", "  :     ^"]

    def test_tab_before_label(self):
        rows = body(render("ab\tc\n", Label((3, 4), "c"), tab_width=4))
        assert rows[0] == "1 │ ab  c"
        assert rows[1] == "  :     ^"

    def test_label_covering_tab(self):
        rows = body(render("ab\tc\n", Label((2, 3), "tab"), tab_width=4))
        assert rows[1] == "  :   ^^"

    def test_wide_characters(self):
        rows = body(render("日本語 x\n", Label((10, 11), "x")))
        assert rows[1] == "  :        ^"

    def test_multiline_label(self):
        text = "a\nb\nfn foo() {\n    bar();\n}\nz\n"
        rows = body(render(text, Label((7, 27), "body of foo")))
        assert rows == [
            "3 │   fn foo() {",
            "  : ╭────^",
            "4 │ │     bar();",
            "5 │ │ }",
            "  : ╰─^ body of foo",
        ]

    def test_crossing_multiline_labels(self, four_lines):
        rows = body(render(four_lines, Label((0, 9), "a"), Label((5, 16), "b")))
        assert rows == [
            "1 │     one",
            "  :   ╭─^",
            "2 │   │ two",
            "  : ╭─┼──^",
            "3 │ │ │ three",
            "  : │ ╰─^ a",
            "4 │ │   four",
            "  : ╰────^ b",
        ]

    def test_elided_lines(self):
        text = "".join(f"line {i}\n" for i in range(1, 11))
        rows = body(render(text, Label((0, 4), "first"), Label((49, 53), "second")))
        assert rows == [
            "1 │ line 1",
            "  : ^^^^",
            "  : first",
            "  ⋮",
            "8 │ line 8",
            "  : ^^^^",
            "  : second",
        ]

    def test_one_line_gap_shown_in_full(self):
        text = "".join(f"line {i}\n" for i in range(1, 11))
        rows = body(render(text, Label((0, 4)), Label((14, 18))))
        assert rows == ["1 │ line 1", "  : ^^^^", "2 │ line 2", "3 │ line 3", "  : ^^^^"]

    def test_context_lines(self):
        text = "".join(f"line {i}\n" for i in range(1, 11))
        rows = body(render(text, Label((21, 25), "here"), context_lines=1))
        assert rows == ["3 │ line 3", "4 │ line 4", "  : ^^^^", "  : here", "5 │ line 5"]

    def test_multiline_label_shows_every_line(self):
        text = "".join(f"line {i}\n" for i in range(1, 11))
        rows = body(render(text, Label((0, 53), "long")))
        assert rows == [
            "1 │   line 1",
            "  : ╭─^",
            *(f"{n} │ │ line {n}" for n in range(2, 9)),
            "  : ╰────^ long",
        ]

    def test_footnotes(self):
        diag = diagnostic("let x = 1;\n", Label((4, 5), "unused variable"))
        diag.with_footnote("help: remove it").with_footnote(Footnote("note: see docs"))
        out = diag.render(Config(color_enabled=False))
        assert out.endswith("  :     unused variable\n\n  > help: remove it\n  > note: see docs\n")

    def test_multiline_footnote_aligned(self):
        diag = diagnostic("x\n", Label((0, 1))).with_footnote("first\nsecond")
        lines = diag.render(Config(color_enabled=False)).splitlines()
        assert lines[-2:] == ["  > first", "    second"]

    def test_empty_span_at_end_of_text(self):
        rows = body(render("let x = 1;\n", Label((11, 11), "eof")))
        assert rows == ["2 │", "  : ^", "  : eof"]

    def test_offset_inside_character(self):
        rows = body(render("é = 1\n", Label((1, 2), "mid")))
        assert rows[1] == "  : ^"

    def test_trim_indent(self):
        rows = body(render("    if x:\n        y()\n", Label((7, 8), "x"), trim_indent=True))
        assert rows[:2] == ["1 │ if x:", "  :    ^"]

    def test_ascii_charset(self, four_lines):
        rows = body(render(four_lines, Label((0, 9), "a"), charset=Charset.ascii()))
        assert rows == [
            "1 |   one",
            "  : ,-^",
            "2 | | two",
            "3 | | three",
            "  : `-^ a",
        ]

    def test_wraps_long_label_text(self):
        rows = body(
            render("let x = 1;\n", Label((0, 3), "this label text is long enough to wrap"),
                   max_width=30)
        )
        assert rows == [
            "1 │ let x = 1;",
            "  : ^^^",
            "  : this label text is long",
            "  : enough to wrap",
        ]

    def test_wraps_wide_label_text_by_cells(self):
        text = "日本語のラベルテキストはとても長いのでここで折り返す必要がありますよね"
        out = render("let x = 1;\n", Label((0, 3), text), max_width=30)
        rows = body(out)
        assert rows[2:] == [
            "  : 日本語のラベルテキストはと",
            "  : ても長いのでここで折り返す",
            "  : 必要がありますよね",
        ]
        assert "…" not in out
        assert "".join(row[4:] for row in rows[2:]) == text

    def test_truncates_source_row(self):
        rows = body(render("x" * 30 + "\n", Label((0, 1)), max_width=12))
        assert rows[0] == "1 │ xxxxxxx…"

    def test_truncation_never_splits_carets(self):
        out = render("x" * 30 + "\n", Label((20, 25), "t"), max_width=24)
        for line in out.splitlines():
            assert len(line) <= 24
            if "^" in line:
                assert "^^^^^" in line
        assert body(out)[1].endswith("…")
        assert "^" not in body(out)[1]

    def test_colored_output(self):
        diag = diagnostic("let x = 1;\n", Label((4, 5), "unused", Style().red()))
        out = diag.render(Config())
        assert "\x1b[31m^\x1b[0m" in out
        assert "\x1b[31munused\x1b[0m" in out

    def test_no_color(self):
        out = render("let x = 1;\n", Label((4, 5), "unused"))
        assert "\x1b[" not in out

    def test_source_style(self):
        diag = Diagnostic("t", Source("abc\n", style=Style().green())).with_label(Label((0, 1)))
        assert "\x1b[32mabc\x1b[0m" in diag.render(Config())


class TestCompact:
    def test_single_label(self):
        out = render("let x = 1;\n", Label((4, 5), "unused variable"), compact=True)
        assert out == (
            "t\n"
            "@ [unknown]:\n"
            "1 │ let x = 1;\n"
            "  :     ^ unused variable\n"
        )

    def test_leftover_text_is_listed(self):
        out = render("foo(a, b)\n", Label((4, 5), "first"), Label((7, 8), "second"), compact=True)
        assert out.splitlines()[2:] == [
            "1 │ foo(a, b)",
            "  :     ^  ^ second",
            "│ [line 1]: first",
        ]

    def test_identical_spans_merge(self):
        out = render("foo(a, b)\n", Label((4, 5), "x"), Label((4, 5), "y"), compact=True)
        assert out.splitlines()[2:] == ["1 │ foo(a, b)", "  :     ^ x, y"]

    def test_multiline(self, four_lines):
        out = render(four_lines, Label((0, 9), "a"), compact=True)
        assert out.splitlines()[2:] == [
            "1 │   one",
            "  : ╭─^",
            "2 │ │ two",
            "3 │ │ three",
            "  : ╰─^ a",
        ]

    def test_text_that_does_not_fit_is_listed(self, four_lines):
        out = render(four_lines, Label((0, 9), "a rather long message"), compact=True,
                     max_width=20)
        lines = out.splitlines()
        assert "  : ╰─^" in lines
        assert lines[-1] == "│ [lines 1-3]: a ra…"

    def test_footnotes(self):
        diag = diagnostic("x\n", Label((0, 1), "here")).with_footnote("help: fix")
        out = diag.render_compact(Config(color_enabled=False))
        assert out.splitlines()[-1] == "> help: fix"

    def test_same_label_texts_as_expanded(self, four_lines):
        labels = [
            Label((0, 9), "spans lines"),
            Label((4, 7), "the word two"),
            Label((5, 6), "w"),
            Label((14, 18), "four"),
            Label((15, 17), "ou"),
        ]
        expanded = render(four_lines, *labels)
        compact = render(four_lines, *labels, compact=True)
        for label in labels:
            assert label.text in expanded
            assert label.text in compact
        assert len(compact.splitlines()) < len(expanded.splitlines())


class TestDeterminism:
    def test_repeated_renders_identical(self, four_lines):
        diag = diagnostic(four_lines, Label((0, 9), "a"), Label((5, 16), "b"), Label((2, 3), "c"))
        config = Config()
        assert diag.render(config) == diag.render(config)
        assert diag.render_compact(config) == diag.render_compact(config)

    def test_every_valid_span_renders(self):
        text = "ab\tc\n日本\n\né\r\nend"
        data = text.encode()
        diag = Diagnostic("t", Source(text))
        for start in range(len(data) + 1):
            for end in range(start, len(data) + 1):
                diag.with_labels([Label((start, end), "x")])
                assert diag.render(Config(color_enabled=False))
                assert diag.render_compact(Config(color_enabled=False))
