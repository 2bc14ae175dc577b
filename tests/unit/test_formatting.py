"""Tests for result re-formatting and rendering."""

from __future__ import annotations

from corpus_rag.retrieval.formatting import format_content, format_results, reindent, render_results
from corpus_rag.retrieval.models import SearchResult


class TestFormatContent:
    def test_function_body_is_broken_up_and_indented(self) -> None:
        assert format_content("function f(){ let x=1; }") == "function f(){\n\n  let x=1;\n}"

    def test_idempotent_on_formatted_output(self) -> None:
        once = format_content("function f(){ let x=1; }")
        assert format_content(once) == once

    def test_statements_split_onto_lines(self) -> None:
        assert format_content("a(); b();") == "a();\nb();"

    def test_plain_text_is_left_alone(self) -> None:
        assert format_content("  just a sentence  ") == "just a sentence"

    def test_empty_content(self) -> None:
        assert format_content("") == ""


class TestReindent:
    def test_depth_follows_braces(self) -> None:
        assert reindent("a {\nb {\nc\n}\n}") == "a {\n  b {\n    c\n  }\n}"

    def test_depth_never_goes_negative(self) -> None:
        assert reindent("}\nx") == "}\nx"

    def test_blank_lines_are_emptied(self) -> None:
        assert reindent("a {\n   \nb\n}") == "a {\n\n  b\n}"


def test_format_results_keeps_scores() -> None:
    results = format_results([SearchResult(score=0.5, content="a(); b();")])
    assert results == [SearchResult(score=0.5, content="a();\nb();")]


def test_render_results() -> None:
    text = render_results([SearchResult(score=0.9, content="first"), SearchResult(score=0.25, content="second")])
    assert text == "SIMILARITY: 0.9 first\n\nSIMILARITY: 0.25 second"


def test_render_no_results() -> None:
    assert render_results([]) == ""
