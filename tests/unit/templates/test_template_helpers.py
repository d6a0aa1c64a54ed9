"""Template helper functions."""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st
import pytest

from prompter.templates.helpers import dedent, indent, md_fence, truncate

pytestmark = pytest.mark.unit


class TestTruncate:
    def test_long_text_gets_an_ellipsis(self) -> None:
        assert truncate(10, "This is a very long string") == "This is..."

    def test_short_text_is_unchanged(self) -> None:
        assert truncate(10, "short") == "short"

    @pytest.mark.parametrize(("length", "expected"), [(3, "abc"), (2, "ab"), (0, "")])
    def test_tiny_lengths_cut_hard(self, length: int, expected: str) -> None:
        assert truncate(length, "abcdef") == expected

    @given(length=st.integers(min_value=0, max_value=40), text=st.text(max_size=60))
    @settings(max_examples=10, deadline=None, derandomize=True)
    def test_result_never_exceeds_length(self, length: int, text: str) -> None:
        """Property: output length is bounded and short input passes through."""
        out = truncate(length, text)
        assert len(out) <= max(length, 0) or out == text
        if len(text) <= length:
            assert out == text


class TestMdFence:
    def test_language_tag_is_attached(self) -> None:
        assert md_fence("go", "fmt.Println(1)") == "```go\nfmt.Println(1)\n```"

    def test_empty_language_omits_tag(self) -> None:
        assert md_fence("", "x") == "```\nx\n```"


class TestIndent:
    def test_indents_non_blank_lines_only(self) -> None:
        assert indent(2, "a\n\n b") == "  a\n\n   b"

    @pytest.mark.parametrize("spaces", [0, -3])
    def test_non_positive_is_identity(self, spaces: int) -> None:
        assert indent(spaces, "a\nb") == "a\nb"


class TestDedent:
    def test_removes_common_indentation(self) -> None:
        assert dedent("    a\n    b\n        c") == "a\nb\n    c"

    def test_blank_lines_are_ignored_for_the_minimum(self) -> None:
        assert dedent("  a\n\n    b") == "a\n\n  b"

    def test_tab_counts_as_four_columns(self) -> None:
        assert dedent("\ta\n    b") == "a\nb"

    def test_partially_removed_tab_becomes_spaces(self) -> None:
        assert dedent("  a\n\tb") == "a\n  b"

    def test_unindented_text_is_unchanged(self) -> None:
        assert dedent("a\n  b") == "a\n  b"

    @given(
        lines=st.lists(
            st.text(alphabet="abc xyz", min_size=1, max_size=12).filter(str.strip),
            min_size=1,
            max_size=6,
        ),
        spaces=st.integers(min_value=1, max_value=8),
    )
    @settings(max_examples=10, deadline=None, derandomize=True)
    def test_dedent_undoes_indent(self, lines: list[str], spaces: int) -> None:
        """Property: dedent(indent(n, text)) recovers text with no common indent."""
        text = dedent("\n".join(lines))
        assert dedent(indent(spaces, text)) == text
