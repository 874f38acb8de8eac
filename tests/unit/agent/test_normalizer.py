"""Unit tests for agent.normalizer module."""

import pytest

from src.agent.normalizer import normalize_prompt


class TestNormalizePrompt:
    """Test cases for normalize_prompt."""

    def test_unwraps_whole_string_link(self):
        """A prompt that is exactly one markdown link becomes its label."""
        assert normalize_prompt("  [Foo Bar](http://x)  ") == "Foo Bar"

    def test_plain_text_unchanged(self):
        """Plain text is returned as-is."""
        assert normalize_prompt("plain text") == "plain text"

    def test_empty_string(self):
        """Empty input yields empty output."""
        assert normalize_prompt("") == ""

    def test_none_is_empty(self):
        """None is treated as an empty prompt."""
        assert normalize_prompt(None) == ""

    def test_link_with_trailing_text_not_unwrapped(self):
        """Text after the link means it is not a pure link."""
        assert normalize_prompt("[a](b) extra") == "[a](b) extra"

    def test_link_with_leading_text_not_unwrapped(self):
        """Text before the link means it is not a pure link."""
        assert normalize_prompt("see [a](b)") == "see [a](b)"

    def test_trims_whitespace(self):
        """Surrounding whitespace and newlines are stripped."""
        assert normalize_prompt("\n  @kb_agent /page 1 \t") == "@kb_agent /page 1"

    def test_label_is_trimmed(self):
        """Whitespace inside the brackets is trimmed from the label."""
        assert normalize_prompt("[ @kb_agent /page 1 ](x)") == "@kb_agent /page 1"

    def test_link_with_empty_target(self):
        """An empty target still counts as a link."""
        assert normalize_prompt("[label]()") == "label"

    @pytest.mark.parametrize("text", ["[](x)", "[a]", "(b)", "[a] (b)"])
    def test_not_links(self, text):
        """Link-like fragments that are not full links are left alone."""
        assert normalize_prompt(text) == text
