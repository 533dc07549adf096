"""Tests for the placeholder token grammar."""

import pytest

from flowkeeper.privacy.placeholders import (
    PLACEHOLDER_PATTERN,
    PlaceholderCounters,
    PlaceholderKind,
    find_placeholders,
    format_placeholder,
    is_placeholder,
    placeholder_kind,
)


class TestFormatPlaceholder:
    """Test token construction."""

    def test_format_each_kind(self):
        """Test the bit-exact token for every kind."""
        assert format_placeholder(PlaceholderKind.EMAIL, 1) == "{{EMAIL_1}}"
        assert format_placeholder(PlaceholderKind.URL, 2) == "{{URL_2}}"
        assert format_placeholder(PlaceholderKind.GUID, 3) == "{{GUID_3}}"
        assert format_placeholder(PlaceholderKind.STRING, 10) == "{{STRING_10}}"

    def test_format_accepts_kind_name(self):
        """Test that the plain kind name works too."""
        assert format_placeholder("EMAIL", 4) == "{{EMAIL_4}}"

    def test_numbers_start_at_one(self):
        """Test that zero and negative numbers are rejected."""
        with pytest.raises(ValueError):
            format_placeholder(PlaceholderKind.STRING, 0)
        with pytest.raises(ValueError):
            format_placeholder(PlaceholderKind.STRING, -1)


class TestPlaceholderMatching:
    """Test recognising tokens in text."""

    @pytest.mark.parametrize(
        "value",
        ["{{EMAIL_1}}", "{{URL_12}}", "{{GUID_3}}", "{{STRING_100}}"],
    )
    def test_valid_tokens(self, value):
        """Test that well formed tokens are recognised."""
        assert is_placeholder(value)

    @pytest.mark.parametrize(
        "value",
        [
            "{{STRING_0}}",
            "{{STRING_01}}",
            "{{email_1}}",
            "{{PHONE_1}}",
            "{STRING_1}",
            "{{STRING_1}} ",
            "see {{STRING_1}}",
            "[EMAIL_1]",
        ],
    )
    def test_invalid_tokens(self, value):
        """Test that near misses and embedded tokens are not whole tokens."""
        assert not is_placeholder(value)

    def test_find_placeholders_in_order(self):
        """Test that every token is found in order of appearance."""
        text = "{{URL_1}} then {{EMAIL_2}} and {{URL_1}} again"
        assert find_placeholders(text) == ["{{URL_1}}", "{{EMAIL_2}}", "{{URL_1}}"]

    def test_prefix_tokens_are_distinct(self):
        """Test that {{STRING_1}} is never found inside {{STRING_10}}."""
        assert find_placeholders("{{STRING_10}}") == ["{{STRING_10}}"]
        assert PLACEHOLDER_PATTERN.search("{{STRING_10}}").group(2) == "10"

    def test_placeholder_kind(self):
        """Test reading the kind back from a token."""
        assert placeholder_kind("{{GUID_7}}") is PlaceholderKind.GUID
        assert placeholder_kind("not a token") is None


class TestPlaceholderCounters:
    """Test per-run counter state."""

    def test_counters_are_independent_per_kind(self):
        """Test that each kind counts on its own."""
        counters = PlaceholderCounters()

        assert counters.next(PlaceholderKind.EMAIL) == "{{EMAIL_1}}"
        assert counters.next(PlaceholderKind.STRING) == "{{STRING_1}}"
        assert counters.next(PlaceholderKind.EMAIL) == "{{EMAIL_2}}"
        assert counters.next(PlaceholderKind.URL) == "{{URL_1}}"

    def test_as_dict_and_total(self):
        """Test the count summary."""
        counters = PlaceholderCounters()
        counters.next(PlaceholderKind.GUID)
        counters.next(PlaceholderKind.GUID)
        counters.next(PlaceholderKind.STRING)

        assert counters.as_dict() == {"EMAIL": 0, "URL": 0, "GUID": 2, "STRING": 1}
        assert counters.total == 3

    def test_fresh_counters_start_at_one(self):
        """Test that a new counter set restarts numbering."""
        PlaceholderCounters().next(PlaceholderKind.URL)
        assert PlaceholderCounters().next(PlaceholderKind.URL) == "{{URL_1}}"

    def test_reserved_tokens_are_skipped(self):
        """Test that numbers already used in the input are never issued."""
        counters = PlaceholderCounters(
            reserved=frozenset({"{{STRING_1}}", "{{STRING_3}}", "{{URL_2}}"})
        )

        assert counters.next(PlaceholderKind.STRING) == "{{STRING_2}}"
        assert counters.next(PlaceholderKind.STRING) == "{{STRING_4}}"
        assert counters.next(PlaceholderKind.URL) == "{{URL_1}}"
        assert counters.next(PlaceholderKind.URL) == "{{URL_3}}"
        assert counters.next(PlaceholderKind.EMAIL) == "{{EMAIL_1}}"
        assert counters.as_dict()["STRING"] == 4
