"""
Unit tests for expectations and the comparator.
"""

import pytest

from storefront_e2e.expectations import (
    CONVERTERS,
    Expectation,
    Mode,
    check_non_decreasing,
    compare,
    normalize_text,
)


class TestCheckNonDecreasing:
    """Test the ordering check on captured sequences."""

    def test_ascending_with_ties_passes(self):
        """Test equal neighbours are allowed."""
        result = check_non_decreasing([2, 5, 5, 9])
        assert result.passed is True
        assert result.index is None

    def test_reports_first_offending_index(self):
        """Test the first value smaller than its predecessor is reported."""
        result = check_non_decreasing([2, 9, 5])
        assert result.passed is False
        assert result.index == 2

    def test_first_of_several_violations(self):
        """Test only the first violation is reported."""
        assert check_non_decreasing([3, 1, 4, 1, 5]).index == 1

    def test_empty_and_single(self):
        """Test trivial sequences pass."""
        assert check_non_decreasing([]).passed
        assert check_non_decreasing([42]).passed


class TestConverters:
    """Test value converters."""

    def test_price(self):
        """Test currency prefix is stripped."""
        assert CONVERTERS["price"]("$29.99") == 29.99
        assert CONVERTERS["price"](" €7.99 ") == 7.99

    def test_number_with_grouping(self):
        """Test thousands separators are ignored."""
        assert CONVERTERS["number"]("1,299.50") == 1299.5

    def test_unparseable_raises(self):
        """Test a non-numeric capture raises ValueError."""
        with pytest.raises(ValueError):
            CONVERTERS["price"]("free")

    def test_unknown_converter_rejected(self):
        """Test an expectation refuses an unknown converter name."""
        with pytest.raises(ValueError, match="Unknown converter"):
            Expectation(Mode.NON_DECREASING, convert="euros")


class TestCompare:
    """Test compare() across modes."""

    def test_equals_normalizes_whitespace(self):
        """Test rendered whitespace does not break equality."""
        assert compare(Expectation(Mode.EQUALS, "Products"), "  Products\n").passed

    def test_equals_mismatch_renders_actual(self):
        """Test a mismatch reports the observed text."""
        result = compare(Expectation(Mode.EQUALS, "Products"), "Your Cart")
        assert result.passed is False
        assert result.actual == "'Your Cart'"

    def test_absent_element_fails(self):
        """Test a missing element never satisfies a text expectation."""
        result = compare(Expectation(Mode.CONTAINS, "x"), None)
        assert result.passed is False
        assert result.actual == "absent"

    def test_contains(self):
        """Test substring match."""
        expectation = Expectation(Mode.CONTAINS, "Username is required")
        assert compare(expectation, "Epic sadface: Username is required").passed

    def test_matches_uses_search(self):
        """Test regex matching anywhere in the text."""
        expectation = Expectation(Mode.MATCHES, r"/checkout-step-\w+\.html$")
        assert compare(expectation, "https://shop.test/checkout-step-two.html").passed
        assert not compare(expectation, "https://shop.test/cart.html").passed

    def test_visible_and_hidden(self):
        """Test visibility modes render visible/not visible."""
        visible = compare(Expectation(Mode.VISIBLE), False)
        assert visible.passed is False
        assert visible.actual == "not visible"
        assert compare(Expectation(Mode.HIDDEN), False).passed

    def test_count(self):
        """Test exact count."""
        assert compare(Expectation(Mode.COUNT, 6), 6).passed
        assert compare(Expectation(Mode.COUNT, 6), 5).actual == "5"

    def test_non_decreasing_with_converter(self):
        """Test prices are compared numerically, not as strings."""
        expectation = Expectation(Mode.NON_DECREASING, convert="price")
        assert compare(expectation, ["$7.99", "$9.99", "$15.99", "$15.99", "$29.99"]).passed

        result = compare(expectation, ["$9.99", "$10.00", "$7.99"])
        assert result.passed is False
        assert result.index == 2

    def test_sequence_equals_and_contains(self):
        """Test list captures against EQUALS and CONTAINS."""
        names = ["Sauce Labs Backpack", "Sauce Labs Onesie"]
        assert compare(Expectation(Mode.EQUALS, list(names)), names).passed
        assert compare(Expectation(Mode.CONTAINS, "Sauce Labs Onesie"), names).passed
        assert not compare(Expectation(Mode.CONTAINS, "Jacket"), names).passed

    def test_matches_on_sequence_rejected(self):
        """Test a regex mode is not applied to a sequence."""
        with pytest.raises(ValueError):
            compare(Expectation(Mode.MATCHES, "x"), ["x"])


class TestDescribe:
    """Test failure-message rendering of expectations."""

    def test_describe(self):
        """Test each mode reads naturally."""
        assert Expectation(Mode.VISIBLE).describe() == "visible"
        assert Expectation(Mode.HIDDEN).describe() == "not visible"
        assert Expectation(Mode.COUNT, 2).describe() == "count 2"
        assert Expectation(Mode.EQUALS, "1").describe() == "equals '1'"

    def test_normalize_text(self):
        """Test whitespace collapsing."""
        assert normalize_text(" a \n  b ") == "a b"
        assert normalize_text(None) is None
