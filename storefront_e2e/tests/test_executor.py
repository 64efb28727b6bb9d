"""
Unit tests for the step executor.
"""

import asyncio

import pytest

from conftest import StubTarget
from storefront_e2e.config import RunSettings
from storefront_e2e.executor import execute_step
from storefront_e2e.steps import (
    ActionTimeoutError,
    AssertionFailure,
    click,
    expect_count,
    expect_non_decreasing,
    expect_text,
    expect_url,
    expect_visible,
    fill,
    navigate,
)


def run_step(step, target, settings, index=0):
    return asyncio.run(execute_step(step, target, index, settings))


class TestActions:
    """Test action execution."""

    def test_action_waits_for_quiescence(self, settings):
        """Test every action is followed by a quiescence wait."""
        target = StubTarget()
        run_step(fill("#user-name", "standard_user"), target, settings)
        assert target.calls == [
            ("fill", "#user-name", "standard_user"),
            ("wait_for_quiescence",),
        ]

    def test_navigate_updates_url(self, settings):
        """Test navigate passes the URL through."""
        target = StubTarget()
        assert run_step(navigate("https://shop.test/cart.html"), target, settings) == "done"
        assert target.url == "https://shop.test/cart.html"

    def test_hanging_action_times_out(self):
        """Test a target that never answers yields ActionTimeoutError."""
        target = StubTarget()
        target.delays["click"] = 5.0
        settings = RunSettings(step_timeout_s=0.05)

        with pytest.raises(ActionTimeoutError) as exc_info:
            run_step(click("#login-button"), target, settings, index=3)

        assert exc_info.value.step_index == 3
        assert "click #login-button" in str(exc_info.value)

    def test_target_timeout_maps_to_action_timeout(self, settings):
        """Test a TimeoutError raised by the target counts as an action timeout."""

        class Missing(StubTarget):
            async def click(self, locator):
                raise TimeoutError(f"{locator} not found")

        with pytest.raises(ActionTimeoutError):
            run_step(click("#nope"), Missing(), settings)


class TestAssertions:
    """Test assertion execution."""

    def test_passing_assertion_returns_observed(self, settings):
        """Test a satisfied assertion reports the observed value."""
        target = StubTarget({".title": "Products"})
        assert run_step(expect_text(".title", "Products"), target, settings) == "'Products'"

    def test_failure_carries_expected_and_actual(self, settings):
        """Test a mismatch reports both values and the step index."""
        target = StubTarget({".shopping_cart_badge": False})

        with pytest.raises(AssertionFailure) as exc_info:
            run_step(expect_visible(".shopping_cart_badge"), target, settings, index=4)

        failure = exc_info.value
        assert failure.expected == "visible"
        assert failure.actual == "not visible"
        assert failure.step_index == 4
        assert str(failure) == "Step 4: expected visible, actual not visible"

    def test_url_assertion(self, settings):
        """Test URL read and compare."""
        target = StubTarget(url="https://shop.test/inventory.html")
        run_step(expect_url("https://shop.test/inventory.html"), target, settings)

        with pytest.raises(AssertionFailure):
            run_step(expect_url("https://shop.test/cart.html"), target, settings)

    def test_sequence_failure_reports_position(self, settings):
        """Test an out-of-order capture reports the first offending index."""
        target = StubTarget({".inventory_item_price": ["$2.00", "$9.00", "$5.00"]})

        with pytest.raises(AssertionFailure) as exc_info:
            run_step(expect_non_decreasing(".inventory_item_price", "price"), target, settings)

        assert exc_info.value.position == 2
        assert "first out-of-order index 2" in str(exc_info.value)

    def test_sequence_captured_once(self, settings):
        """Test the sequence is read in a single capture."""
        target = StubTarget({".price": ["1", "2", "3"]})
        run_step(expect_non_decreasing(".price", "number"), target, settings)
        assert [c[0] for c in target.calls] == ["read_texts"]

    def test_single_read_without_window(self, settings):
        """Test a zero assertion window reads exactly once."""
        target = StubTarget({".cart_item": 1})

        with pytest.raises(AssertionFailure):
            run_step(expect_count(".cart_item", 2), target, settings)

        assert len(target.calls) == 1

    def test_polling_tolerates_late_state(self):
        """Test re-reads within the window pick up state that settles late."""

        class LateBadge(StubTarget):
            async def read_text(self, locator):
                await super().read_text(locator)
                return "1" if len(self.calls) >= 3 else None

        target = LateBadge()
        settings = RunSettings(step_timeout_s=1.0, assertion_timeout_s=1.0, poll_interval_s=0.01)

        assert run_step(expect_text(".shopping_cart_badge", "1"), target, settings) == "'1'"
        assert len(target.calls) == 3

    def test_polling_reports_last_observation(self):
        """Test a window that closes unmet reports the final read."""
        target = StubTarget({".title": "Your Cart"})
        settings = RunSettings(step_timeout_s=1.0, assertion_timeout_s=0.05, poll_interval_s=0.01)

        with pytest.raises(AssertionFailure) as exc_info:
            run_step(expect_text(".title", "Products"), target, settings)

        assert exc_info.value.actual == "'Your Cart'"
        assert len(target.calls) > 1

    def test_hanging_read_times_out(self):
        """Test a read that never returns is bounded."""
        target = StubTarget()
        target.delays["read_count"] = 5.0
        settings = RunSettings(step_timeout_s=0.05)

        with pytest.raises(ActionTimeoutError):
            run_step(expect_count(".inventory_item", 6), target, settings)

    def test_rejects_non_step(self, settings):
        """Test arbitrary objects are not executed."""
        with pytest.raises(TypeError):
            run_step("click", StubTarget(), settings)

    def test_unparseable_capture_is_polled_again(self):
        """Test a capture the converter rejects is re-read within the window."""

        class RenderingPrices(StubTarget):
            async def read_texts(self, locator):
                await super().read_texts(locator)
                return [""] if len(self.calls) == 1 else ["$1.00", "$2.00"]

        target = RenderingPrices()
        settings = RunSettings(step_timeout_s=1.0, assertion_timeout_s=0.5, poll_interval_s=0.01)

        run_step(expect_non_decreasing(".price", convert="price"), target, settings)
        assert len(target.calls) == 2

    def test_unparseable_capture_fails_when_window_closes(self, settings):
        """Test a capture that never parses fails the step with the conversion message."""
        target = StubTarget({".price": ["$1.00", "n/a"]})

        with pytest.raises(AssertionFailure) as exc_info:
            run_step(expect_non_decreasing(".price", convert="price"), target, settings, index=2)

        assert exc_info.value.step_index == 2
        assert "['$1.00', 'n/a']" in exc_info.value.actual
        assert "could not convert" in exc_info.value.actual
