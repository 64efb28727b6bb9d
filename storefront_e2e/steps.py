"""
Step definitions for storefront scenarios.

A case is an ordered tuple of steps. An Action mutates the target
(navigate, fill, click, select). An Assertion reads target state and
compares it against an Expectation; it never mutates.

Locators are opaque strings handed to the target as-is.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from storefront_e2e.expectations import Expectation, Mode


class ActionKind(Enum):
    """Mutations supported by the target control surface."""

    NAVIGATE = "navigate"
    FILL = "fill"
    CLICK = "click"
    SELECT_OPTION = "select_option"


class ReadKind(Enum):
    """State reads supported by the target control surface."""

    TEXT = "text"
    TEXTS = "texts"
    VISIBILITY = "visibility"
    COUNT = "count"
    URL = "url"


@dataclass(frozen=True)
class Action:
    """
    Target mutation.

    Attributes:
        kind: Action kind.
        locator: Element locator (None for NAVIGATE).
        value: URL for NAVIGATE, text for FILL, option for SELECT_OPTION.
        label: Human-readable step name.
    """

    kind: ActionKind
    locator: Optional[str] = None
    value: Optional[str] = None
    label: str = ""

    @property
    def name(self) -> str:
        if self.label:
            return self.label
        if self.kind == ActionKind.NAVIGATE:
            return f"navigate {self.value}"
        if self.value is not None:
            return f"{self.kind.value} {self.locator} = {self.value!r}"
        return f"{self.kind.value} {self.locator}"


@dataclass(frozen=True)
class Assertion:
    """
    Target state check.

    Attributes:
        read: Which state to read.
        expectation: What the read value must satisfy.
        locator: Element locator (None for URL reads).
        label: Human-readable step name.
    """

    read: ReadKind
    expectation: Expectation
    locator: Optional[str] = None
    label: str = ""

    @property
    def name(self) -> str:
        if self.label:
            return self.label
        subject = "url" if self.read == ReadKind.URL else f"{self.read.value} of {self.locator}"
        return f"expect {subject} {self.expectation.describe()}"


Step = Union[Action, Assertion]


# Action constructors


def navigate(url: str, label: str = "") -> Action:
    """Open a URL in the target."""
    return Action(ActionKind.NAVIGATE, value=url, label=label)


def fill(locator: str, value: str, label: str = "") -> Action:
    """Type a value into a form field."""
    return Action(ActionKind.FILL, locator=locator, value=value, label=label)


def click(locator: str, label: str = "") -> Action:
    """Click an element."""
    return Action(ActionKind.CLICK, locator=locator, label=label)


def select_option(locator: str, value: str, label: str = "") -> Action:
    """Choose an option in a select element."""
    return Action(ActionKind.SELECT_OPTION, locator=locator, value=value, label=label)


# Assertion constructors


def expect_text(locator: str, text: str, label: str = "") -> Assertion:
    """Element text equals `text` (whitespace-normalized)."""
    return Assertion(ReadKind.TEXT, Expectation(Mode.EQUALS, text), locator, label)


def expect_text_contains(locator: str, text: str, label: str = "") -> Assertion:
    """Element text contains `text`."""
    return Assertion(ReadKind.TEXT, Expectation(Mode.CONTAINS, text), locator, label)


def expect_visible(locator: str, label: str = "") -> Assertion:
    """Element is visible."""
    return Assertion(ReadKind.VISIBILITY, Expectation(Mode.VISIBLE), locator, label)


def expect_hidden(locator: str, label: str = "") -> Assertion:
    """Element is absent or not visible."""
    return Assertion(ReadKind.VISIBILITY, Expectation(Mode.HIDDEN), locator, label)


def expect_count(locator: str, count: int, label: str = "") -> Assertion:
    """Number of elements matching the locator equals `count`."""
    return Assertion(ReadKind.COUNT, Expectation(Mode.COUNT, count), locator, label)


def expect_url(url: str, label: str = "") -> Assertion:
    """Current URL equals `url`."""
    return Assertion(ReadKind.URL, Expectation(Mode.EQUALS, url), label=label)


def expect_url_matches(pattern: str, label: str = "") -> Assertion:
    """Current URL matches the regular expression `pattern`."""
    return Assertion(ReadKind.URL, Expectation(Mode.MATCHES, pattern), label=label)


def expect_non_decreasing(locator: str, convert: Optional[str] = None, label: str = "") -> Assertion:
    """Texts of all matching elements, optionally converted, never decrease."""
    return Assertion(
        ReadKind.TEXTS, Expectation(Mode.NON_DECREASING, convert=convert), locator, label
    )


class HarnessError(Exception):
    """Base exception for harness errors."""

    pass


class StepError(HarnessError):
    """A step failed; the enclosing case stops at `step_index`."""

    def __init__(self, message: str, step_index: int):
        self.step_index = step_index
        super().__init__(message)


class ActionTimeoutError(StepError):
    """Target did not complete a step within the bounded timeout."""

    def __init__(self, step_name: str, step_index: int, timeout_s: float):
        self.step_name = step_name
        self.timeout_s = timeout_s
        super().__init__(
            f"Step {step_index} '{step_name}' did not complete within {timeout_s:.1f}s",
            step_index,
        )


class AssertionFailure(StepError):
    """Observed target state did not satisfy an expectation."""

    def __init__(
        self,
        expected: str,
        actual: Any,
        step_index: int,
        position: Optional[int] = None,
    ):
        self.expected = expected
        self.actual = actual
        self.position = position
        message = f"Step {step_index}: expected {expected}, actual {actual}"
        if position is not None:
            message += f" (first out-of-order index {position})"
        super().__init__(message, step_index)
