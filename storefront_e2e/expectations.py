"""
Expectation values and the comparator that evaluates them.

An Expectation is plain data: an expected value plus a comparison mode.
Every assertion in a suite is checked by the single `compare()` function
below, so adding a mode means adding one branch here.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Sequence


class Mode(Enum):
    """Comparison modes understood by `compare()`."""

    EQUALS = "equals"
    CONTAINS = "contains"
    MATCHES = "matches"
    VISIBLE = "visible"
    HIDDEN = "hidden"
    COUNT = "count"
    NON_DECREASING = "non_decreasing"


def _to_number(value: str) -> float:
    return float(value.strip().replace(",", ""))


def _to_price(value: str) -> float:
    # "$29.99" -> 29.99
    return _to_number(value.strip().lstrip("$€£"))


CONVERTERS: Dict[str, Callable[[str], Any]] = {
    "number": _to_number,
    "price": _to_price,
}


@dataclass(frozen=True)
class Expectation:
    """
    Expected value and how to compare against it.

    Attributes:
        mode: Comparison mode.
        value: Expected value (text, pattern, count). Unused for
            VISIBLE, HIDDEN and NON_DECREASING.
        convert: Optional converter name from CONVERTERS, applied to each
            captured value before comparison.
    """

    mode: Mode
    value: Any = None
    convert: Optional[str] = None

    def __post_init__(self) -> None:
        if self.convert is not None and self.convert not in CONVERTERS:
            raise ValueError(f"Unknown converter '{self.convert}'")

    def describe(self) -> str:
        """Short human-readable form used in failure messages."""
        if self.mode == Mode.VISIBLE:
            return "visible"
        if self.mode == Mode.HIDDEN:
            return "not visible"
        if self.mode == Mode.NON_DECREASING:
            return "non-decreasing sequence"
        if self.mode == Mode.COUNT:
            return f"count {self.value}"
        return f"{self.mode.value} {self.value!r}"


@dataclass(frozen=True)
class Comparison:
    """
    Outcome of comparing an observed value against an Expectation.

    Attributes:
        passed: True if the observation satisfies the expectation.
        actual: Observed value, rendered for reports.
        index: First offending index for sequence checks, else None.
    """

    passed: bool
    actual: str
    index: Optional[int] = None


def normalize_text(text: Optional[str]) -> Optional[str]:
    """Collapse runs of whitespace and strip, the way rendered text reads."""
    if text is None:
        return None
    return " ".join(text.split())


def check_non_decreasing(values: Sequence[Any]) -> Comparison:
    """
    Check that a captured sequence never decreases.

    The whole sequence is evaluated in one pass over an already captured
    list, never against live target state.

    Args:
        values: Captured values.

    Returns:
        Comparison with `index` set to the first position whose value is
        smaller than its predecessor.
    """
    for i in range(1, len(values)):
        if values[i] < values[i - 1]:
            return Comparison(False, repr(list(values)), index=i)
    return Comparison(True, repr(list(values)))


def render(value: Any) -> str:
    """Render an observed value for reports."""
    if value is None:
        return "absent"
    if isinstance(value, bool):
        return "visible" if value else "not visible"
    if isinstance(value, str):
        return repr(value)
    return str(value)


def compare(expectation: Expectation, actual: Any) -> Comparison:
    """
    Compare an observed value against an expectation.

    Args:
        expectation: What the assertion expects.
        actual: Value read from the target. A string (or None when the
            element is absent) for text/url reads, a bool for visibility,
            an int for count, a list of strings for sequence reads.

    Returns:
        Comparison result.

    Raises:
        ValueError: If a converter cannot parse a captured value.
    """
    mode = expectation.mode

    if mode == Mode.VISIBLE:
        return Comparison(bool(actual), render(bool(actual)))

    if mode == Mode.HIDDEN:
        return Comparison(not actual, render(bool(actual)))

    if mode == Mode.COUNT:
        return Comparison(actual == expectation.value, render(actual))

    if mode == Mode.NON_DECREASING:
        values = list(actual or [])
        if expectation.convert:
            converter = CONVERTERS[expectation.convert]
            values = [converter(v) for v in values]
        return check_non_decreasing(values)

    if isinstance(actual, (list, tuple)):
        observed = [normalize_text(v) for v in actual]
        if mode == Mode.EQUALS:
            expected = [normalize_text(v) for v in expectation.value]
            return Comparison(observed == expected, repr(observed))
        if mode == Mode.CONTAINS:
            return Comparison(normalize_text(expectation.value) in observed, repr(observed))
        raise ValueError(f"Mode {mode.value} does not apply to a sequence")

    text = normalize_text(actual)
    if text is None:
        return Comparison(False, render(None))

    if mode == Mode.EQUALS:
        return Comparison(text == normalize_text(str(expectation.value)), render(text))
    if mode == Mode.CONTAINS:
        return Comparison(normalize_text(str(expectation.value)) in text, render(text))
    if mode == Mode.MATCHES:
        return Comparison(re.search(expectation.value, text) is not None, render(text))

    raise ValueError(f"Unsupported comparison mode: {mode}")
