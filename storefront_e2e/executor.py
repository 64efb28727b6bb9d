"""
Step executor.

Runs one Action or Assertion against a target. Every await on the target
is bounded by `RunSettings.step_timeout_s`; an expired bound cancels the
pending target call and raises ActionTimeoutError.
"""

import asyncio
import logging
from typing import Any

from storefront_e2e.config import RunSettings
from storefront_e2e.expectations import Comparison, compare, render
from storefront_e2e.steps import (
    Action,
    ActionKind,
    ActionTimeoutError,
    Assertion,
    AssertionFailure,
    ReadKind,
    Step,
)
from storefront_e2e.target import Target

logger = logging.getLogger(__name__)

_TIMEOUTS = (asyncio.TimeoutError, TimeoutError)


async def _perform(action: Action, target: Target, settle_timeout_s: float) -> None:
    if action.kind == ActionKind.NAVIGATE:
        await target.navigate(action.value)
    elif action.kind == ActionKind.FILL:
        await target.fill(action.locator, action.value)
    elif action.kind == ActionKind.CLICK:
        await target.click(action.locator)
    elif action.kind == ActionKind.SELECT_OPTION:
        await target.select_option(action.locator, action.value)
    else:
        raise ValueError(f"Unknown action kind: {action.kind}")

    await target.wait_for_quiescence(settle_timeout_s)


async def _read(assertion: Assertion, target: Target) -> Any:
    read = assertion.read
    if read == ReadKind.TEXT:
        return await target.read_text(assertion.locator)
    if read == ReadKind.TEXTS:
        # One capture of the whole sequence; compared after the read returns
        return list(await target.read_texts(assertion.locator))
    if read == ReadKind.VISIBILITY:
        return await target.read_visibility(assertion.locator)
    if read == ReadKind.COUNT:
        return await target.read_count(assertion.locator)
    if read == ReadKind.URL:
        return await target.read_url()
    raise ValueError(f"Unknown read kind: {read}")


async def execute_action(action: Action, target: Target, index: int, settings: RunSettings) -> str:
    """
    Perform an action and wait for the target to settle.

    Args:
        action: Action to perform.
        target: Target to act on.
        index: Position of the step in its case.
        settings: Run settings.

    Returns:
        Short description of what was done.

    Raises:
        ActionTimeoutError: If the action plus quiescence exceeds the step timeout.
    """
    try:
        await asyncio.wait_for(
            _perform(action, target, settings.step_timeout_s), timeout=settings.step_timeout_s
        )
    except _TIMEOUTS:
        raise ActionTimeoutError(action.name, index, settings.step_timeout_s) from None

    logger.debug(f"Step {index}: {action.name} done")
    return "done"


async def execute_assertion(
    assertion: Assertion, target: Target, index: int, settings: RunSettings
) -> str:
    """
    Read target state and compare it against the assertion's expectation.

    The read is repeated every `poll_interval_s` until it matches or
    `assertion_timeout_s` has elapsed, so an assertion made right after an
    action tolerates late rendering. The last observation is reported.

    Args:
        assertion: Assertion to check.
        target: Target to read from.
        index: Position of the step in its case.
        settings: Run settings.

    Returns:
        Rendered observed value.

    Raises:
        ActionTimeoutError: If a single read exceeds the step timeout.
        AssertionFailure: If the expectation is still unmet when the window closes.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + settings.assertion_timeout_s

    while True:
        try:
            actual = await asyncio.wait_for(_read(assertion, target), timeout=settings.step_timeout_s)
        except _TIMEOUTS:
            raise ActionTimeoutError(assertion.name, index, settings.step_timeout_s) from None

        try:
            result = compare(assertion.expectation, actual)
        except ValueError as e:
            # Unparseable capture, e.g. a cell still rendering
            result = Comparison(False, f"{render(actual)} ({e})")
        if result.passed:
            return result.actual
        if loop.time() >= deadline:
            break
        await asyncio.sleep(settings.poll_interval_s)

    raise AssertionFailure(
        assertion.expectation.describe(), result.actual, index, position=result.index
    )


async def execute_step(step: Step, target: Target, index: int, settings: RunSettings) -> str:
    """
    Run one step against a target.

    Args:
        step: Action or Assertion.
        target: Target to run against.
        index: Position of the step in its case.
        settings: Run settings.

    Returns:
        Short description of the outcome, for step reports.
    """
    if isinstance(step, Action):
        return await execute_action(step, target, index, settings)
    if isinstance(step, Assertion):
        return await execute_assertion(step, target, index, settings)
    raise TypeError(f"Not a step: {step!r}")
