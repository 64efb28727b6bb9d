"""
Suite preconditions.

A precondition is a named, ordered list of steps (for example "logged in")
run against a fresh target before every case of its suite.
"""

import logging
from dataclasses import dataclass
from typing import Tuple

from storefront_e2e.config import RunSettings
from storefront_e2e.executor import execute_step
from storefront_e2e.steps import HarnessError, Step
from storefront_e2e.target import InfrastructureError, Target

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Precondition:
    """
    Shared setup routine.

    Attributes:
        name: Precondition name, e.g. "logged in".
        steps: Steps run in order before each case.
    """

    name: str
    steps: Tuple[Step, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "steps", tuple(self.steps))


class PreconditionError(HarnessError):
    """Setup failed; the case is errored and none of its steps run."""

    def __init__(self, precondition: str, cause: BaseException, step_index: int):
        self.precondition = precondition
        self.cause = cause
        self.step_index = step_index
        super().__init__(
            f"Precondition '{precondition}' failed at step {step_index}: {cause}"
        )


async def apply_precondition(
    routine: Precondition, target: Target, settings: RunSettings
) -> Target:
    """
    Prepare a fresh target by running a precondition to completion.

    Args:
        routine: Precondition to run.
        target: Fresh target handle.
        settings: Run settings.

    Returns:
        The prepared target.

    Raises:
        PreconditionError: If any precondition step fails.
        InfrastructureError: If the target itself is unusable.
    """
    logger.debug(f"Applying precondition '{routine.name}' ({len(routine.steps)} steps)")

    for index, step in enumerate(routine.steps):
        try:
            await execute_step(step, target, index, settings)
        except InfrastructureError:
            raise
        except Exception as e:
            logger.warning(f"Precondition '{routine.name}' failed at step {index}: {e}")
            raise PreconditionError(routine.name, e, index) from e

    return target
