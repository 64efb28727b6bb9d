"""
Scenario registry.

Holds suites of cases in registration order. Registration order is
execution order; nothing is reordered.
"""

import fnmatch
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, List, Optional, Tuple

from storefront_e2e.precondition import Precondition
from storefront_e2e.steps import HarnessError, Step

if TYPE_CHECKING:
    from storefront_e2e.config import RunSettings
    from storefront_e2e.results import SuiteSummary
    from storefront_e2e.target import TargetFactory

logger = logging.getLogger(__name__)


class DuplicateNameError(HarnessError):
    """A suite or case name is already taken."""

    def __init__(self, kind: str, name: str):
        self.kind = kind
        self.name = name
        super().__init__(f"Duplicate {kind} name: '{name}'")


@dataclass(frozen=True)
class Case:
    """
    Named, ordered sequence of steps.

    Attributes:
        name: Case name, unique within its suite.
        steps: Steps run in declared order.
    """

    name: str
    steps: Tuple[Step, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "steps", tuple(self.steps))


@dataclass(frozen=True)
class Suite:
    """
    Named group of cases sharing a precondition.

    Attributes:
        name: Suite name, unique within the registry.
        cases: Cases in declared order.
        precondition: Setup run on a fresh target before every case.
        tags: Labels usable as run selectors.
    """

    name: str
    cases: Tuple[Case, ...]
    precondition: Optional[Precondition] = None
    tags: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "cases", tuple(self.cases))
        object.__setattr__(self, "tags", tuple(self.tags))

        seen = set()
        for case in self.cases:
            if case.name in seen:
                raise DuplicateNameError("case", f"{self.name} / {case.name}")
            seen.add(case.name)

    def matches(self, selector: Optional[str]) -> bool:
        """
        Check a run selector against this suite.

        A selector matches when it is a case-insensitive glob of the suite
        name, or equal to one of its tags.
        """
        if not selector:
            return True
        if fnmatch.fnmatch(self.name.lower(), selector.lower()):
            return True
        return selector.lower() in (t.lower() for t in self.tags)


class Registry:
    """Ordered collection of suites."""

    def __init__(self) -> None:
        self._suites: List[Suite] = []

    def register(self, suite: Suite) -> Suite:
        """
        Add a suite.

        Args:
            suite: Suite to add.

        Returns:
            The registered suite.

        Raises:
            DuplicateNameError: If a suite with the same name exists.
        """
        if any(s.name == suite.name for s in self._suites):
            raise DuplicateNameError("suite", suite.name)
        self._suites.append(suite)
        logger.debug(f"Registered suite '{suite.name}' ({len(suite.cases)} cases)")
        return suite

    def suites(self, selector: Optional[str] = None) -> List[Suite]:
        """Suites matching a selector, in registration order."""
        return [s for s in self._suites if s.matches(selector)]

    def list_suites(self) -> List[dict]:
        """
        List registered suites.

        Returns:
            List of suite info dictionaries.
        """
        return [
            {
                "name": s.name,
                "tags": list(s.tags),
                "cases": len(s.cases),
                "precondition": s.precondition.name if s.precondition else None,
            }
            for s in self._suites
        ]

    def __len__(self) -> int:
        return len(self._suites)

    def __iter__(self):
        return iter(self._suites)

    async def run(
        self,
        targets: "TargetFactory",
        selector: Optional[str] = None,
        settings: Optional["RunSettings"] = None,
    ) -> List["SuiteSummary"]:
        """
        Run all suites, or only those matching `selector`.

        Args:
            targets: Factory handing out one isolated target per case.
            selector: Optional suite name glob or tag.
            settings: Run settings; defaults when None.

        Returns:
            One summary per executed suite, in registration order.
        """
        from storefront_e2e.runner import SuiteRunner

        runner = SuiteRunner(targets, settings)
        await runner.run(self.suites(selector))
        return runner.aggregator.summaries
