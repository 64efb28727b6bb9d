"""
Verdicts, case reports and run aggregation.

Each case ends in exactly one Verdict. The ResultAggregator collects them
per suite in declared case order and computes totals and the process exit
status.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


class CaseState(Enum):
    """Case lifecycle state."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"
    ERRORED = "errored"

    @property
    def is_terminal(self) -> bool:
        return self in (CaseState.PASSED, CaseState.FAILED, CaseState.ERRORED)


_TRANSITIONS = {
    CaseState.NOT_STARTED: {CaseState.RUNNING, CaseState.ERRORED},
    CaseState.RUNNING: {CaseState.PASSED, CaseState.FAILED, CaseState.ERRORED},
}


class CaseRun:
    """
    Case state machine.

    NOT_STARTED -> RUNNING -> {PASSED | FAILED | ERRORED}. A case that never
    started (its suite was aborted first) may go straight to ERRORED.
    Terminal states are final.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.state = CaseState.NOT_STARTED

    def advance(self, new_state: CaseState) -> None:
        """
        Move to a new state.

        Raises:
            RuntimeError: If the transition is not allowed.
        """
        if new_state not in _TRANSITIONS.get(self.state, set()):
            raise RuntimeError(
                f"Case '{self.name}': illegal transition {self.state.value} -> {new_state.value}"
            )
        self.state = new_state


@dataclass(frozen=True)
class Verdict:
    """
    Final outcome of one case.

    Attributes:
        state: PASSED, FAILED or ERRORED.
        reason: Failure or error message (empty when passed).
        step_index: Index of the failing step, if any.
        expected: Expected value for assertion failures.
        actual: Observed value for assertion failures.
        error_type: Exception class name for failures and errors.
    """

    state: CaseState
    reason: str = ""
    step_index: Optional[int] = None
    expected: Optional[str] = None
    actual: Optional[str] = None
    error_type: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.state.is_terminal:
            raise ValueError(f"Verdict state must be terminal, got {self.state.value}")

    @classmethod
    def passed(cls) -> "Verdict":
        return cls(CaseState.PASSED)

    @classmethod
    def failed(
        cls,
        reason: str,
        step_index: int,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
        error_type: Optional[str] = None,
    ) -> "Verdict":
        return cls(CaseState.FAILED, reason, step_index, expected, actual, error_type)

    @classmethod
    def errored(cls, reason: str, error_type: Optional[str] = None) -> "Verdict":
        return cls(CaseState.ERRORED, reason, error_type=error_type)

    @property
    def is_passed(self) -> bool:
        return self.state == CaseState.PASSED


@dataclass(frozen=True)
class StepResult:
    """Result of a single executed step."""

    index: int
    name: str
    passed: bool
    message: str = ""
    duration_s: float = 0.0


@dataclass(frozen=True)
class CaseReport:
    """Recorded outcome of one case."""

    suite: str
    name: str
    verdict: Verdict
    duration_s: float = 0.0
    steps: Tuple[StepResult, ...] = ()

    @property
    def steps_executed(self) -> int:
        return len(self.steps)


@dataclass
class SuiteSummary:
    """
    Ordered case reports of one suite.

    Attributes:
        name: Suite name.
        cases: Case reports in declared order.
        aborted: Reason the suite was aborted, or None.
    """

    name: str
    cases: List[CaseReport] = field(default_factory=list)
    aborted: Optional[str] = None

    def count(self, state: CaseState) -> int:
        return sum(1 for c in self.cases if c.verdict.state == state)

    @property
    def passed_count(self) -> int:
        return self.count(CaseState.PASSED)

    @property
    def failed_count(self) -> int:
        return self.count(CaseState.FAILED)

    @property
    def errored_count(self) -> int:
        return self.count(CaseState.ERRORED)


@dataclass(frozen=True)
class RunTotals:
    """Aggregate counts and exit status of a run."""

    passed: int
    failed: int
    errored: int
    exit_status: int

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.errored

    def as_dict(self) -> Dict[str, int]:
        return {"passed": self.passed, "failed": self.failed, "errored": self.errored}


class ResultAggregator:
    """
    Collects verdicts into per-suite summaries.

    Verdicts are write-once: recording the same suite/case pair twice is
    an error.
    """

    def __init__(self) -> None:
        self._summaries: Dict[str, SuiteSummary] = {}
        self._seen: set = set()

    def begin_suite(self, suite_name: str) -> SuiteSummary:
        """Return the summary for a suite, creating it if needed."""
        if suite_name not in self._summaries:
            self._summaries[suite_name] = SuiteSummary(suite_name)
        return self._summaries[suite_name]

    def record(
        self,
        suite_name: str,
        case_name: str,
        verdict: Verdict,
        duration_s: float = 0.0,
        steps: Sequence[StepResult] = (),
    ) -> CaseReport:
        """
        Append a case verdict to its suite summary.

        Raises:
            ValueError: If the case already has a verdict.
        """
        key = (suite_name, case_name)
        if key in self._seen:
            raise ValueError(f"Verdict for '{suite_name} / {case_name}' already recorded")
        self._seen.add(key)

        report = CaseReport(suite_name, case_name, verdict, duration_s, tuple(steps))
        self.begin_suite(suite_name).cases.append(report)

        status = verdict.state.value.upper()
        logger.info(f"[{status}] {suite_name} / {case_name} ({duration_s:.2f}s)")
        if not verdict.is_passed:
            logger.info(f"         {verdict.reason}")
        return report

    def mark_aborted(self, suite_name: str, reason: str) -> None:
        """Flag a suite as aborted by an infrastructure failure."""
        self.begin_suite(suite_name).aborted = reason
        logger.error(f"Suite '{suite_name}' aborted: {reason}")

    @property
    def summaries(self) -> List[SuiteSummary]:
        """Suite summaries in the order they were started."""
        return list(self._summaries.values())

    def finalize(self) -> RunTotals:
        """
        Compute run totals.

        Returns:
            Counts per verdict and exit status 0 only if every verdict passed
            and no suite was aborted.
        """
        summaries = self.summaries
        passed = sum(s.passed_count for s in summaries)
        failed = sum(s.failed_count for s in summaries)
        errored = sum(s.errored_count for s in summaries)
        aborted = any(s.aborted for s in summaries)
        exit_status = 0 if failed == 0 and errored == 0 and not aborted else 1
        return RunTotals(passed, failed, errored, exit_status)
