"""
Suite runner.

Runs suites one after another in registration order. Within a suite the
cases run concurrently, bounded by `RunSettings.workers`, each on its own
target from the factory, so no target state is shared between cases.
Verdicts are recorded in declared case order once the suite completes.
"""

import asyncio
import logging
import time
from typing import Callable, List, Optional, Sequence

from storefront_e2e.config import RunSettings
from storefront_e2e.executor import execute_step
from storefront_e2e.precondition import PreconditionError, apply_precondition
from storefront_e2e.registry import Case, Suite
from storefront_e2e.results import (
    CaseReport,
    CaseRun,
    CaseState,
    ResultAggregator,
    RunTotals,
    StepResult,
    SuiteSummary,
    Verdict,
)
from storefront_e2e.steps import ActionTimeoutError, AssertionFailure
from storefront_e2e.target import InfrastructureError, TargetFactory

logger = logging.getLogger(__name__)

CaseCallback = Callable[[CaseReport], None]


class SuiteRunner:
    """
    Executes suites against targets from a factory.

    Attributes:
        targets: Factory giving out one isolated target per case.
        settings: Run settings.
        aggregator: Collected verdicts.
    """

    def __init__(
        self,
        targets: TargetFactory,
        settings: Optional[RunSettings] = None,
        on_case: Optional[CaseCallback] = None,
    ) -> None:
        """
        Initialize runner.

        Args:
            targets: Target factory.
            settings: Run settings (defaults when None).
            on_case: Called with each case report as soon as the case ends.
        """
        self.targets = targets
        self.settings = settings or RunSettings()
        self.aggregator = ResultAggregator()
        self.on_case = on_case

    async def run(self, suites: Sequence[Suite]) -> RunTotals:
        """
        Run suites in the given order.

        Each call starts a fresh aggregator, so a runner can be reused.

        Returns:
            Totals over every recorded verdict.
        """
        self.aggregator = ResultAggregator()
        for suite in suites:
            await self.run_suite(suite)
        return self.aggregator.finalize()

    async def run_suite(self, suite: Suite) -> SuiteSummary:
        """
        Run every case of one suite.

        An InfrastructureError in any case aborts the suite: in-flight cases
        are cancelled (releasing their targets) and every case without a
        verdict is recorded as errored.
        """
        summary = self.aggregator.begin_suite(suite.name)
        logger.info(f"Running suite: {suite.name} ({len(suite.cases)} cases)")

        semaphore = asyncio.Semaphore(self.settings.workers)
        runs = [CaseRun(case.name) for case in suite.cases]
        tasks = [
            asyncio.create_task(self._run_slot(suite, case, run, semaphore))
            for case, run in zip(suite.cases, runs)
        ]

        abort: Optional[InfrastructureError] = None
        try:
            await asyncio.gather(*tasks)
        except InfrastructureError as e:
            abort = e
        finally:
            # Covers operator aborts too: nothing is left running
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

        for case, run, task in zip(suite.cases, runs, tasks):
            # Cases that returned normally were reported from _run_slot
            reported = task.done() and not task.cancelled() and task.exception() is None
            report = self._collect(suite, case, run, task, abort)
            self.aggregator.record(
                suite.name, case.name, report.verdict, report.duration_s, report.steps
            )
            if self.on_case and not reported:
                self.on_case(report)

        if abort is not None:
            self.aggregator.mark_aborted(suite.name, str(abort))

        logger.info(
            f"Suite '{suite.name}': {summary.passed_count} passed, "
            f"{summary.failed_count} failed, {summary.errored_count} errored"
        )
        return summary

    def _collect(
        self,
        suite: Suite,
        case: Case,
        run: CaseRun,
        task: "asyncio.Task[CaseReport]",
        abort: Optional[InfrastructureError],
    ) -> CaseReport:
        if task.done() and not task.cancelled():
            error = task.exception()
            if error is None:
                return task.result()
            if isinstance(error, InfrastructureError):
                if not run.state.is_terminal:
                    run.advance(CaseState.ERRORED)
                return CaseReport(
                    suite.name,
                    case.name,
                    Verdict.errored(f"Infrastructure failure: {error}", "InfrastructureError"),
                )

        if not run.state.is_terminal:
            run.advance(CaseState.ERRORED)
        reason = f"Suite aborted: {abort}" if abort is not None else "Case cancelled"
        return CaseReport(suite.name, case.name, Verdict.errored(reason, "Cancelled"))

    async def _run_slot(
        self, suite: Suite, case: Case, run: CaseRun, semaphore: asyncio.Semaphore
    ) -> CaseReport:
        async with semaphore:
            report = await self._run_case(suite, case, run)
        if self.on_case:
            self.on_case(report)
        return report

    async def _run_case(self, suite: Suite, case: Case, run: CaseRun) -> CaseReport:
        """Run one case on a fresh target and return its report."""
        start_time = time.monotonic()
        results: List[StepResult] = []
        verdict = Verdict.passed()

        run.advance(CaseState.RUNNING)
        logger.info(f"Running case: {suite.name} / {case.name}")

        try:
            async with self.targets.open() as target:
                if suite.precondition is not None:
                    await apply_precondition(suite.precondition, target, self.settings)

                for index, step in enumerate(case.steps):
                    step_start = time.monotonic()
                    try:
                        message = await execute_step(step, target, index, self.settings)
                    except (AssertionFailure, ActionTimeoutError) as e:
                        results.append(
                            StepResult(index, step.name, False, str(e), time.monotonic() - step_start)
                        )
                        logger.warning(f"  [FAIL] {step.name}: {e}")
                        verdict = Verdict.failed(
                            str(e),
                            index,
                            expected=getattr(e, "expected", None),
                            actual=getattr(e, "actual", None),
                            error_type=type(e).__name__,
                        )
                        break

                    results.append(
                        StepResult(index, step.name, True, message, time.monotonic() - step_start)
                    )
                    logger.info(f"  [PASS] {step.name}: {message}")

        except InfrastructureError:
            run.advance(CaseState.ERRORED)
            raise
        except PreconditionError as e:
            verdict = Verdict.errored(str(e), type(e).__name__)
        except Exception as e:
            logger.error(f"Case '{case.name}' raised: {e}", exc_info=True)
            verdict = Verdict.errored(f"{type(e).__name__}: {e}", type(e).__name__)

        run.advance(verdict.state)
        return CaseReport(
            suite.name, case.name, verdict, time.monotonic() - start_time, tuple(results)
        )
