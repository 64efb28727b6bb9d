"""
Run reports.

Machine-readable JSON summary and the human-readable console summary.
Both list cases in declared order so consecutive runs diff cleanly.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from storefront_e2e.results import CaseReport, RunTotals, SuiteSummary


def case_to_dict(case: CaseReport) -> dict:
    """Convert a case report to a JSON-serializable dict."""
    verdict = case.verdict
    data = {
        "suite": case.suite,
        "case": case.name,
        "verdict": verdict.state.value,
        "duration_s": round(case.duration_s, 3),
        "steps": [
            {
                "index": s.index,
                "name": s.name,
                "passed": s.passed,
                "message": s.message,
                "duration_s": round(s.duration_s, 3),
            }
            for s in case.steps
        ],
    }
    if not verdict.is_passed:
        data["failure"] = {
            "reason": verdict.reason,
            "type": verdict.error_type,
            "step_index": verdict.step_index,
            "expected": verdict.expected,
            "actual": verdict.actual,
        }
    return data


def build_report(summaries: List[SuiteSummary], totals: RunTotals) -> dict:
    """
    Build the JSON report document.

    Args:
        summaries: Suite summaries in execution order.
        totals: Run totals.

    Returns:
        Report dictionary.
    """
    return {
        "generated_at": datetime.now().isoformat(timespec="seconds"),
        "totals": totals.as_dict(),
        "exit_status": totals.exit_status,
        "suites": [
            {
                "name": s.name,
                "aborted": s.aborted,
                "passed": s.passed_count,
                "failed": s.failed_count,
                "errored": s.errored_count,
                "cases": [case_to_dict(c) for c in s.cases],
            }
            for s in summaries
        ],
    }


def write_json_report(
    summaries: List[SuiteSummary], totals: RunTotals, path: Path
) -> Path:
    """Write the JSON report to `path`, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(build_report(summaries, totals), f, indent=2)
    return path


def print_report(summary: SuiteSummary, verbose: bool = False) -> None:
    """Print formatted suite report."""
    print(f"\n{'=' * 60}")
    print(f"Suite: {summary.name}")
    if summary.aborted:
        print(f"ABORTED: {summary.aborted}")
    print("-" * 60)

    for case in summary.cases:
        status = case.verdict.state.value.upper()
        print(f"  [{status:7}] {case.name} ({case.duration_s:.2f}s)")
        if not case.verdict.is_passed:
            print(f"            {case.verdict.reason}")
        if verbose:
            for step in case.steps:
                mark = "PASS" if step.passed else "FAIL"
                print(f"              [{mark}] {step.name}")

    print("=" * 60)


def print_summary(
    summaries: List[SuiteSummary], totals: RunTotals, report_path: Optional[Path] = None
) -> None:
    """Print summary of all suite results."""
    print(f"\n{'=' * 60}")
    print("STOREFRONT E2E SUMMARY")
    print("=" * 60)

    for summary in summaries:
        status = "ABORTED" if summary.aborted else (
            "PASSED" if summary.failed_count == 0 and summary.errored_count == 0 else "FAILED"
        )
        counts = f"{summary.passed_count}/{len(summary.cases)}"
        print(f"  [{status:7}] {summary.name}: {counts} cases passed")

    print("-" * 60)
    print(f"Total: {totals.passed} passed, {totals.failed} failed, {totals.errored} errored")
    print(f"Overall: {'PASSED' if totals.exit_status == 0 else 'FAILED'}")
    if report_path is not None:
        print(f"Report: {report_path}")
    print("=" * 60)
