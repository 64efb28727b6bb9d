"""
Command-line entry point.

    storefront-e2e list
    storefront-e2e run [FILTER] [--timeout-ms N] [--workers N] [--report PATH]

Exit status of `run` is 0 only if every case passed.
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from storefront_e2e.config import Config, LoggingConfig, load_config
from storefront_e2e.registry import Registry
from storefront_e2e.report import print_report, print_summary, write_json_report
from storefront_e2e.results import RunTotals, SuiteSummary
from storefront_e2e.runner import SuiteRunner
from storefront_e2e.suites import build_registry
from storefront_e2e.target import InfrastructureError

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)-8s] %(name)-28s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(config: LoggingConfig, console: Optional[bool] = None) -> Path:
    """
    Configure root logging to a timestamped file, optionally mirrored to stderr.

    Args:
        config: Logging configuration.
        console: Override for `config.log_to_console`.

    Returns:
        Path of the log file.
    """
    log_dir = Path(config.log_dir).expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f"storefront_e2e_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    handlers: List[logging.Handler] = [logging.FileHandler(log_file)]
    if config.log_to_console if console is None else console:
        handlers.append(logging.StreamHandler(sys.stderr))

    logging.basicConfig(
        level=getattr(logging, config.level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        handlers=handlers,
        force=True,
    )
    return log_file


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Return a copy of `config` with command-line overrides applied."""
    run_updates = {}
    if getattr(args, "timeout_ms", None) is not None:
        run_updates["step_timeout_ms"] = args.timeout_ms
    if getattr(args, "workers", None) is not None:
        run_updates["workers"] = args.workers
    if getattr(args, "report", None) is not None:
        run_updates["report_path"] = args.report

    target_updates = {}
    if getattr(args, "headed", False):
        target_updates["headless"] = False
    if getattr(args, "base_url", None):
        target_updates["base_url"] = args.base_url
    if getattr(args, "browser", None):
        target_updates["browser"] = args.browser

    return config.model_copy(
        update={
            "run": config.run.model_copy(update=run_updates),
            "target": config.target.model_copy(update=target_updates),
        }
    )


async def run_suites(
    registry: Registry, config: Config, selector: Optional[str] = None
) -> tuple[List[SuiteSummary], RunTotals]:
    """
    Launch a browser and run the selected suites.

    Returns:
        Suite summaries and run totals.
    """
    from storefront_e2e.playwright_target import PlaywrightTargets

    settings = config.run.to_settings()
    async with PlaywrightTargets(config.target, config.run.step_timeout_ms) as targets:
        runner = SuiteRunner(targets, settings)
        totals = await runner.run(registry.suites(selector))
    return runner.aggregator.summaries, totals


def cmd_list(registry: Registry, args: argparse.Namespace) -> int:
    for i, info in enumerate(registry.list_suites(), start=1):
        tags = ", ".join(info["tags"]) or "-"
        print(f"{i}. {info['name']}  [{tags}]  {info['cases']} cases")
        if info["precondition"]:
            print(f"     precondition: {info['precondition']}")
        if args.cases:
            suite = registry.suites(info["name"])[0]
            for case in suite.cases:
                print(f"     - {case.name}")
    return 0


def cmd_run(registry: Registry, config: Config, args: argparse.Namespace) -> int:
    suites = registry.suites(args.filter)
    if not suites:
        print(f"Error: No suites match '{args.filter}'", file=sys.stderr)
        return 2

    logger.info(f"Running {len(suites)} suite(s) against {config.target.base_url}")

    try:
        summaries, totals = asyncio.run(run_suites(registry, config, args.filter))
    except InfrastructureError as e:
        logger.critical(f"Infrastructure failure: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nAborted by user", file=sys.stderr)
        return 130

    for summary in summaries:
        print_report(summary, verbose=args.verbose)

    report_path = None
    if config.run.report_path:
        report_path = write_json_report(summaries, totals, Path(config.run.report_path))

    print_summary(summaries, totals, report_path)
    return totals.exit_status


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storefront-e2e", description="Run storefront end-to-end suites"
    )
    parser.add_argument("--config", type=Path, help="Configuration file (TOML)")
    sub = parser.add_subparsers(dest="command", required=True)

    list_parser = sub.add_parser("list", help="List registered suites")
    list_parser.add_argument("--cases", action="store_true", help="Show case names")
    list_parser.add_argument(
        "--config", type=Path, default=argparse.SUPPRESS, help="Configuration file (TOML)"
    )

    run_parser = sub.add_parser("run", help="Run suites")
    run_parser.add_argument("filter", nargs="?", help="Suite name glob or tag")
    run_parser.add_argument("--timeout-ms", type=int, help="Per-step timeout override (ms)")
    run_parser.add_argument("--workers", type=int, help="Concurrent cases per suite")
    run_parser.add_argument("--report", help="Write JSON report to this path")
    run_parser.add_argument("--base-url", help="Store base URL")
    run_parser.add_argument(
        "--browser", choices=["chromium", "firefox", "webkit"], help="Browser engine"
    )
    run_parser.add_argument("--headed", action="store_true", help="Show the browser window")
    run_parser.add_argument("-v", "--verbose", action="store_true", help="Print every step")
    run_parser.add_argument(
        "--config", type=Path, default=argparse.SUPPRESS, help="Configuration file (TOML)"
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for storefront-e2e."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "run":
        # model_copy does not re-validate
        if args.timeout_ms is not None and args.timeout_ms <= 0:
            parser.error("--timeout-ms must be positive")
        if args.workers is not None and args.workers < 1:
            parser.error("--workers must be at least 1")

    config = apply_overrides(load_config(args.config), args)

    if args.command == "list":
        return cmd_list(build_registry(config.target.base_url), args)

    log_file = configure_logging(config.logging)
    logger.info(f"Log file: {log_file}")
    return cmd_run(build_registry(config.target.base_url), config, args)


if __name__ == "__main__":
    sys.exit(main())
