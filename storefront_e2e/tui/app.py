"""
Interactive suite runner using Textual.

Pick a suite (or all of them), watch case verdicts arrive, and read the
failure detail of the selected case.
"""

import logging
from datetime import datetime
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import DataTable, Footer, Header, Label, ListItem, ListView, Log

from storefront_e2e.cli import LOG_DATEFMT, LOG_FORMAT
from storefront_e2e.config import Config, load_config
from storefront_e2e.registry import Registry
from storefront_e2e.results import CaseReport
from storefront_e2e.runner import SuiteRunner
from storefront_e2e.suites import build_registry
from storefront_e2e.target import InfrastructureError

logger = logging.getLogger(__name__)


class SuiteSelectScreen(ModalScreen[int | None]):
    """Modal screen for selecting a suite."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", priority=True),
        Binding("enter", "select", "Select", priority=True),
        Binding("a", "run_all", "Run All", priority=True),
    ]

    DEFAULT_CSS = """
    SuiteSelectScreen {
        align: center middle;
    }

    #suite-dialog {
        width: 70;
        height: auto;
        max-height: 80%;
        border: thick $accent;
        background: $surface;
        padding: 1 2;
    }

    #suite-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    #suite-list {
        height: auto;
        max-height: 20;
        margin: 1 0;
        border: solid $primary;
    }

    #suite-help {
        text-align: center;
        margin-top: 1;
        color: $text-muted;
    }
    """

    def __init__(self, registry: Registry) -> None:
        super().__init__()
        self.suites = registry.list_suites()

    def compose(self) -> ComposeResult:
        with Vertical(id="suite-dialog"):
            yield Label("Select Suite", id="suite-title")
            yield ListView(
                *[
                    ListItem(
                        Label(f"{i+1}. {s['name']} ({s['cases']} cases)"),
                        id=f"suite-{i}",
                    )
                    for i, s in enumerate(self.suites)
                ],
                id="suite-list",
            )
            yield Label("[Enter] Run  [A] Run All  [Esc] Cancel", id="suite-help")

    def on_list_view_selected(self, event: ListView.Selected) -> None:
        if event.item and event.item.id:
            self.dismiss(int(event.item.id.split("-")[1]))

    def action_cancel(self) -> None:
        self.dismiss(None)

    def action_select(self) -> None:
        list_view = self.query_one("#suite-list", ListView)
        if list_view.highlighted_child and list_view.highlighted_child.id:
            self.dismiss(int(list_view.highlighted_child.id.split("-")[1]))

    def action_run_all(self) -> None:
        self.dismiss(-1)  # Special value for "run all"


class StorefrontApp(App):
    """Textual app driving the suite runner."""

    CSS = """
    Screen {
        layout: vertical;
    }

    #results {
        height: 2fr;
        border: solid $accent;
    }

    #details {
        height: 1fr;
        border: solid magenta;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", priority=True),
        Binding("s", "suites", "Suites", priority=True),
        Binding("a", "run_all", "Run All", priority=True),
        Binding("c", "clear", "Clear", priority=True),
    ]

    def __init__(self, config: Config, registry: Registry) -> None:
        super().__init__()
        self.config = config
        self.registry = registry
        self.running = False
        self.reports: dict[str, CaseReport] = {}

    def compose(self) -> ComposeResult:
        yield Header()
        yield DataTable(id="results", cursor_type="row")
        yield Log(id="details")
        yield Footer()

    def on_mount(self) -> None:
        self.title = "Storefront E2E"
        self.sub_title = f"{self.config.target.base_url} | Keys: s=suites a=run all c=clear q=quit"
        table = self.query_one("#results", DataTable)
        table.add_columns("Suite", "Case", "Verdict", "Duration")

    def action_suites(self) -> None:
        """Show suite selector."""

        def handle_selection(result: int | None) -> None:
            if result is None:
                return
            if result == -1:
                self.action_run_all()
            else:
                self.start_run(self.registry.list_suites()[result]["name"])

        self.push_screen(SuiteSelectScreen(self.registry), handle_selection)

    def action_run_all(self) -> None:
        self.start_run(None)

    def action_clear(self) -> None:
        self.query_one("#results", DataTable).clear()
        self.query_one("#details", Log).clear()
        self.reports.clear()

    def start_run(self, selector: str | None) -> None:
        if self.running:
            self.notify("A run is already in progress", severity="warning")
            return
        self.running = True
        self.action_clear()
        self.notify(f"Running: {selector or 'all suites'}...", severity="information")
        self.run_worker(self._run(selector), exclusive=True)

    def on_case_finished(self, report: CaseReport) -> None:
        """Add a finished case to the results table."""
        key = f"{report.suite}/{report.name}"
        self.reports[key] = report
        self.query_one("#results", DataTable).add_row(
            report.suite,
            report.name,
            report.verdict.state.value.upper(),
            f"{report.duration_s:.2f}s",
            key=key,
        )

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        report = self.reports.get(event.row_key.value) if event.row_key else None
        if report is None:
            return
        log = self.query_one("#details", Log)
        log.clear()
        log.write_line(f"{report.suite} / {report.name}: {report.verdict.state.value.upper()}")
        if report.verdict.reason:
            log.write_line(report.verdict.reason)
        for step in report.steps:
            status = "PASS" if step.passed else "FAIL"
            log.write_line(f"  [{status}] {step.name}: {step.message}")

    async def _run(self, selector: str | None) -> None:
        from storefront_e2e.playwright_target import PlaywrightTargets

        suites = self.registry.suites(selector)
        try:
            async with PlaywrightTargets(
                self.config.target, self.config.run.step_timeout_ms
            ) as targets:
                runner = SuiteRunner(
                    targets, self.config.run.to_settings(), on_case=self.on_case_finished
                )
                totals = await runner.run(suites)
        except InfrastructureError as e:
            logger.error(f"Run failed: {e}")
            self.notify(f"Run failed: {e}", severity="error", timeout=10)
            return
        finally:
            self.running = False

        if totals.exit_status == 0:
            self.notify(f"✓ All {totals.passed} cases PASSED!", severity="information", timeout=15)
        else:
            self.notify(
                f"Results: {totals.passed} passed, {totals.failed} failed, {totals.errored} errored",
                severity="warning",
                timeout=15,
            )


def main() -> None:
    """
    Launch TUI application.

    Entry point for storefront-e2e-tui command.
    """
    config = load_config()

    # File only; console output would corrupt the TUI
    log_path = Path(config.logging.log_dir).expanduser()
    log_path.mkdir(parents=True, exist_ok=True)
    log_filename = log_path / f"storefront_tui_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    logging.basicConfig(
        level=logging.DEBUG,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        handlers=[logging.FileHandler(log_filename)],
    )

    logger.info("=" * 80)
    logger.info("Storefront E2E TUI Starting")
    logger.info(f"Log file: {log_filename}")
    logger.info("=" * 80)

    try:
        StorefrontApp(config, build_registry(config.target.base_url)).run()
    except Exception as e:
        logger.critical(f"TUI crashed: {e}", exc_info=True)
        raise
    finally:
        logger.info("Storefront E2E TUI Exiting")


if __name__ == "__main__":
    main()
