"""proctop - Main Textual application."""

import logging
import sys
from collections.abc import Sequence

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.widgets import DataTable, Footer, Input, Static

from proctop.config import MonitorConfig
from proctop.errors import SourceUnavailable
from proctop.logs import log_fatal, setup_logging
from proctop.models import ProcessRecord, SortKey, SortState
from proctop.monitor import SystemMonitor, TickResult
from proctop.sorting import filter_processes, sort_processes
from proctop.state import Command

logger = logging.getLogger(__name__)

NAME_COLUMN_WIDTH = 15
COMMAND_COLUMN_WIDTH = 60


def format_bytes(size: int) -> str:
    """Format bytes htop-style, starting from kilobytes."""
    value = size / 1024
    for unit in ["K", "M", "G", "T"]:
        if value < 1024:
            break
        value /= 1024
    else:
        unit = "P"
    if value < 10:
        return f"{value:.2f}{unit}"
    if value < 100:
        return f"{value:.1f}{unit}"
    return f"{value:.0f}{unit}"


def format_uptime(seconds: float) -> str:
    """Format uptime as days, hours and minutes."""
    total = int(seconds)
    days = total // 86400
    hours = (total % 86400) // 3600
    minutes = (total % 3600) // 60
    return f"{days} days, {hours} hours, {minutes} mins"


def describe_sort(state: SortState) -> str:
    """Describe the sort mode for the header."""
    if state.key is SortKey.NONE:
        return "OFF"
    label = state.key.name
    return f"{label} (reversed)" if state.reversed else label


class HeaderStats(Static):
    """Header widget showing uptime, load, memory and sort mode."""

    DEFAULT_CSS = """
    HeaderStats {
        height: auto;
        min-height: 4;
        padding: 0 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize HeaderStats."""
        super().__init__(*args, **kwargs)
        self._result: TickResult | None = None

    def compose(self) -> ComposeResult:
        """Compose the header stats layout."""
        yield Horizontal(
            Static(self._get_sys_info(), id="sys-info"),
            Static(self._get_mem_info(), id="mem-info"),
        )

    def update_stats(self, result: TickResult) -> None:
        """Update the statistics from a tick result."""
        self._result = result
        self.query_one("#sys-info", Static).update(self._get_sys_info())
        self.query_one("#mem-info", Static).update(self._get_mem_info())

    def _get_sys_info(self) -> str:
        if self._result is None:
            return "Loading system info..."
        result = self._result
        bar_len = min(int(result.load_percent / 5), 20)
        bar = "[green]█[/green]" * bar_len + "[dim]░[/dim]" * (20 - bar_len)
        stale = " [yellow](stale)[/yellow]" if result.stale else ""
        return (
            f"Uptime: {format_uptime(result.uptime_seconds)}\n"
            f"CPU \\[{bar}] {result.load_percent:.1f}/100.0{stale}\n"
            f"Processes: {len(result.processes)}"
        )

    def _get_mem_info(self) -> str:
        if self._result is None:
            return "Loading memory info..."
        counters = self._result.counters
        used_gb = counters.used_memory_bytes / (1024**3)
        total_gb = counters.total_memory_bytes / (1024**3)
        return (
            f"Memory: {used_gb:.1f}/{total_gb:.1f} GB\n"
            f"Cores: {counters.core_count}\n"
            f"Sort: {describe_sort(self._result.sort_state)}"
        )


class ProcessGrid(DataTable):
    """Process rows; scrolling is driven by the sort/scroll state, not by focus."""

    can_focus = False


class ProcessTable(Container):
    """Container for the process data table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize ProcessTable."""
        super().__init__(*args, **kwargs)
        self._current_pids: list[int] = []

    @property
    def visible_pids(self) -> list[int]:
        """PIDs of the rows currently shown, in display order."""
        return list(self._current_pids)

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        yield ProcessGrid(id="process-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#process-table", DataTable)
        table.cursor_type = "none"

        table.add_column("PID", key="pid", width=8)
        table.add_column("NAME", key="name", width=NAME_COLUMN_WIDTH)
        table.add_column("S", key="state", width=3)
        table.add_column("NI", key="nice", width=4)
        table.add_column("THR", key="threads", width=5)
        table.add_column("CPU%", key="cpu", width=8)
        table.add_column("MEM", key="rss", width=9)
        table.add_column("MEM%", key="mem", width=8)
        table.add_column("COMMAND", key="command")

    def update_processes(self, processes: list[ProcessRecord], state: SortState) -> None:
        """
        Show the filtered processes starting at the scroll offset.

        ``processes`` must already be sorted.
        """
        table = self.query_one("#process-table", DataTable)
        visible = filter_processes(processes, state.filter)[state.scroll_offset :]

        table.clear()
        for proc in visible:
            table.add_row(*self._format_row(proc), key=str(proc.pid))
        self._current_pids = [proc.pid for proc in visible]

    @staticmethod
    def _format_row(proc: ProcessRecord) -> tuple[str, ...]:
        # pid reuse can make a rate negative; never display below zero
        cpu = f"{max(0.0, proc.cpu_percent):.2f}" if proc.cpu_valid else "-"
        if proc.mem_valid:
            rss = format_bytes(proc.resident_bytes)
            mem = f"{proc.mem_percent:.2f}"
        else:
            rss = mem = "-"
        command = proc.command_line[:COMMAND_COLUMN_WIDTH] if proc.command_line is not None else "-"
        return (
            str(proc.pid),
            proc.name[:NAME_COLUMN_WIDTH],
            proc.state,
            str(proc.nice),
            str(proc.threads),
            cpu,
            rss,
            mem,
            command,
        )


class ProctopApp(App):
    """Main proctop application."""

    TITLE = "proctop"
    SUB_TITLE = "Process Monitor"

    CSS = """
    Screen {
        layout: vertical;
    }

    #header-stats {
        dock: top;
        height: auto;
        min-height: 4;
    }

    Horizontal {
        height: auto;
    }

    #sys-info {
        width: 1fr;
        padding-right: 2;
    }

    #mem-info {
        width: 1fr;
        padding-left: 2;
    }

    #status {
        height: 1;
        padding: 0 1;
    }

    Input {
        display: none;
    }

    Input.-active {
        display: block;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("c", "command('TOGGLE_CPU')", "CPU"),
        ("m", "command('TOGGLE_MEM')", "MEM"),
        ("r", "command('TOGGLE_REVERSE')", "Rev"),
        ("f", "search", "Search"),
        ("slash", "search", "Search"),
        ("k", "kill", "Kill"),
        Binding("up", "command('SCROLL_UP')", "Up", show=False),
        Binding("down", "command('SCROLL_DOWN')", "Down", show=False),
        Binding("pageup", "command('PAGE_UP')", "PgUp", show=False),
        Binding("pagedown", "command('PAGE_DOWN')", "PgDn", show=False),
        Binding("escape", "cancel", "Clear", show=False, priority=True),
    ]

    def __init__(self, monitor: SystemMonitor | None = None) -> None:
        """Initialize the ProctopApp."""
        super().__init__()
        self._monitor = monitor or SystemMonitor()
        self._last_result: TickResult | None = None

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield HeaderStats(id="header-stats")
        yield ProcessTable()
        yield Static(id="status")
        yield Input(placeholder="Search", id="search")
        yield Input(placeholder="Enter PID to kill (ESC to cancel)", id="kill", restrict=r"[0-9]*")
        yield Footer()

    def on_mount(self) -> None:
        """Establish the baseline and start ticking."""
        if not self._monitor.is_running:
            self._monitor.start()
        self.call_after_refresh(self._tick)
        self.set_interval(self._monitor.poll_rate, self._tick)

    def _tick(self) -> None:
        """Run one monitor tick and render it."""
        if self._monitor.state.exit_requested:
            return
        try:
            result = self._monitor.tick()
        except SourceUnavailable as exc:
            logger.error("Tick skipped: %s", exc)
            return
        self._last_result = result
        self._render_result(result)

    def _render_result(self, result: TickResult) -> None:
        self.query_one("#header-stats", HeaderStats).update_stats(result)
        self.query_one(ProcessTable).update_processes(result.processes, result.sort_state)
        self.query_one("#status", Static).update(self._status_line(result.sort_state))

    @staticmethod
    def _status_line(state: SortState) -> str:
        if state.filter:
            return f"Filter: '{state.filter}' | ESC:Clear Offset:{state.scroll_offset}"
        return f"Offset:{state.scroll_offset}"

    def _refresh_view(self) -> None:
        """Re-render the last tick after a state change, re-sorting if needed."""
        if self._last_result is None:
            return
        state = self._monitor.state
        processes = list(self._last_result.processes)
        sort_processes(processes, state.key, state.reversed)
        self._last_result = TickResult(
            processes=processes,
            counters=self._last_result.counters,
            load_percent=self._last_result.load_percent,
            sort_state=state.snapshot(),
            stale=self._last_result.stale,
        )
        self._render_result(self._last_result)

    def action_command(self, name: str) -> None:
        """Forward a discrete command to the sort/scroll state."""
        self._monitor.state.handle(Command[name])
        self._refresh_view()

    def action_search(self) -> None:
        """Open the live search prompt."""
        search = self.query_one("#search", Input)
        search.value = self._monitor.state.filter
        search.add_class("-active")
        search.focus()

    def action_kill(self) -> None:
        """Open the kill prompt."""
        kill = self.query_one("#kill", Input)
        kill.value = ""
        kill.add_class("-active")
        kill.focus()

    def action_cancel(self) -> None:
        """Close an open prompt, or clear the filter."""
        kill = self.query_one("#kill", Input)
        if kill.has_class("-active"):
            self._close_prompt(kill)
            return
        search = self.query_one("#search", Input)
        if search.has_class("-active"):
            self._close_prompt(search)
        self._monitor.state.handle(Command.CLEAR_FILTER)
        self._refresh_view()

    def _close_prompt(self, prompt: Input) -> None:
        prompt.remove_class("-active")
        self.set_focus(None)

    def on_input_changed(self, event: Input.Changed) -> None:
        """Filter live while the search prompt is edited."""
        if event.input.id == "search" and event.input.has_class("-active"):
            self._monitor.state.handle(Command.SET_FILTER, event.value)
            self._refresh_view()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Keep the filter, or send SIGTERM to the entered PID."""
        self._close_prompt(event.input)
        if event.input.id != "kill" or not event.value:
            return
        pid = int(event.value)
        if pid <= 0:
            return
        if self._monitor.terminate(pid):
            self.notify(f"Sent SIGTERM to PID {pid}")
        else:
            self.notify(f"Failed to kill PID {pid}", severity="error")

    def action_quit(self) -> None:
        """Handle quit action."""
        self._monitor.state.handle(Command.REQUEST_EXIT)
        self.exit()


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for proctop."""
    config = MonitorConfig.from_args(argv)
    setup_logging(config)
    logger.info("Process monitor started")

    monitor = SystemMonitor(config)
    try:
        monitor.start()
    except SourceUnavailable as exc:
        log_fatal(f"Failed to establish baseline: {exc}")
        sys.exit(1)

    app = ProctopApp(monitor)
    app.run()
    logger.info("Process monitor stopped")


if __name__ == "__main__":
    main()
