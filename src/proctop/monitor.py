"""Tick loop tying the counter source, delta engine and sorter together."""

import logging
import signal
from dataclasses import dataclass

import psutil

from proctop.config import MIN_POLL_RATE, MonitorConfig
from proctop.delta import compute_process_stats
from proctop.load import calculate_cpu_load
from proctop.models import ProcessRecord, Snapshot, SortState, SystemCounters
from proctop.sorting import sort_processes
from proctop.source import ProcfsSource
from proctop.state import SortInputState

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class TickResult:
    """Everything the renderer needs for one tick."""

    processes: list[ProcessRecord]
    counters: SystemCounters
    load_percent: float
    sort_state: SortState
    stale: bool

    @property
    def uptime_seconds(self) -> float:
        return self.counters.uptime_seconds


class SystemMonitor:
    """
    Synchronous, single-threaded system monitor.

    Keeps exactly one previous snapshot. Each tick captures a new snapshot,
    computes rates against the previous one, sorts the result according to
    the input state and then makes the new snapshot the previous one. A
    stale snapshot never becomes the previous one.
    """

    def __init__(
        self,
        config: MonitorConfig | None = None,
        source: ProcfsSource | None = None,
        state: SortInputState | None = None,
    ) -> None:
        """
        Initialize the SystemMonitor.

        Args:
            config: Process-wide settings. Defaults to MonitorConfig().
            source: Counter source. Defaults to a ProcfsSource on config.proc_root.
            state: Sort/filter/scroll state shared with the input layer.
        """
        self._config = config or MonitorConfig()
        self._source = source or ProcfsSource(self._config.proc_root)
        self._state = state or SortInputState()
        self._poll_rate = max(MIN_POLL_RATE, self._config.poll_rate)
        self._previous: Snapshot | None = None

    @property
    def poll_rate(self) -> float:
        """Get the current poll rate."""
        return self._poll_rate

    @poll_rate.setter
    def poll_rate(self, value: float) -> None:
        """Set the poll rate."""
        self._poll_rate = max(MIN_POLL_RATE, value)

    @property
    def state(self) -> SortInputState:
        return self._state

    @property
    def previous(self) -> Snapshot | None:
        return self._previous

    @property
    def is_running(self) -> bool:
        """Check if a baseline snapshot has been established."""
        return self._previous is not None

    def start(self) -> Snapshot:
        """
        Capture the baseline snapshot.

        Raises:
            SourceUnavailable: No baseline could be established.
        """
        baseline = self._source.capture_snapshot()
        self._previous = baseline
        logger.info(
            "System initialized: %d cores, %d MB RAM",
            baseline.counters.core_count,
            baseline.counters.total_memory_bytes // (1024 * 1024),
        )
        return baseline

    def tick(self) -> TickResult:
        """Run one capture, diff and sort cycle."""
        if self._previous is None:
            self.start()

        previous = self._previous
        current = self._source.capture_snapshot(previous)

        compute_process_stats(current, previous)

        if current.stale:
            load = 0.0
        else:
            active_delta = current.counters.active_cpu_ticks - previous.counters.active_cpu_ticks
            interval_ms = (current.timestamp - previous.timestamp) * 1000.0
            load = calculate_cpu_load(active_delta, interval_ms, current.counters.core_count)

        sort_processes(current.processes, self._state.key, self._state.reversed)
        self._state.update_count(len(current.processes))

        # A stale snapshot mixes old counters with fresh process ticks; keep
        # the last coherent capture as the baseline instead.
        if not current.stale:
            self._previous = current
        return TickResult(
            processes=current.processes,
            counters=current.counters,
            load_percent=load,
            sort_state=self._state.snapshot(),
            stale=current.stale,
        )

    def terminate(self, pid: int, sig: int = signal.SIGTERM) -> bool:
        """
        Send a signal to a process.

        The outcome is only reported to the log; the process simply drops out
        of the table on a later tick if it exits.
        """
        sig_name = signal.Signals(sig).name
        try:
            psutil.Process(pid).send_signal(sig)
        except (psutil.NoSuchProcess, psutil.AccessDenied, ValueError) as exc:
            # ValueError: psutil rejects non-positive pids
            logger.error("Failed to send %s to PID %d: %s", sig_name, pid, exc)
            return False
        logger.info("Sent %s to PID %d", sig_name, pid)
        return True
