"""Data models for proctop."""

from dataclasses import dataclass, field
from enum import Enum


@dataclass(slots=True)
class ProcessRecord:
    """
    One process as read from the counter source.

    Raw fields are filled at capture time. The derived percentages start
    invalid and are only written by the delta engine.
    """

    pid: int
    name: str
    command_line: str | None  # None when the kernel denies access
    state: str  # 'R', 'S', 'Z', 'D', etc.
    nice: int
    threads: int
    cpu_ticks: int  # utime + stime
    resident_bytes: int
    cpu_percent: float = 0.0
    cpu_valid: bool = False
    mem_percent: float = 0.0
    mem_valid: bool = False


@dataclass(slots=True, frozen=True)
class SystemCounters:
    """System-wide counters captured alongside the process list."""

    total_cpu_ticks: int
    active_cpu_ticks: int  # total minus idle and iowait
    total_memory_bytes: int
    available_memory_bytes: int
    core_count: int
    uptime_seconds: float

    @property
    def used_memory_bytes(self) -> int:
        return max(0, self.total_memory_bytes - self.available_memory_bytes)


@dataclass(slots=True, frozen=True)
class Snapshot:
    """Immutable point-in-time capture of processes and system counters."""

    processes: list[ProcessRecord]
    counters: SystemCounters
    timestamp: float  # time.monotonic() at capture
    stale: bool = False  # counters carried over from the previous tick


class SortKey(Enum):
    """Sort keys for the process table."""

    CPU = "cpu"
    MEM = "mem"
    NONE = "none"


@dataclass(slots=True, frozen=True)
class SortState:
    """Read-only view of the sort/filter/scroll selection."""

    key: SortKey = SortKey.CPU
    reversed: bool = False
    filter: str = ""
    scroll_offset: int = 0
    exit_requested: bool = field(default=False, compare=False)
