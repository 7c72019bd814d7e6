"""Counter source reading process and system counters from procfs."""

import logging
import os
import time
from pathlib import Path

import psutil

from proctop.config import NAME_MAX_LEN
from proctop.errors import MalformedRecord, ProcessGone, SourceUnavailable
from proctop.models import ProcessRecord, Snapshot, SystemCounters

logger = logging.getLogger(__name__)

# user, nice, system, idle, iowait, irq, softirq, steal
CPU_FIELDS = 8
IDLE_INDEX = 3
IOWAIT_INDEX = 4

# Fields of /proc/<pid>/stat counted from the one after the comm, so that
# index 0 is field 3 (state) in proc(5) numbering.
STAT_STATE = 0
STAT_UTIME = 11
STAT_STIME = 12
STAT_NICE = 16
STAT_THREADS = 17
STAT_RSS = 21


def parse_cpu_line(line: str) -> tuple[int, int]:
    """
    Parse the aggregate ``cpu`` line of /proc/stat.

    Returns:
        ``(total_ticks, active_ticks)`` where active excludes idle and iowait.

    Raises:
        ValueError: If the line is not the aggregate line or is short.
    """
    parts = line.split()
    if not parts or parts[0] != "cpu":
        raise ValueError(f"not an aggregate cpu line: {line!r}")
    if len(parts) < CPU_FIELDS + 1:
        raise ValueError(f"expected {CPU_FIELDS} cpu fields, got {len(parts) - 1}")
    values = [int(p) for p in parts[1 : CPU_FIELDS + 1]]
    total = sum(values)
    active = total - values[IDLE_INDEX] - values[IOWAIT_INDEX]
    return total, active


def parse_meminfo(text: str) -> tuple[int, int]:
    """
    Parse /proc/meminfo.

    Returns:
        ``(total_bytes, available_bytes)``.

    Raises:
        ValueError: If MemTotal or MemAvailable is missing or malformed.
    """
    found: dict[str, int] = {}
    for line in text.splitlines():
        key, _, rest = line.partition(":")
        if key in ("MemTotal", "MemAvailable"):
            fields = rest.split()
            if not fields:
                raise ValueError(f"empty {key} line")
            found[key] = int(fields[0]) * 1024  # values are in kB
            if len(found) == 2:
                break
    if "MemTotal" not in found or "MemAvailable" not in found:
        raise ValueError("MemTotal/MemAvailable missing from meminfo")
    return found["MemTotal"], found["MemAvailable"]


def parse_uptime(text: str) -> float:
    """Parse the first field of /proc/uptime (seconds since boot)."""
    return float(text.split()[0])


def parse_process_stat(pid: int, text: str, page_size: int) -> ProcessRecord:
    """
    Parse one /proc/<pid>/stat line into a record with no command line.

    The comm field may itself contain spaces and parentheses, so it is taken
    between the first '(' and the last ')'.

    Raises:
        MalformedRecord: If the line cannot be parsed completely.
    """
    start = text.find("(")
    end = text.rfind(")")
    if start < 0 or end < start:
        raise MalformedRecord(pid, "comm field not delimited")

    fields = text[end + 1 :].split()
    if len(fields) <= STAT_RSS:
        raise MalformedRecord(pid, f"expected at least {STAT_RSS + 1} fields after comm, got {len(fields)}")

    try:
        read_pid = int(text[:start])
        utime = int(fields[STAT_UTIME])
        stime = int(fields[STAT_STIME])
        nice = int(fields[STAT_NICE])
        threads = int(fields[STAT_THREADS])
        rss_pages = int(fields[STAT_RSS])
    except ValueError as exc:
        raise MalformedRecord(pid, str(exc)) from exc
    if read_pid != pid:
        raise MalformedRecord(pid, f"stat line belongs to pid {read_pid}")

    return ProcessRecord(
        pid=pid,
        name=text[start + 1 : end][:NAME_MAX_LEN],
        command_line=None,
        state=fields[STAT_STATE],
        nice=nice,
        threads=threads,
        cpu_ticks=utime + stime,
        resident_bytes=rss_pages * page_size,
    )


class ProcfsSource:
    """
    Reads raw counters from a procfs tree.

    Holds no sampling state: every call is a fresh read. Per-process failures
    are reported as ProcessGone or MalformedRecord, system-wide failures as
    SourceUnavailable.
    """

    def __init__(self, proc_root: str = "/proc", page_size: int | None = None) -> None:
        """
        Initialize the source.

        Args:
            proc_root: Directory where procfs is mounted.
            page_size: Bytes per memory page. Defaults to the host's page size.
        """
        self._root = Path(proc_root)
        self._page_size = page_size or os.sysconf("SC_PAGE_SIZE")

    def capture_system_counters(self) -> SystemCounters:
        """Read aggregate CPU ticks, memory totals, uptime and core count."""
        try:
            stat_text = (self._root / "stat").read_text()
            total, active = parse_cpu_line(stat_text.partition("\n")[0])
        except (OSError, ValueError) as exc:
            raise SourceUnavailable(f"cannot read cpu counters: {exc}") from exc

        try:
            mem_total, mem_available = parse_meminfo((self._root / "meminfo").read_text())
        except (OSError, ValueError) as exc:
            raise SourceUnavailable(f"cannot read memory counters: {exc}") from exc

        core_count = psutil.cpu_count(logical=True)
        if not core_count:
            raise SourceUnavailable("cannot determine CPU core count")

        return SystemCounters(
            total_cpu_ticks=total,
            active_cpu_ticks=active,
            total_memory_bytes=mem_total,
            available_memory_bytes=mem_available,
            core_count=core_count,
            uptime_seconds=self._read_uptime(),
        )

    def _read_uptime(self) -> float:
        try:
            return parse_uptime((self._root / "uptime").read_text())
        except (OSError, ValueError, IndexError):
            logger.warning("Failed to read uptime from %s", self._root / "uptime")
            return 0.0

    def enumerate_process_ids(self) -> list[int]:
        """List the pids currently present under the proc root."""
        try:
            names = os.listdir(self._root)
        except OSError as exc:
            raise SourceUnavailable(f"cannot list {self._root}: {exc}") from exc
        return sorted(int(name) for name in names if name.isdigit())

    def capture_process(self, pid: int) -> ProcessRecord:
        """
        Read one process record.

        Raises:
            ProcessGone: The process exited or its stat file is unreadable.
            MalformedRecord: The stat line could not be parsed.
        """
        proc_dir = self._root / str(pid)
        try:
            raw = (proc_dir / "stat").read_bytes()
        except OSError as exc:
            raise ProcessGone(pid) from exc
        if not raw:
            raise ProcessGone(pid)

        # comm is arbitrary bytes set by the process itself
        text = raw.decode("utf-8", errors="replace")
        record = parse_process_stat(pid, text, self._page_size)
        record.command_line = self._read_cmdline(proc_dir)
        return record

    @staticmethod
    def _read_cmdline(proc_dir: Path) -> str | None:
        """Read the NUL-separated command line, or None if unavailable."""
        try:
            raw = (proc_dir / "cmdline").read_bytes()
        except OSError:
            return None
        raw = raw.rstrip(b"\0")
        if not raw:
            return None
        return raw.replace(b"\0", b" ").decode("utf-8", errors="replace")

    def collect_processes(self) -> list[ProcessRecord]:
        """
        Capture every readable process.

        Processes that vanish mid-scan are skipped silently; malformed records
        are skipped for this tick only.
        """
        processes: list[ProcessRecord] = []
        for pid in self.enumerate_process_ids():
            try:
                processes.append(self.capture_process(pid))
            except ProcessGone:
                continue
            except MalformedRecord as exc:
                logger.debug("Skipping %s", exc)
        return processes

    def capture_snapshot(self, previous: Snapshot | None = None) -> Snapshot:
        """
        Capture a complete snapshot.

        If the system counters cannot be read and a previous snapshot exists,
        its counters are reused and the snapshot is marked stale. Without a
        previous snapshot the SourceUnavailable error propagates.
        """
        stale = False
        try:
            counters = self.capture_system_counters()
        except SourceUnavailable as exc:
            if previous is None:
                raise
            logger.warning("System counters unavailable, reusing previous tick: %s", exc)
            counters = previous.counters
            stale = True

        try:
            processes = self.collect_processes()
        except SourceUnavailable as exc:
            if previous is None:
                raise
            logger.warning("Process list unavailable for this tick: %s", exc)
            processes = []
            stale = True
        return Snapshot(
            processes=processes,
            counters=counters,
            timestamp=time.monotonic(),
            stale=stale,
        )
