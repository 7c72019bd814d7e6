"""Shared fixtures: a fake procfs tree written under tmp_path."""

from pathlib import Path

import psutil
import pytest

from proctop.models import ProcessRecord, Snapshot, SystemCounters

PAGE_SIZE = 4096


class FakeProc:
    """Writes the handful of procfs files the counter source reads."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.set_cpu()
        self.set_meminfo()
        self.set_uptime(3600.0)

    def set_cpu(
        self,
        user: int = 1000,
        nice: int = 0,
        system: int = 500,
        idle: int = 8000,
        iowait: int = 100,
        irq: int = 10,
        softirq: int = 20,
        steal: int = 0,
    ) -> None:
        fields = [user, nice, system, idle, iowait, irq, softirq, steal, 0, 0]
        aggregate = "cpu  " + " ".join(str(v) for v in fields)
        (self.root / "stat").write_text(f"{aggregate}\ncpu0 {' '.join(str(v) for v in fields)}\nctxt 12345\n")

    def set_meminfo(self, total_kb: int = 16384, available_kb: int = 8192) -> None:
        (self.root / "meminfo").write_text(
            f"MemTotal:       {total_kb} kB\n"
            f"MemFree:        {available_kb // 2} kB\n"
            f"MemAvailable:   {available_kb} kB\n"
            "Buffers:        100 kB\n"
        )

    def set_uptime(self, seconds: float) -> None:
        (self.root / "uptime").write_text(f"{seconds:.2f} 1234.00\n")

    def add_process(
        self,
        pid: int,
        name: str = "proc",
        utime: int = 0,
        stime: int = 0,
        rss_pages: int = 1,
        cmdline: bytes | None = b"",
        state: str = "S",
        nice: int = 0,
        threads: int = 1,
    ) -> None:
        proc_dir = self.root / str(pid)
        proc_dir.mkdir(exist_ok=True)
        after_comm = [
            state, 1, pid, pid, 0, -1, 4194560, 100, 0, 0, 0,
            utime, stime, 0, 0, 20, nice, threads, 0, 12345, 1000000,
            rss_pages, 18446744073709551615, 1, 1, 0, 0, 0,
        ]
        (proc_dir / "stat").write_text(f"{pid} ({name}) " + " ".join(str(v) for v in after_comm) + "\n")
        if cmdline is not None:
            (proc_dir / "cmdline").write_bytes(cmdline)

    def remove_process(self, pid: int) -> None:
        proc_dir = self.root / str(pid)
        for child in proc_dir.iterdir():
            child.unlink()
        proc_dir.rmdir()


@pytest.fixture
def fake_proc(tmp_path, monkeypatch) -> FakeProc:
    """A fake proc root on a two-core machine."""
    monkeypatch.setattr(psutil, "cpu_count", lambda logical=True: 2)
    root = tmp_path / "proc"
    root.mkdir()
    return FakeProc(root)


def make_record(pid: int, cpu_ticks: int = 0, resident_bytes: int = 0, name: str | None = None) -> ProcessRecord:
    """Build a freshly captured record."""
    return ProcessRecord(
        pid=pid,
        name=name or f"proc{pid}",
        command_line=None,
        state="S",
        nice=0,
        threads=1,
        cpu_ticks=cpu_ticks,
        resident_bytes=resident_bytes,
    )


def make_snapshot(
    processes: list[ProcessRecord],
    total_cpu_ticks: int = 0,
    active_cpu_ticks: int = 0,
    total_memory_bytes: int = 1000,
    timestamp: float = 0.0,
) -> Snapshot:
    """Build a snapshot with the given counters."""
    counters = SystemCounters(
        total_cpu_ticks=total_cpu_ticks,
        active_cpu_ticks=active_cpu_ticks,
        total_memory_bytes=total_memory_bytes,
        available_memory_bytes=total_memory_bytes // 2,
        core_count=2,
        uptime_seconds=100.0,
    )
    return Snapshot(processes=processes, counters=counters, timestamp=timestamp)
