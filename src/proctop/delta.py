"""Per-process rate computation from two successive snapshots."""

from proctop.models import ProcessRecord, Snapshot


def compute_process_stats(current: Snapshot, previous: Snapshot | None) -> None:
    """
    Fill in cpu_percent and mem_percent for every record in ``current``.

    Records are matched to ``previous`` by pid only. A pid reused by the OS
    within one interval is matched to the old process, which can yield a
    negative or over-100 value; that value is kept as computed and the
    renderer clamps it for display.

    cpu_percent is a share of the total CPU ticks elapsed across all cores,
    so 100% means every core was busy with this process. It is only valid
    for processes seen in both snapshots and when the total delta is
    positive. mem_percent does not need a previous sample.
    """
    previous_by_pid: dict[int, ProcessRecord] = {}
    total_cpu_delta = 0
    if previous is not None:
        previous_by_pid = {proc.pid: proc for proc in previous.processes}
        total_cpu_delta = current.counters.total_cpu_ticks - previous.counters.total_cpu_ticks

    total_memory = current.counters.total_memory_bytes

    for proc in current.processes:
        prev_proc = previous_by_pid.get(proc.pid)
        if prev_proc is not None and total_cpu_delta > 0:
            proc.cpu_percent = (proc.cpu_ticks - prev_proc.cpu_ticks) / total_cpu_delta * 100.0
            proc.cpu_valid = True
        else:
            proc.cpu_percent = 0.0
            proc.cpu_valid = False

        if total_memory > 0:
            proc.mem_percent = proc.resident_bytes / total_memory * 100.0
            proc.mem_valid = True
        else:
            proc.mem_percent = 0.0
            proc.mem_valid = False
