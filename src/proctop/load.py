"""System-wide CPU load percentage."""

from proctop.config import TICKS_PER_SECOND


def calculate_cpu_load(
    active_delta: int,
    interval_ms: float,
    core_count: int,
    ticks_per_second: int = TICKS_PER_SECOND,
) -> float:
    """
    Convert an active-tick delta into a load percentage in [0, 100].

    /proc/stat sums ticks over all cores, so the interval is scaled by
    ``core_count``: 100% means every core was busy for the whole interval.

    Args:
        active_delta: Active (non-idle, non-iowait) ticks elapsed.
        interval_ms: Wall-clock length of the interval in milliseconds.
        core_count: Number of online cores.
        ticks_per_second: Counter rate of the tick source.
    """
    if interval_ms <= 0 or core_count <= 0:
        return 0.0

    interval_ticks = (interval_ms / 1000.0) * ticks_per_second * core_count
    if interval_ticks <= 0:
        return 0.0

    load = active_delta / interval_ticks * 100.0
    return min(100.0, max(0.0, load))
