"""Tests for per-process rate computation."""

import pytest

from proctop.delta import compute_process_stats

from conftest import make_record, make_snapshot


def test_cpu_percent_from_matched_process():
    """100 -> 150 ticks over a total delta of 200 is 25%."""
    previous = make_snapshot([make_record(10, cpu_ticks=100)], total_cpu_ticks=1000)
    current = make_snapshot([make_record(10, cpu_ticks=150)], total_cpu_ticks=1200)

    compute_process_stats(current, previous)

    proc = current.processes[0]
    assert proc.cpu_valid is True
    assert proc.cpu_percent == pytest.approx(25.0)


def test_mem_percent():
    current = make_snapshot([make_record(1, resident_bytes=250)], total_memory_bytes=1000)

    compute_process_stats(current, None)

    proc = current.processes[0]
    assert proc.mem_valid is True
    assert proc.mem_percent == pytest.approx(25.0)


def test_new_process_is_invalid():
    """A process without a previous sample cannot have a rate."""
    previous = make_snapshot([make_record(10, cpu_ticks=100)], total_cpu_ticks=1000)
    current = make_snapshot(
        [make_record(10, cpu_ticks=150), make_record(11, cpu_ticks=500)],
        total_cpu_ticks=1200,
    )

    compute_process_stats(current, previous)

    new_proc = current.processes[1]
    assert new_proc.cpu_valid is False
    assert new_proc.cpu_percent == 0.0


def test_first_tick_marks_every_rate_invalid():
    current = make_snapshot([make_record(1, cpu_ticks=10), make_record(2, cpu_ticks=20)], total_cpu_ticks=500)

    compute_process_stats(current, None)

    assert all(not proc.cpu_valid and proc.cpu_percent == 0.0 for proc in current.processes)


@pytest.mark.parametrize("total_after", [1000, 900])
def test_non_positive_total_delta_is_invalid(total_after):
    previous = make_snapshot([make_record(10, cpu_ticks=100)], total_cpu_ticks=1000)
    current = make_snapshot([make_record(10, cpu_ticks=150)], total_cpu_ticks=total_after)

    compute_process_stats(current, previous)

    assert current.processes[0].cpu_valid is False
    assert current.processes[0].cpu_percent == 0.0


def test_mem_percent_is_independent_of_previous_snapshot():
    previous = make_snapshot([], total_cpu_ticks=1000)
    current = make_snapshot([make_record(5, resident_bytes=100)], total_cpu_ticks=1100, total_memory_bytes=400)

    compute_process_stats(current, previous)

    proc = current.processes[0]
    assert proc.cpu_valid is False
    assert proc.mem_valid is True
    assert proc.mem_percent == pytest.approx(25.0)


def test_zero_total_memory_is_invalid():
    current = make_snapshot([make_record(5, resident_bytes=100)], total_memory_bytes=0)

    compute_process_stats(current, None)

    assert current.processes[0].mem_valid is False
    assert current.processes[0].mem_percent == 0.0


def test_reused_pid_value_is_kept_as_computed():
    """Matching is by pid only; a lower tick count yields a negative rate."""
    previous = make_snapshot([make_record(10, cpu_ticks=500)], total_cpu_ticks=1000)
    current = make_snapshot([make_record(10, cpu_ticks=100)], total_cpu_ticks=1100)

    compute_process_stats(current, previous)

    assert current.processes[0].cpu_valid is True
    assert current.processes[0].cpu_percent == pytest.approx(-400.0)


def test_percentages_within_bounds():
    previous = make_snapshot(
        [make_record(pid, cpu_ticks=pid * 10) for pid in range(1, 21)],
        total_cpu_ticks=10_000,
    )
    current = make_snapshot(
        [make_record(pid, cpu_ticks=pid * 10 + pid * 3, resident_bytes=pid * 40) for pid in range(1, 21)],
        total_cpu_ticks=10_000 + 20 * 3 * 21,
        total_memory_bytes=1000,
    )

    compute_process_stats(current, previous)

    for proc in current.processes:
        assert proc.cpu_valid and 0.0 <= proc.cpu_percent <= 100.0
        assert proc.mem_valid and 0.0 <= proc.mem_percent <= 100.0


def test_previous_snapshot_untouched():
    prev_proc = make_record(10, cpu_ticks=100)
    previous = make_snapshot([prev_proc], total_cpu_ticks=1000)
    current = make_snapshot([make_record(10, cpu_ticks=150)], total_cpu_ticks=1200)

    compute_process_stats(current, previous)

    assert prev_proc.cpu_valid is False
    assert prev_proc.cpu_ticks == 100
