"""Ordering and filtering of process records."""

from operator import attrgetter

from proctop.models import ProcessRecord, SortKey

_SORT_ATTRS = {
    SortKey.CPU: attrgetter("cpu_percent"),
    SortKey.MEM: attrgetter("mem_percent"),
}


def sort_processes(processes: list[ProcessRecord], key: SortKey, reversed: bool = False) -> None:
    """
    Sort processes in place.

    Largest values come first unless ``reversed`` is set. SortKey.NONE keeps
    collection order. The sort is stable, so equal values keep their
    collection order.
    """
    if key is SortKey.NONE:
        return
    processes.sort(key=_SORT_ATTRS[key], reverse=not reversed)


def filter_processes(processes: list[ProcessRecord], text: str) -> list[ProcessRecord]:
    """Return processes whose name contains ``text`` (case-sensitive)."""
    if not text:
        return list(processes)
    return [proc for proc in processes if text in proc.name]
