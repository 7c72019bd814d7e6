"""Exceptions raised by the counter source."""


class CounterSourceError(Exception):
    """Base class for counter source failures."""


class SourceUnavailable(CounterSourceError):
    """The aggregate counter interface could not be opened or parsed."""


class ProcessGone(CounterSourceError):
    """The process vanished (or became unreadable) between enumeration and read."""

    def __init__(self, pid: int) -> None:
        super().__init__(f"process {pid} is gone")
        self.pid = pid


class MalformedRecord(CounterSourceError):
    """A process record had an unexpected field count or type."""

    def __init__(self, pid: int, reason: str) -> None:
        super().__init__(f"malformed record for pid {pid}: {reason}")
        self.pid = pid
        self.reason = reason
