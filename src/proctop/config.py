"""Configuration for proctop."""

import argparse
from collections.abc import Sequence
from dataclasses import dataclass

# Kernel scheduler clock assumed for /proc/stat jiffies (USER_HZ)
TICKS_PER_SECOND = 100

# Longest process name kept from /proc/<pid>/stat
NAME_MAX_LEN = 40

# Rows moved by PageUp/PageDown
PAGE_SIZE = 10

MIN_POLL_RATE = 0.1

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(slots=True, frozen=True)
class MonitorConfig:
    """
    Process-wide settings, built once at startup and passed explicitly.

    Attributes:
        proc_root: Mount point of procfs.
        poll_rate: Seconds between ticks.
        log_file: Path of the rotating log file.
        log_level: Name of the minimum level written to the log.
    """

    proc_root: str = "/proc"
    poll_rate: float = 1.0
    log_file: str = "logs/proctop.log"
    log_level: str = "INFO"

    @classmethod
    def from_args(cls, argv: Sequence[str] | None = None) -> "MonitorConfig":
        """Build a config from command-line arguments."""
        defaults = cls()
        parser = argparse.ArgumentParser(
            prog="proctop",
            description="Live process monitor reading counters from procfs.",
        )
        parser.add_argument(
            "--interval",
            type=float,
            default=defaults.poll_rate,
            help="Seconds between refreshes (default %(default)s).",
        )
        parser.add_argument(
            "--proc-root",
            default=defaults.proc_root,
            help="procfs mount point (default %(default)s).",
        )
        parser.add_argument(
            "--log-file",
            default=defaults.log_file,
            help="Log file path (default %(default)s).",
        )
        parser.add_argument(
            "--log-level",
            default=defaults.log_level,
            choices=LOG_LEVELS,
            type=str.upper,
            help="Minimum log level (default %(default)s).",
        )
        args = parser.parse_args(argv)
        return cls(
            proc_root=args.proc_root,
            poll_rate=max(MIN_POLL_RATE, args.interval),
            log_file=args.log_file,
            log_level=args.log_level,
        )
