"""Sort/filter/scroll selection driven by discrete user commands."""

import logging
from enum import Enum, auto

from proctop.config import PAGE_SIZE
from proctop.models import SortKey, SortState

logger = logging.getLogger(__name__)


class Command(Enum):
    """Discrete commands produced by the input layer."""

    TOGGLE_CPU = auto()
    TOGGLE_MEM = auto()
    TOGGLE_REVERSE = auto()
    SCROLL_UP = auto()
    SCROLL_DOWN = auto()
    PAGE_UP = auto()
    PAGE_DOWN = auto()
    SET_FILTER = auto()
    CLEAR_FILTER = auto()
    REQUEST_EXIT = auto()


class SortInputState:
    """
    Finite state machine over the sort key, direction, filter and scroll offset.

    The sort key is a single field, so sorting by CPU and by MEM at the same
    time cannot be represented. The scroll offset is clamped to the current
    process count after every transition and whenever the count changes.
    Once exit has been requested no further commands are applied.
    """

    def __init__(self, page_size: int = PAGE_SIZE) -> None:
        self._page_size = page_size
        self._key = SortKey.CPU
        self._reversed = False
        self._filter = ""
        self._scroll_offset = 0
        self._count = 0
        self._exit_requested = False

    @property
    def key(self) -> SortKey:
        return self._key

    @property
    def reversed(self) -> bool:
        return self._reversed

    @property
    def filter(self) -> str:
        return self._filter

    @property
    def scroll_offset(self) -> int:
        return self._scroll_offset

    @property
    def process_count(self) -> int:
        return self._count

    @property
    def exit_requested(self) -> bool:
        return self._exit_requested

    def snapshot(self) -> SortState:
        """Return an immutable view of the current state."""
        return SortState(
            key=self._key,
            reversed=self._reversed,
            filter=self._filter,
            scroll_offset=self._scroll_offset,
            exit_requested=self._exit_requested,
        )

    def update_count(self, count: int) -> None:
        """Record the current process count and re-clamp the offset."""
        self._count = max(0, count)
        self._clamp()

    def handle(self, command: Command, text: str | None = None) -> None:
        """
        Apply one command.

        Args:
            command: The command to apply.
            text: Filter text, only used by Command.SET_FILTER.
        """
        if self._exit_requested:
            return

        if command is Command.TOGGLE_CPU:
            self._toggle_key(SortKey.CPU)
        elif command is Command.TOGGLE_MEM:
            self._toggle_key(SortKey.MEM)
        elif command is Command.TOGGLE_REVERSE:
            self._reversed = not self._reversed
            logger.info("Sort reversed" if self._reversed else "Sort normal")
        elif command is Command.SCROLL_UP:
            self._scroll_offset -= 1
        elif command is Command.SCROLL_DOWN:
            self._scroll_offset += 1
        elif command is Command.PAGE_UP:
            self._scroll_offset -= self._page_size
        elif command is Command.PAGE_DOWN:
            self._scroll_offset += self._page_size
        elif command is Command.SET_FILTER:
            self._filter = text or ""
            logger.info("Search term: '%s'", self._filter)
        elif command is Command.CLEAR_FILTER:
            if self._filter:
                self._filter = ""
                logger.info("Search filter cleared")
        elif command is Command.REQUEST_EXIT:
            self._exit_requested = True
            logger.info("Exit requested")

        self._clamp()

    def _toggle_key(self, key: SortKey) -> None:
        if self._key is key:
            self._key = SortKey.NONE
            logger.info("%s sorting disabled", key.name)
        else:
            self._key = key
            logger.info("Sorting by %s", key.name)

    def _clamp(self) -> None:
        upper = max(0, self._count - 1)
        self._scroll_offset = min(max(self._scroll_offset, 0), upper)
