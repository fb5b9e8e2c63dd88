from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

import structlog

logger = structlog.stdlib.get_logger("activity")


@dataclass(frozen=True)
class LogEntry:
    timestamp: str
    message: str

    def render(self) -> str:
        return f"{self.timestamp}: {self.message}"


def _local_time() -> str:
    return datetime.now().strftime("%H:%M:%S")


class LogSink:
    """User-visible activity log.

    Entries are kept in insertion order and only ever removed all at once
    through ``clear``. Every append is mirrored to the structured logger.
    """

    def __init__(self, clock: Optional[Callable[[], str]] = None) -> None:
        self._clock = clock or _local_time
        self._entries: List[LogEntry] = []

    def append(self, message: str) -> None:
        entry = LogEntry(timestamp=self._clock(), message=message)
        self._entries.append(entry)
        logger.info(message)

    def clear(self) -> None:
        self._entries = []

    def snapshot(self) -> List[LogEntry]:
        return list(self._entries)

    def lines(self) -> List[str]:
        return [entry.render() for entry in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    # Log sinks are handed around as plain callables (``log("...")``)
    __call__ = append
