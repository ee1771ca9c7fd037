"""
GENEALOGY QUERY LOGGER - What was asked, and what came back

Two concerns live here:
- configure_logging: stdlib logging setup for the "genealogy" logger tree
- QueryLogger: a record of every query run through the command line

Architecture:
- QueryEvent: one query (operation, targets, result size, duration)
- EventBuffer: in-memory ring buffer of recent events
- FileLogger: optional JSON-lines file, encoded with msgspec
- read_query_log: decodes a JSON-lines file back into events
- QueryLogger: the interface tying both together

Usage:
    query_log = QueryLogger(LoggerConfig(log_path=Path("queries.jsonl")))
    query_log.log_query("ancestors", ["303"], result, duration_ms=1.2)

    for event in query_log.get_recent_events(10):
        print(f"{event.timestamp}: {event.operation} -> {event.result_size}")
"""
import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

import msgspec

from genealogy.graph_db import GenealogyDB

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "WARNING") -> logging.Logger:
    """
    Attach a stderr handler to the "genealogy" logger at the given level.

    Calling it again only changes the level.
    """
    root = logging.getLogger("genealogy")
    root.setLevel(level.upper())
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    return root


# =============================================================================
# EVENTS
# =============================================================================

class QueryEvent(msgspec.Struct, kw_only=True):
    """A single query, as recorded."""
    timestamp: str
    sequence: int
    operation: str
    targets: List[str]
    output: Optional[str] = None
    result_size: Optional[int] = None  # None for the absent result
    duration_ms: float = 0.0


def result_size(result: Any) -> Optional[int]:
    """Number of codes (or relations, for an edge list) in a query result."""
    if result is None:
        return None
    if isinstance(result, GenealogyDB):
        return result.node_count
    return len(result)


@dataclass
class LoggerConfig:
    """Configuration for the query logger."""
    buffer_size: int = 1000
    log_path: Optional[Path] = None  # JSON-lines file; None keeps events in memory only


# =============================================================================
# EVENT BUFFER
# =============================================================================

class EventBuffer:
    """
    Thread-safe ring buffer for recent query events.

    O(1) append, oldest events dropped once max_size is reached.
    """

    def __init__(self, max_size: int = 1000):
        self._buffer: deque[QueryEvent] = deque(maxlen=max_size)
        self._lock = threading.RLock()
        self._sequence = 0

    def append(self, event: QueryEvent) -> None:
        with self._lock:
            self._buffer.append(event)

    def get_last(self, n: int) -> List[QueryEvent]:
        with self._lock:
            items = list(self._buffer)
            return items[-n:] if n > 0 else []

    def next_sequence(self) -> int:
        with self._lock:
            self._sequence += 1
            return self._sequence

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)


# =============================================================================
# FILE LOGGER
# =============================================================================

class FileLogger:
    """Appends events to a newline-delimited JSON file."""

    def __init__(self, log_path: Path):
        self._log_path = Path(log_path)
        self._lock = threading.Lock()
        self._encoder = msgspec.json.Encoder()
        self._log_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self._log_path, "ab")

    @property
    def path(self) -> Path:
        return self._log_path

    def write(self, event: QueryEvent) -> None:
        with self._lock:
            if self._file is None:
                raise ValueError(f"Query log {self._log_path} is closed")
            self._file.write(self._encoder.encode(event) + b"\n")
            self._file.flush()

    def close(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None


def read_query_log(path: Path) -> List[QueryEvent]:
    """Read back the events of a JSON-lines query log."""
    path = Path(path)
    if not path.exists():
        return []

    decoder = msgspec.json.Decoder(type=QueryEvent)
    with open(path, "rb") as f:
        return [decoder.decode(line) for line in f if line.strip()]


# =============================================================================
# QUERY LOGGER (Main Interface)
# =============================================================================

class QueryLogger:
    """
    Records queries to the in-memory buffer (always) and to a JSON-lines
    file (when configured). Thread-safe.
    """

    def __init__(self, config: Optional[LoggerConfig] = None):
        self.config = config or LoggerConfig()
        self._buffer = EventBuffer(self.config.buffer_size)
        self._file_logger: Optional[FileLogger] = None
        if self.config.log_path is not None:
            self._file_logger = FileLogger(self.config.log_path)

    def _now(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def _emit(self, event: QueryEvent) -> None:
        self._buffer.append(event)
        if self._file_logger:
            self._file_logger.write(event)

    def log_query(
        self,
        operation: str,
        targets: List[str],
        result: Any,
        duration_ms: float,
        output: Optional[str] = None,
    ) -> QueryEvent:
        """Record one query and its result size."""
        event = QueryEvent(
            timestamp=self._now(),
            sequence=self._buffer.next_sequence(),
            operation=operation,
            targets=[str(t) for t in targets],
            output=output,
            result_size=result_size(result),
            duration_ms=round(duration_ms, 3),
        )
        self._emit(event)
        logger.debug(
            "Query #%d %s(%s) -> %s in %.3f ms",
            event.sequence, operation, ", ".join(event.targets),
            event.result_size, event.duration_ms,
        )
        return event

    def get_recent_events(self, n: int = 100) -> List[QueryEvent]:
        return self._buffer.get_last(n)

    def close(self) -> None:
        if self._file_logger:
            self._file_logger.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
