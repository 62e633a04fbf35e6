# nav_logger.py
# Diagnostic sink for the navigation engine.
# Keeps the most recent log lines in a bounded ring buffer so the
# presentation layer can show, copy or clear them.

import logging
import threading
from collections import deque
from datetime import datetime
from typing import List, Optional

from .collaborators import DiagnosticSink
from .nav_config import NavConfig

# Standard Python logger: configure at app entry point if needed
logger = logging.getLogger(__name__)

ROOT_LOGGER_NAME = "navigation.guidance"


class NavLogger:
    """
    Bounded in-memory diagnostic log.

    write() never raises and never blocks on I/O; once capacity is reached
    the oldest lines are dropped.

    Args:
        config: NavConfig instance for the buffer capacity.
    """

    def __init__(self, config: Optional[NavConfig] = None) -> None:
        self.config = config or NavConfig()
        self._lines: deque = deque(maxlen=self.config.diagnostic_capacity)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Sink interface
    # ------------------------------------------------------------------

    def write(self, tag: str, level: str, message: str) -> None:
        """Append one line: '<time> [<level>] <tag>: <message>'."""
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        with self._lock:
            self._lines.append(f"{timestamp} [{level}] {tag}: {message}")

    # ------------------------------------------------------------------
    # Presentation helpers
    # ------------------------------------------------------------------

    def lines(self) -> List[str]:
        with self._lock:
            return list(self._lines)

    def dump(self) -> str:
        """Whole buffer as one string, e.g. for copying to a clipboard."""
        return "\n".join(self.lines())

    def clear(self) -> None:
        with self._lock:
            self._lines.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)


class SinkHandler(logging.Handler):
    """Forwards standard logging records to a DiagnosticSink."""

    def __init__(self, sink: DiagnosticSink, level: int = logging.DEBUG) -> None:
        super().__init__(level)
        self.sink = sink

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.sink.write(record.name, record.levelname, self.format(record))
        except Exception:
            self.handleError(record)


def attach_sink(sink: DiagnosticSink, level: int = logging.DEBUG,
                logger_name: str = ROOT_LOGGER_NAME) -> SinkHandler:
    """Route every engine log record into sink. Returns the handler for removal."""
    handler = SinkHandler(sink, level)
    target = logging.getLogger(logger_name)
    target.addHandler(handler)
    if target.level == logging.NOTSET or target.level > level:
        target.setLevel(level)
    logger.debug(f"Diagnostic sink attached to '{logger_name}'.")
    return handler
