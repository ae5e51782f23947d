"""Run-scoped conversion log.

One ConversionLog is created per conversion run and handed explicitly to
every stage. Appends are serialized with a lock so per-file workers can
log concurrently. Every entry is mirrored to stdlib logging.

Usage:
    log = ConversionLog()
    log.warning("Oversized file passed through", file="src/big.js")
    log.to_dict()  # {"errors": [...], "warnings": [...], "info": [...]}
"""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.SUCCESS: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class LogEntry:
    severity: Severity
    message: str
    timestamp: float
    file: Optional[str] = None

    def format(self) -> str:
        return f"{self.file}: {self.message}" if self.file else self.message

    def to_dict(self) -> Dict:
        return {
            "severity": self.severity.value,
            "message": self.message,
            "timestamp": self.timestamp,
            "file": self.file,
        }


class ConversionLog:
    """Append-only, thread-safe log of one conversion run."""

    def __init__(self):
        self._entries: List[LogEntry] = []
        self._lock = threading.Lock()

    def add(
        self,
        severity: Severity,
        message: str,
        file: Optional[str] = None,
        source: Optional[logging.Logger] = None,
    ) -> LogEntry:
        """Append an entry and mirror it to ``source`` (or this module's logger)."""
        entry = LogEntry(severity=severity, message=message, timestamp=time.time(), file=file)
        with self._lock:
            self._entries.append(entry)
        (source or logger).log(_LEVELS[severity], entry.format())
        return entry

    def info(self, message: str, file: Optional[str] = None, source: Optional[logging.Logger] = None) -> LogEntry:
        return self.add(Severity.INFO, message, file, source)

    def success(self, message: str, file: Optional[str] = None, source: Optional[logging.Logger] = None) -> LogEntry:
        return self.add(Severity.SUCCESS, message, file, source)

    def warning(self, message: str, file: Optional[str] = None, source: Optional[logging.Logger] = None) -> LogEntry:
        return self.add(Severity.WARNING, message, file, source)

    def error(self, message: str, file: Optional[str] = None, source: Optional[logging.Logger] = None) -> LogEntry:
        return self.add(Severity.ERROR, message, file, source)

    @property
    def entries(self) -> Tuple[LogEntry, ...]:
        with self._lock:
            return tuple(self._entries)

    def by_severity(self, *severities: Severity) -> List[LogEntry]:
        return [e for e in self.entries if e.severity in severities]

    @property
    def errors(self) -> List[LogEntry]:
        return self.by_severity(Severity.ERROR)

    @property
    def warnings(self) -> List[LogEntry]:
        return self.by_severity(Severity.WARNING)

    def for_file(self, path: str) -> List[LogEntry]:
        return [e for e in self.entries if e.file == path]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def to_dict(self) -> Dict[str, List[str]]:
        """Grouped messages; success entries are reported as info."""
        return {
            "errors": [e.format() for e in self.by_severity(Severity.ERROR)],
            "warnings": [e.format() for e in self.by_severity(Severity.WARNING)],
            "info": [e.format() for e in self.by_severity(Severity.INFO, Severity.SUCCESS)],
        }
