"""
Status Logger - tracks the status of the script runner and keeps a log history.

Entries stay in memory (bounded) and can be forwarded to a listener, which
the command line uses to print them as they arrive.
"""

import threading
from datetime import datetime
from typing import Callable, List, Optional
from dataclasses import dataclass


@dataclass
class LogEntry:
    """
    Represents a single log entry.

    ``line`` is the script line the entry refers to, 0 when none.
    """
    timestamp: datetime
    message: str
    level: str = "INFO"
    line: int = 0

    def __str__(self) -> str:
        time_str = self.timestamp.strftime("%H:%M:%S")
        where = f" (line {self.line})" if self.line else ""
        return f"[{time_str}] {self.level}: {self.message}{where}"


class StatusLogger:
    """
    Manages status updates and maintains a log history.

    Safe to call from the script worker thread and the owning thread at the
    same time.
    """

    def __init__(self, max_entries: int = 100):
        """
        Initialize the logger.

        Args:
            max_entries: Maximum number of log entries to keep in memory
        """
        self._log_entries: List[LogEntry] = []
        self._max_entries = max_entries
        self._current_status = "Idle"
        self._listener: Optional[Callable[[LogEntry], None]] = None
        self._lock = threading.Lock()

    def register_listener(self, listener: Optional[Callable[[LogEntry], None]]) -> None:
        """Forward every new entry to ``listener`` (None to stop forwarding)."""
        self._listener = listener

    def log_info(self, message: str, line: int = 0) -> None:
        """Log an informational message."""
        self._add_entry(message, "INFO", line)

    def log_warning(self, message: str, line: int = 0) -> None:
        """Log a warning message."""
        self._add_entry(message, "WARNING", line)

    def log_error(self, message: str, line: int = 0) -> None:
        """Log an error message."""
        self._add_entry(message, "ERROR", line)

    def update_status(self, status: str) -> None:
        """
        Update the current status.

        Args:
            status: The new status message
        """
        self._current_status = status
        self.log_info(status)

    def get_current_status(self) -> str:
        """Returns the current status message."""
        return self._current_status

    def get_recent_logs(self, count: int = 10) -> List[LogEntry]:
        """
        Get the most recent log entries.

        Args:
            count: Number of recent entries to return

        Returns:
            List of recent log entries
        """
        with self._lock:
            return self._log_entries[-count:]

    def get_all_logs(self) -> List[LogEntry]:
        """Returns all log entries."""
        with self._lock:
            return self._log_entries.copy()

    def get_errors(self) -> List[LogEntry]:
        with self._lock:
            return [e for e in self._log_entries if e.level == "ERROR"]

    def clear_logs(self) -> None:
        """Clear all log entries."""
        with self._lock:
            self._log_entries.clear()
        self.log_info("Log history cleared")

    def _add_entry(self, message: str, level: str, line: int = 0) -> None:
        entry = LogEntry(
            timestamp=datetime.now(),
            message=message,
            level=level,
            line=line,
        )

        with self._lock:
            self._log_entries.append(entry)

            # Trim old entries if we exceed max
            if len(self._log_entries) > self._max_entries:
                self._log_entries = self._log_entries[-self._max_entries:]

        if self._listener:
            self._listener(entry)

    def export_logs_to_file(self, filepath: str) -> bool:
        """
        Export all logs to a text file.

        Args:
            filepath: Path where the log file should be saved

        Returns:
            bool: True if export was successful
        """
        try:
            with open(filepath, 'w', encoding='utf-8') as f:
                f.write("Ducky Script Runner - Log Export\n")
                f.write(f"Generated: {datetime.now()}\n")
                f.write("=" * 50 + "\n\n")

                for entry in self.get_all_logs():
                    time_str = entry.timestamp.strftime("%Y-%m-%d %H:%M:%S")
                    where = f" (line {entry.line})" if entry.line else ""
                    f.write(f"[{time_str}] {entry.level}: {entry.message}{where}\n")

            return True
        except OSError as e:
            print(f"Failed to export logs: {e}")
            return False
