"""Row model for persisted log entries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class LogRecord:
    """A single log call as stored in the log table."""

    id: int
    caller_package: Optional[str]
    caller_line: Optional[str]
    message: Optional[str]
    timestamp: int
    level: Optional[str]
    context: Optional[str]

    @classmethod
    def from_row(cls, row: Any) -> "LogRecord":
        """Build a record from a SQLAlchemy ``Row`` or any column mapping."""
        data: Mapping[str, Any] = row._mapping if hasattr(row, "_mapping") else row
        return cls(
            id=data["id"],
            caller_package=data["caller_package"],
            caller_line=data["caller_line"],
            message=data["message"],
            timestamp=data["timestamp"],
            level=data["level"],
            context=data["context"],
        )

    @property
    def logged_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the log entry to a dictionary."""
        return {
            "id": self.id,
            "caller_package": self.caller_package,
            "caller_line": self.caller_line,
            "message": self.message,
            "timestamp": self.timestamp,
            "logged_at": self.logged_at.isoformat(),
            "level": self.level,
            "context": self.context,
        }
