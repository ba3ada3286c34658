import getpass
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, UTC
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class AuditEntry:
    timestamp: datetime
    user: str
    action: str
    subject: str
    result: str

    @property
    def formatted_timestamp(self) -> str:
        return self.timestamp.strftime("%Y-%m-%d %H:%M:%S")


class AuditLog:
    """
    Append-only record of what happened to which file.

    Entries are kept in memory; when `db_ops` is given every entry is also
    written to the `audit_log` table so it survives the process.
    """

    def __init__(self, user: Optional[str] = None, db_ops=None):
        self.user = user or _current_user()
        self.db = db_ops
        self._entries: List[AuditEntry] = []
        self._lock = threading.Lock()

    def log(self, action: str, subject: str, result: str) -> AuditEntry:
        entry = AuditEntry(datetime.now(UTC), self.user, action, subject, result)
        with self._lock:
            self._entries.append(entry)
        logging.debug(f"[audit] {action}: {subject} -> {result}")

        if self.db is not None:
            self.db.insert_audit_entry(entry)
        return entry

    def entries(self, action: Optional[str] = None) -> List[AuditEntry]:
        with self._lock:
            snapshot = list(self._entries)
        if action is None:
            return snapshot
        return [e for e in snapshot if e.action == action]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def generate_report(self) -> str:
        lines = [
            "Movr Processing Log",
            f"UTC Time: {datetime.now(UTC).strftime('%Y-%m-%d %H:%M:%S')}",
            f"User: {self.user}",
            "----------------------------",
            "",
        ]
        for e in self.entries():
            lines.append(f"[{e.formatted_timestamp}] {e.action}: {e.subject}")
            lines.append(f"Result: {e.result}")
            lines.append("")
        return "\n".join(lines)

    def save(self, path: Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.generate_report(), encoding="utf-8")
        logging.info(f"Audit log written to {path}")

    def clear(self):
        # Only the in-memory view; persisted rows are kept
        with self._lock:
            self._entries.clear()


def _current_user() -> str:
    try:
        return getpass.getuser()
    except Exception:
        return "unknown"
