import sqlite3
import logging
import threading
import time
from datetime import datetime, UTC
from pathlib import Path
from typing import Optional, List, Dict, Any, Iterable

from ..exceptions import DatabaseError

class DBOperations:
    def __init__(self, conn: sqlite3.Connection, write_lock: Optional[threading.Lock] = None):
        self.conn = conn
        # Guards every use of the shared connection, reads included
        self.write_lock = write_lock if write_lock is not None else threading.Lock()

    # --- Session State ---

    def save_session_records(self, records: Iterable) -> int:
        """
        Replaces the stored session with the given records.
        Stored fields are the operator-editable ones; everything else is
        re-derived from the file on restore.
        """
        now_iso = datetime.now(UTC).isoformat()
        rows = [
            (
                str(rec.source_path), position, rec.image_type.slug, rec.description,
                rec.request_id, rec.company.value, rec.sequence,
                int(rec.retouched), int(rec.verified), now_iso,
            )
            for position, rec in enumerate(records)
        ]
        try:
            with self.write_lock, self.conn:
                self.conn.execute("DELETE FROM session_records")
                self.conn.executemany("""
                    INSERT INTO session_records (
                        orig_path, position, image_type, description, request_id,
                        company, sequence, retouched, verified, saved_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, rows)
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to save session: {e}") from e

        logging.debug(f"Saved {len(rows)} session records.")
        return len(rows)

    def load_session_records(self) -> List[Dict[str, Any]]:
        """Returns stored rows in import order. Absent values come back as None."""
        stored = self._query("""
            SELECT orig_path, image_type, description, request_id, company,
                   sequence, retouched, verified
            FROM session_records
            ORDER BY position
        """)
        rows = []
        for path, itype, desc, req, company, seq, retouched, verified in stored:
            rows.append({
                'path': path,
                'image_type': itype,
                'description': desc,
                'request_id': req,
                'company': company,
                'sequence': seq,
                'retouched': None if retouched is None else bool(retouched),
                'verified': None if verified is None else bool(verified),
            })
        return rows

    def clear_session_records(self):
        with self.write_lock, self.conn:
            self.conn.execute("DELETE FROM session_records")

    # --- Audit Log ---

    def insert_audit_entry(self, entry):
        with self.write_lock, self.conn:
            self.conn.execute("""
                INSERT INTO audit_log (logged_at, user, action, subject, result)
                VALUES (?, ?, ?, ?, ?)
            """, (entry.timestamp.isoformat(), entry.user, entry.action, entry.subject, entry.result))

    def fetch_audit_entries(self, action: Optional[str] = None) -> List[Dict[str, str]]:
        if action is None:
            rows = self._query("SELECT logged_at, user, action, subject, result FROM audit_log ORDER BY id")
        else:
            rows = self._query(
                "SELECT logged_at, user, action, subject, result FROM audit_log WHERE action = ? ORDER BY id",
                (action,),
            )
        return [
            {'logged_at': r[0], 'user': r[1], 'action': r[2], 'subject': r[3], 'result': r[4]}
            for r in rows
        ]

    # --- Recent Destinations ---

    def add_recent_path(self, path: str, max_items: int):
        """Moves `path` to the front of the list and trims it to `max_items`."""
        with self.write_lock, self.conn:
            self.conn.execute(
                "INSERT OR REPLACE INTO recent_paths (path, used_at) VALUES (?, ?)",
                (path, time.time()),
            )
            self.conn.execute("""
                DELETE FROM recent_paths WHERE path NOT IN (
                    SELECT path FROM recent_paths ORDER BY used_at DESC, rowid DESC LIMIT ?
                )
            """, (max_items,))

    def get_recent_paths(self) -> List[str]:
        rows = self._query("SELECT path FROM recent_paths ORDER BY used_at DESC, rowid DESC")
        return [r[0] for r in rows]

    def prune_recent_paths(self) -> List[str]:
        """Drops destinations that no longer exist on disk. Returns what was removed."""
        missing = [p for p in self.get_recent_paths() if not Path(p).exists()]
        if missing:
            with self.write_lock, self.conn:
                self.conn.executemany("DELETE FROM recent_paths WHERE path = ?", [(p,) for p in missing])
        return missing

    def clear_recent_paths(self):
        with self.write_lock, self.conn:
            self.conn.execute("DELETE FROM recent_paths")

    # --- Settings ---

    def get_setting(self, key: str, default: Optional[str] = None) -> Optional[str]:
        rows = self._query("SELECT value FROM settings WHERE key = ?", (key,))
        return rows[0][0] if rows and rows[0][0] is not None else default

    def set_setting(self, key: str, value: Optional[str]):
        with self.write_lock, self.conn:
            self.conn.execute("INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)", (key, value))

    # --- Internals ---

    def _query(self, sql: str, params: tuple = ()) -> List[tuple]:
        # The connection is shared with the commit worker thread, so reads
        # are serialized with writes
        with self.write_lock:
            return self.conn.execute(sql, params).fetchall()
