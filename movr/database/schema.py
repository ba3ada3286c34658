"""
Database schema definitions.
"""
import sqlite3
import logging

CURRENT_SCHEMA_VERSION = 1

def init_schema(conn: sqlite3.Connection):
    """
    Applies the schema to the database.
    Idempotent: safe to run on every startup.
    """
    with conn:
        # 1. Version Tracking
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            );
        """)

        cur = conn.cursor()
        cur.execute("SELECT version FROM schema_version")
        if not cur.fetchone():
            conn.execute("INSERT INTO schema_version (version) VALUES (?)", (CURRENT_SCHEMA_VERSION,))

        # 2. Session State
        # One row per imported file, keyed by its original path.
        # NULL means "not stored": the value is re-derived from the filename on restore.
        conn.execute("""
        CREATE TABLE IF NOT EXISTS session_records (
            orig_path       TEXT PRIMARY KEY,
            position        INTEGER NOT NULL,
            image_type      TEXT,
            description     TEXT,
            request_id      TEXT,
            company         TEXT,
            sequence        TEXT,
            retouched       INTEGER,
            verified        INTEGER,
            saved_at        TEXT NOT NULL
        );
        """)

        # 3. Audit Log (append-only)
        conn.execute("""
        CREATE TABLE IF NOT EXISTS audit_log (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            logged_at       TEXT NOT NULL,
            user            TEXT NOT NULL,
            action          TEXT NOT NULL,
            subject         TEXT NOT NULL,
            result          TEXT NOT NULL
        );
        """)

        # 4. Recent Destinations
        conn.execute("""
        CREATE TABLE IF NOT EXISTS recent_paths (
            path            TEXT PRIMARY KEY,
            used_at         REAL NOT NULL
        );
        """)

        # 5. Settings
        conn.execute("""
        CREATE TABLE IF NOT EXISTS settings (
            key             TEXT PRIMARY KEY,
            value           TEXT
        );
        """)

        conn.execute("CREATE INDEX IF NOT EXISTS idx_audit_action ON audit_log(action);")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_recent_used_at ON recent_paths(used_at);")

    logging.debug("Database schema initialized.")
