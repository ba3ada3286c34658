import pytest
import sqlite3
from movr.database.schema import init_schema
from movr.database.ops import DBOperations
from movr.audit import AuditLog
from movr.commit.executor import CommitExecutor
from movr.core import AssetSession

@pytest.fixture
def conn():
    """Returns an in-memory SQLite connection with the schema initialized."""
    c = sqlite3.connect(":memory:", check_same_thread=False)
    init_schema(c)
    try:
        yield c
    finally:
        c.close()

@pytest.fixture
def db_ops(conn):
    """Returns a DBOperations instance attached to the in-memory DB."""
    return DBOperations(conn)

@pytest.fixture
def audit():
    return AuditLog(user="tester")

@pytest.fixture
def make_file(tmp_path):
    """Creates a small source file under tmp_path/src and returns its path."""
    src = tmp_path / "src"
    src.mkdir(exist_ok=True)

    def _make(name, data=None):
        p = src / name
        p.write_bytes(data if data is not None else f"data:{name}".encode())
        return p

    return _make

@pytest.fixture
def session(audit):
    """An AssetSession whose executor does not pause between files."""
    return AssetSession(audit_log=audit, executor=CommitExecutor(audit_log=audit, yield_interval=0))
