"""Audit trail of executed DAO statements."""

import sqlite3
import logging
import functools
import inspect
from threading import Lock
from typing import Optional

logger = logging.getLogger(__name__)

class Audit:
    """Records executed statements in an SQLite database."""
    def __init__(self, db: str = 'audit.db'):
        self.db = db
        self.lock = Lock()
        self._init()

    def _init(self):
        """Initialize audit table."""
        with self.lock, sqlite3.connect(self.db) as conn:
            conn.execute('''
                CREATE TABLE IF NOT EXISTS audit (
                    id INTEGER PRIMARY KEY,
                    ts TEXT DEFAULT CURRENT_TIMESTAMP,
                    fn TEXT,
                    kind TEXT,
                    sql TEXT,
                    params TEXT,
                    ok INTEGER,
                    err TEXT,
                    caller_module TEXT,
                    caller_path TEXT
                )
            ''')

    def log(self, fn: str, kind: str, sql: str, params: str, ok: bool, err: Optional[str],
            caller_module: str, caller_path: str):
        """Log one statement to the audit table."""
        with self.lock, sqlite3.connect(self.db) as conn:
            conn.execute('''
                INSERT INTO audit (fn, kind, sql, params, ok, err, caller_module, caller_path)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ''', (fn, kind, sql, params, int(ok), err, caller_module, caller_path))

    def entries(self, limit: int = 100):
        """Most recent audit rows, newest first."""
        with self.lock, sqlite3.connect(self.db) as conn:
            conn.row_factory = sqlite3.Row
            rows = conn.execute('SELECT * FROM audit ORDER BY id DESC LIMIT ?', (limit,)).fetchall()
        return [dict(r) for r in rows]

def _caller():
    """Module and file of the first frame outside this package."""
    try:
        for frame in inspect.stack()[2:]:
            module = inspect.getmodule(frame[0])
            name = module.__name__ if module else '__main__'
            if not name.startswith('dao_conn'):
                return name, frame.filename
    except Exception as e:
        logger.warning(f"Failed to extract caller info: {e}")
        return 'unknown', 'unknown'
    return '__main__', 'unknown'

def audited(fn):
    """Decorator auditing executor calls taking a Query as first argument."""
    @functools.wraps(fn)
    def wrapper(self, query, *args, **kwargs):
        if self.audit_obj is None:
            return fn(self, query, *args, **kwargs)
        params = str(query.params)[:1000]  # Limit size
        caller_module, caller_path = _caller()
        try:
            result = fn(self, query, *args, **kwargs)
        except Exception as e:
            self.audit_obj.log(fn.__name__, query.kind.value, query.sql, params, False, str(e), caller_module, caller_path)
            raise
        self.audit_obj.log(fn.__name__, query.kind.value, query.sql, params, self.last_error is None,
                           None if self.last_error is None else str(self.last_error), caller_module, caller_path)
        return result
    return wrapper
