"""Connection wrapper executing DAO queries."""

import pandas as pd
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, List, Optional, Union
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, Connection, CursorResult
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.engine.url import make_url
from dao_builder import Query, OperationKind
from .audit import Audit, audited
import logging

logger = logging.getLogger(__name__)

class FetchMode(Enum):
    """Shape of materialized result rows."""
    ASSOC = 'assoc'     # list of dicts keyed by column name
    NUM = 'num'         # list of tuples
    COLUMN = 'column'   # list of first-column values
    FRAME = 'frame'     # pandas DataFrame

class ErrorMode(Enum):
    """How driver errors reach the caller."""
    EXCEPTION = 'exception'
    WARNING = 'warning'
    SILENT = 'silent'

class DaoConnection:
    """Executes DAO queries one statement at a time.

    Wraps either an Engine (each statement runs in its own ``engine.begin()``
    block and is committed on success) or a caller-owned Connection, in which
    case statements run on that connection and the caller owns commit and
    rollback.
    """
    def __init__(
        self, conn: Union[str, Engine, Connection], echo: bool = False, debug: bool = False,
        error_mode: ErrorMode = ErrorMode.EXCEPTION, audit_db: Optional[str] = None
    ):
        self._conn: Optional[Connection] = None
        self._owns_engine = False
        if isinstance(conn, Connection):
            self._conn = conn
            self.engine = conn.engine
        elif isinstance(conn, Engine):
            self.engine = conn
        else:
            self.engine = create_engine(make_url(conn), echo=echo, future=True)
            self._owns_engine = True
        self.url = self.engine.url
        self.db = self._get_dialect()
        self.debug = debug
        self.error_mode = error_mode
        self.audit_obj = Audit(audit_db) if audit_db else None
        self.last_query: Optional[Query] = None
        self.last_error: Optional[SQLAlchemyError] = None

    def _get_dialect(self) -> str:
        """Get database dialect name from the engine."""
        dialect = self.engine.dialect.name.lower()
        return 'postgresql' if dialect == 'postgres' else dialect

    def _log(self, sql: str, params: Any):
        """Log SQL and params if debug enabled."""
        if self.debug:
            logger.debug(f'SQL: {sql} | Params: {params}')

    def set_error_mode(self, mode: ErrorMode) -> 'DaoConnection':
        """Choose between raising, warning or silently recording driver errors."""
        self.error_mode = ErrorMode(mode)
        return self

    @contextmanager
    def connect(self):
        """Connection for one statement: the caller's, or a fresh transactional one."""
        if self._conn is not None:
            yield self._conn
        else:
            with self.engine.begin() as conn:
                yield conn

    @audited
    def execute(self, query: Query, fetch_mode: FetchMode = FetchMode.ASSOC):
        """Execute one query.

        SELECT returns rows shaped by fetch_mode, INSERT the driver's lastrowid,
        UPDATE and DELETE the affected row count. Driver errors follow
        error_mode; under WARNING and SILENT the call returns None.
        """
        self.last_query = query
        self.last_error = None
        self._log(query.sql, query.params)
        try:
            with self.connect() as conn:
                result = conn.execute(query.statement.clause)
                if query.fetch:
                    return self._fetch(result, fetch_mode)
                if query.kind is OperationKind.INSERT:
                    return result.lastrowid
                return result.rowcount
        except SQLAlchemyError as e:
            self.last_error = e
            if self.error_mode is ErrorMode.EXCEPTION:
                raise
            if self.error_mode is ErrorMode.WARNING:
                logger.warning(f'{query.kind.value} failed: {e}')
            return None

    def _fetch(self, result: CursorResult, fetch_mode: FetchMode) -> Union[List[Any], pd.DataFrame]:
        """Materialize every row of result."""
        if fetch_mode is FetchMode.ASSOC:
            return [dict(row) for row in result.mappings().all()]
        if fetch_mode is FetchMode.NUM:
            return [tuple(row) for row in result.all()]
        if fetch_mode is FetchMode.COLUMN:
            return list(result.scalars().all())
        if fetch_mode is FetchMode.FRAME:
            return pd.DataFrame(result.all(), columns=list(result.keys()))
        raise ValueError(f'Unsupported fetch mode: {fetch_mode}')

    def error_info(self) -> Dict[str, Any]:
        """Details of the last driver error, empty if the last statement succeeded."""
        if self.last_error is None:
            return {}
        orig = getattr(self.last_error, 'orig', None)
        return {
            'type': type(self.last_error).__name__,
            'message': str(orig or self.last_error),
            'sql': self.last_query.sql if self.last_query else None
        }

    def close(self):
        """Dispose of the engine if this wrapper created it."""
        if self._owns_engine:
            self.engine.dispose()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
