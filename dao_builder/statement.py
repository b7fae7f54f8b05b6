"""Prepared statement handle over SQLAlchemy text constructs."""

from typing import Any, Dict, Optional
from sqlalchemy import text
from sqlalchemy.engine import Dialect
from sqlalchemy.sql.elements import TextClause


class Statement:
    """SQL string plus the values bound to its named placeholders.

    Binding goes through ``TextClause.bindparams`` so a name the SQL does not
    declare fails immediately with ``sqlalchemy.exc.ArgumentError``, and a
    placeholder left unbound fails at execution with ``StatementError``.
    """
    __slots__ = ('sql', 'params', '_clause')

    def __init__(self, sql: str):
        self.sql = sql
        self.params: Dict[str, Any] = {}
        self._clause = text(sql)

    def bind(self, name: str, value: Any) -> 'Statement':
        """Bind one value to :name."""
        self._clause = self._clause.bindparams(**{name: value})
        self.params[name] = value
        return self

    @property
    def clause(self) -> TextClause:
        return self._clause

    def render(self, dialect: Optional[Dialect] = None) -> str:
        """SQL with bound values inlined as literals. For display and logs only."""
        compiled = self._clause.compile(dialect=dialect, compile_kwargs={'literal_binds': True})
        return str(compiled)

    def __repr__(self):
        return f'Statement({self.sql!r}, {self.params!r})'
