"""Generic table data-access object."""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union
from dao_builder import QueryBuilder, OperationKind, CardinalityError, check_table, check_column, default_identifier
from .conn import DaoConnection, FetchMode

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class TableConfig:
    """Table, identifier column and fetch mode used by one Dao."""
    table: str
    identifier: Optional[str] = None
    fetch_mode: FetchMode = FetchMode.ASSOC

    def __post_init__(self):
        check_table(self.table)
        object.__setattr__(self, 'identifier', check_column(self.identifier or default_identifier(self.table)))
        object.__setattr__(self, 'fetch_mode', FetchMode(self.fetch_mode))


class Dao:
    """Convenience CRUD and search operations over one table.

    A Dao never changes its configuration: ``with_table``, ``with_identifier``
    and ``with_fetch_mode`` return a new Dao sharing the same connection.

        con = DaoConnection('sqlite:///app.db')
        people = Dao(con, 'person')
        pid = people.insert({'name': 'bob', 'age': 5})
        people.select_id(pid)
        people.select_like({'name': ['bo', 'b']}, type='OR', sort='DESC')
    """
    def __init__(self, con: DaoConnection, table: Union[str, TableConfig], identifier: Optional[str] = None,
                 fetch_mode: FetchMode = FetchMode.ASSOC):
        self.con = con
        self.config = table if isinstance(table, TableConfig) else TableConfig(table, identifier, fetch_mode)
        self.builder = QueryBuilder(self.config.table, self.config.identifier, con.db)

    @property
    def table(self) -> str:
        return self.config.table

    @property
    def identifier(self) -> str:
        return self.config.identifier

    @property
    def fetch_mode(self) -> FetchMode:
        return self.config.fetch_mode

    def with_table(self, table: str, identifier: Optional[str] = None) -> 'Dao':
        """New Dao on another table; the identifier resets to id_<table> unless given."""
        return Dao(self.con, TableConfig(table, identifier, self.config.fetch_mode))

    def with_identifier(self, identifier: str) -> 'Dao':
        return Dao(self.con, replace(self.config, identifier=identifier))

    def with_fetch_mode(self, fetch_mode: FetchMode) -> 'Dao':
        return Dao(self.con, replace(self.config, fetch_mode=fetch_mode))

    def _run(self, query, fetch_mode: Optional[FetchMode] = None):
        return self.con.execute(query, fetch_mode or self.config.fetch_mode)

    def select(self):
        """Every row of the table."""
        return self._run(self.builder.select())

    def select_id(self, value: Any):
        """The row whose identifier equals value, or None.

        Raises CardinalityError when the identifier column is not unique for
        value.
        """
        rows = self._run(self.builder.select_id(value))
        if rows is None:
            return None
        if len(rows) > 1:
            logger.warning(f"select_id on {self.table}.{self.identifier} matched {len(rows)} rows")
            raise CardinalityError(self.table, self.identifier, value, len(rows))
        if self.config.fetch_mode is FetchMode.FRAME:
            return rows if len(rows) else None
        return rows[0] if rows else None

    def select_where(self, criteria: Mapping[str, Any]):
        return self._run(self.builder.select_where(criteria))

    def select_filter(self, columns: Union[None, str, Sequence[str]] = None,
                      where: Optional[Mapping[str, Any]] = None,
                      like: Optional[Mapping[str, str]] = None,
                      order: Optional[str] = None, vector: Optional[str] = None,
                      limit: Optional[int] = None):
        """See QueryBuilder.select_filter."""
        return self._run(self.builder.select_filter(columns, where, like, order, vector, limit))

    def select_like(self, like: Mapping[str, Union[str, Sequence[str]]],
                    columns: Optional[Sequence[str]] = None, type: str = 'AND',
                    sort: str = 'ASC', order: Optional[str] = None):
        """See QueryBuilder.select_like."""
        return self._run(self.builder.select_like(like, columns, type, sort, order))

    def insert(self, values: Mapping[str, Any]):
        """Insert one row; returns the driver's lastrowid."""
        return self._run(self.builder.insert(values))

    def update(self, values: Mapping[str, Any], where: Mapping[str, Any]) -> Optional[int]:
        return self._run(self.builder.update(values, where))

    def delete_id(self, value: Any) -> Optional[int]:
        return self._run(self.builder.delete_id(value))

    def delete_where(self, criteria: Mapping[str, Any]) -> Optional[int]:
        return self._run(self.builder.delete_where(criteria))

    def delete_range(self, values: Sequence[Any]) -> Optional[int]:
        return self._run(self.builder.delete_range(values))

    def range_id(self) -> Optional[List[Any]]:
        """Every identifier value in the table."""
        return self._run(self.builder.range_id(), FetchMode.COLUMN)

    def get_uid(self) -> Optional[str]:
        """Fresh UUID string generated by the database."""
        values = self._run(self.builder.uid(), FetchMode.COLUMN)
        return str(values[0]) if values else None

    def query(self, sql: str, params: Optional[Mapping[str, Any]] = None,
              kind: OperationKind = OperationKind.SELECT):
        """Run caller-written SQL.

        Placeholders are written :name and bound from params by key. kind
        decides what comes back: rows for SELECT, lastrowid for INSERT,
        row count for UPDATE and DELETE.
        """
        return self._run(self.builder.raw(sql, params, OperationKind(kind)))

    def describe(self) -> Dict[str, Any]:
        return {'table': self.table, 'identifier': self.identifier,
                'fetch_mode': self.fetch_mode.value, 'dialect': self.con.db}
