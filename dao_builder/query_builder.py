"""Statement builder for the generic table DAO."""

import re
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Union
from sqlalchemy.engine import Dialect
from .clauses import build_where, build_values, bind_params, check_column, check_table, iter_placeholders
from .exceptions import MalformedCriteriaError, UnsupportedDialectError
from .mappings import (quote_chars, uuid_functions, uuid_from, sort_directions, like_joins,
                       where_prefix, value_prefix, like_prefix, range_prefix)
from .statement import Statement

logger = logging.getLogger(__name__)

_rx_order = re.compile(r'^[\w\s.,()]+$')


class OperationKind(Enum):
    """What a statement does, and so what execution hands back."""
    SELECT = 'select'
    INSERT = 'insert'
    UPDATE = 'update'
    DELETE = 'delete'


@dataclass(frozen=True)
class Query:
    """A fully built statement ready for the executor."""
    statement: Statement
    kind: OperationKind = OperationKind.SELECT

    @property
    def sql(self) -> str:
        return self.statement.sql

    @property
    def params(self) -> Dict[str, Any]:
        return self.statement.params

    @property
    def fetch(self) -> bool:
        return self.kind is OperationKind.SELECT

    def render(self, dialect: Optional[Dialect] = None) -> str:
        return self.statement.render(dialect)


class QueryBuilder:
    """Builds the statements of every DAO operation against one table."""
    def __init__(self, table: str, identifier: Optional[str] = None, dialect: str = 'default'):
        self.table = check_table(table)
        self.identifier = check_column(identifier or default_identifier(table))
        self.dialect = dialect.lower()
        self.quote_char = quote_chars.get(self.dialect, '"')

    def _quote(self, column: str) -> str:
        return f'{self.quote_char}{column}{self.quote_char}'

    def _columns(self, columns: Union[None, str, Sequence[str]]) -> str:
        if columns is None or columns == '*':
            return '*'
        if isinstance(columns, str):
            columns = [columns]
        if not columns:
            raise MalformedCriteriaError('Empty column list')
        return ', '.join(check_column(c) for c in columns)

    def select(self) -> Query:
        """All rows and columns of the table."""
        return Query(Statement(f'SELECT * FROM {self.table}'))

    def select_id(self, value: Any) -> Query:
        """Rows whose identifier equals value."""
        stmt = Statement(f'SELECT * FROM {self.table} WHERE {self.identifier} = :id')
        return Query(bind_params(stmt, {'id': value}, allow_lists=False))

    def select_where(self, criteria: Mapping[str, Any]) -> Query:
        """Rows matching every criterion."""
        stmt = Statement(f'SELECT * FROM {self.table} WHERE {build_where(criteria, where_prefix)}')
        return Query(bind_params(stmt, criteria, where_prefix))

    def select_filter(self, columns: Union[None, str, Sequence[str]] = None,
                      where: Optional[Mapping[str, Any]] = None,
                      like: Optional[Mapping[str, str]] = None,
                      order: Optional[str] = None, vector: Optional[str] = None,
                      limit: Optional[int] = None) -> Query:
        """Projection, equality/IN criteria, prefix LIKE filters, ordering and limit.

        LIKE values are lowercased and matched as prefixes (``value%``).
        """
        sql = f'SELECT {self._columns(columns)} FROM {self.table}'
        conds = []
        if where:
            conds.append(build_where(where, where_prefix))
        like_values = {}
        if like:
            for name, value in iter_placeholders(like, like_prefix, allow_lists=False):
                if not isinstance(value, str):
                    raise MalformedCriteriaError(f'LIKE value must be a string: {name}')
                like_values[name] = f'{value.lower()}%'
            conds.extend(f'{column} LIKE :{name}' for column, name in zip(like, like_values))
        if conds:
            sql += ' WHERE ' + ' AND '.join(conds)
        if order:
            sql += f' ORDER BY {self._order(order)}'
            if vector:
                sql += f' {self._direction(vector)}'
        if limit is not None:
            sql += self._limit(limit, bool(order))
        stmt = Statement(sql)
        if where:
            bind_params(stmt, where, where_prefix)
        for name, value in like_values.items():
            stmt.bind(name, value)
        return Query(stmt)

    def select_like(self, like: Mapping[str, Union[str, Sequence[str]]],
                    columns: Optional[Sequence[str]] = None, type: str = 'AND',
                    sort: str = 'ASC', order: Optional[str] = None) -> Query:
        """LIKE search over one or more columns, ranked by relevance.

        Each pattern matches as a substring (``%value%``). A column mapped to a
        list contributes one condition per pattern. Conditions are joined by
        ``type`` (AND/OR). Unless ``order`` is given, rows are ordered by the
        number of conditions they satisfy, built as a sum of
        ``CASE WHEN col LIKE pattern THEN 1 ELSE 0 END`` terms.
        """
        if not isinstance(like, Mapping) or not like:
            raise MalformedCriteriaError('select_like requires at least one LIKE condition')
        join = self._keyword(type, like_joins, 'LIKE join')
        sort = self._direction(sort)
        conds = []
        cases = []
        patterns = {}
        for column, values in like.items():
            values = list(values) if isinstance(values, (list, tuple)) else [values]
            for name, value in iter_placeholders({column: values}, like_prefix):
                if not isinstance(value, str):
                    raise MalformedCriteriaError(f'LIKE value must be a string: {name}')
                patterns[name] = f'%{value}%'
                conds.append(f'{self._quote(column)} LIKE :{name}')
                cases.append(f'CASE WHEN {self._quote(column)} LIKE :{name} THEN 1 ELSE 0 END')
        ranking = self._order(order) if order else ' + '.join(cases)
        sql = (f'SELECT {self._columns(columns)} FROM {self.table}'
               f' WHERE {f" {join} ".join(conds)}'
               f' ORDER BY ({ranking}) {sort}')
        stmt = Statement(sql)
        for name, value in patterns.items():
            stmt.bind(name, value)
        return Query(stmt)

    def insert(self, values: Mapping[str, Any]) -> Query:
        """Single-row INSERT; placeholders carry the bare column names."""
        pairs = list(iter_placeholders(values, allow_lists=False))
        if not pairs:
            raise MalformedCriteriaError('Empty value set')
        cols = ', '.join(values)
        phs = ', '.join(f':{name}' for name, _ in pairs)
        stmt = Statement(f'INSERT INTO {self.table} ({cols}) VALUES ({phs})')
        return Query(bind_params(stmt, values), OperationKind.INSERT)

    def update(self, values: Mapping[str, Any], where: Mapping[str, Any]) -> Query:
        """UPDATE the rows matching where with values."""
        sql = f'UPDATE {self.table} SET {build_values(values, value_prefix)} WHERE {build_where(where, where_prefix)}'
        stmt = Statement(sql)
        bind_params(stmt, where, where_prefix)
        bind_params(stmt, values, value_prefix)
        return Query(stmt, OperationKind.UPDATE)

    def delete_id(self, value: Any) -> Query:
        stmt = Statement(f'DELETE FROM {self.table} WHERE {self.identifier} = :id')
        return Query(bind_params(stmt, {'id': value}, allow_lists=False), OperationKind.DELETE)

    def delete_where(self, criteria: Mapping[str, Any]) -> Query:
        stmt = Statement(f'DELETE FROM {self.table} WHERE {build_where(criteria, where_prefix)}')
        return Query(bind_params(stmt, criteria, where_prefix), OperationKind.DELETE)

    def delete_range(self, values: Sequence[Any]) -> Query:
        """DELETE every row whose identifier is in values."""
        if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
            raise MalformedCriteriaError(f'delete_range expects a sequence of identifiers, got {type(values).__name__}')
        criteria = {self.identifier: list(values)}
        stmt = Statement(f'DELETE FROM {self.table} WHERE {build_where(criteria, range_prefix)}')
        return Query(bind_params(stmt, criteria, range_prefix), OperationKind.DELETE)

    def range_id(self) -> Query:
        """Every identifier value in the table."""
        return Query(Statement(f'SELECT {self.identifier} FROM {self.table}'))

    def uid(self) -> Query:
        """A fresh UUID generated by the database, returned as column uuid."""
        if self.dialect not in uuid_functions:
            raise UnsupportedDialectError(self.dialect, 'UUID generation')
        return Query(Statement(f'SELECT {uuid_functions[self.dialect]} AS uuid{uuid_from.get(self.dialect, "")}'))

    def raw(self, sql: str, params: Optional[Mapping[str, Any]] = None,
            kind: OperationKind = OperationKind.SELECT) -> Query:
        """Caller-written SQL; params bind to :name placeholders without prefix."""
        if not isinstance(kind, OperationKind):
            raise MalformedCriteriaError(f'Invalid operation kind: {kind!r}')
        stmt = Statement(sql)
        if params:
            bind_params(stmt, params)
        return Query(stmt, kind)

    def _order(self, order: str) -> str:
        if not isinstance(order, str) or not _rx_order.match(order):
            raise MalformedCriteriaError(f'Invalid order expression: {order!r}')
        return order.strip()

    def _limit(self, limit: int, ordered: bool) -> str:
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise MalformedCriteriaError(f'Invalid limit: {limit!r}')
        if self.dialect in ('mssql', 'oracle'):
            # OFFSET ... FETCH is only valid after ORDER BY on these dialects
            if not ordered:
                raise MalformedCriteriaError(f'{self.dialect} requires order with limit')
            return f' OFFSET 0 ROWS FETCH NEXT {limit} ROWS ONLY'
        return f' LIMIT {limit}'

    def _direction(self, value: str) -> str:
        return self._keyword(value, sort_directions, 'sort direction')

    @staticmethod
    def _keyword(value: Any, allowed: Sequence[str], what: str) -> str:
        word = value.strip().upper() if isinstance(value, str) else None
        if word not in allowed:
            raise MalformedCriteriaError(f'Invalid {what}: {value!r}')
        return word


def default_identifier(table: str) -> str:
    """Identifier column convention: id_<table>, ignoring any schema part."""
    return 'id_' + table.rsplit('.', 1)[-1]
