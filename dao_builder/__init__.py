"""Builds parameterized SQL statements for the generic table DAO."""

from .clauses import build_where, build_values, bind_params, iter_placeholders, check_column, check_table
from .exceptions import DaoError, MalformedCriteriaError, CardinalityError, UnsupportedDialectError
from .query_builder import QueryBuilder, Query, OperationKind, default_identifier
from .statement import Statement

__all__ = [
    'build_where',
    'build_values',
    'bind_params',
    'iter_placeholders',
    'check_column',
    'check_table',
    'DaoError',
    'MalformedCriteriaError',
    'CardinalityError',
    'UnsupportedDialectError',
    'QueryBuilder',
    'Query',
    'OperationKind',
    'default_identifier',
    'Statement'
]
