"""WHERE / SET clause construction and placeholder binding.

Placeholder names are generated from the criteria mapping in iteration order:

    {'status': 'active'}          -> :w_status
    {'id_person': [3, 4, 5]}      -> :w_id_person_1, :w_id_person_2, :w_id_person_3

The prefix is a parameter-set discriminator (``w`` for where criteria, ``v`` for
update values, ...) so several sets can share one statement without name
collisions. ``iter_placeholders`` is the single source of naming for both the
builders and ``bind_params``, which keeps generation order and binding order
identical.
"""

import re
import datetime
from decimal import Decimal
from typing import Any, Iterator, Mapping, Optional, Tuple
from .exceptions import MalformedCriteriaError
from .statement import Statement

_rx_ident = re.compile(r'^[A-Za-z_]\w*$')
_rx_table = re.compile(r'^[A-Za-z_]\w*(\.[A-Za-z_]\w*)?$')

scalar_types = (str, int, float, Decimal, bytes, datetime.date, datetime.time, type(None))


def check_column(name: Any) -> str:
    """Validate a column name usable in SQL and in a placeholder name."""
    if not isinstance(name, str) or not _rx_ident.match(name):
        raise MalformedCriteriaError(f'Invalid column name: {name!r}')
    return name


def check_table(name: Any) -> str:
    """Validate a table name, optionally schema-qualified."""
    if not isinstance(name, str) or not _rx_table.match(name):
        raise MalformedCriteriaError(f'Invalid table name: {name!r}')
    return name


def _check_scalar(column: str, value: Any) -> Any:
    if not isinstance(value, scalar_types):
        raise MalformedCriteriaError(f'Unsupported value for {column}: {type(value).__name__}')
    return value


def _check_mapping(params: Any, what: str) -> None:
    if not isinstance(params, Mapping):
        raise MalformedCriteriaError(f'{what} must be a mapping, got {type(params).__name__}')
    if not params:
        raise MalformedCriteriaError(f'Empty {what.lower()}')


def _param_name(prefix: Optional[str], column: str) -> str:
    return f'{prefix}_{column}' if prefix else column


def iter_placeholders(params: Mapping[str, Any], prefix: Optional[str] = None,
                      allow_lists: bool = True) -> Iterator[Tuple[str, Any]]:
    """Yield (placeholder name, value) pairs in mapping order.

    List and tuple values expand to one pair per element, suffixed _1.._N.
    """
    if not isinstance(params, Mapping):
        raise MalformedCriteriaError(f'Criteria must be a mapping, got {type(params).__name__}')
    for column, value in params.items():
        check_column(column)
        base = _param_name(prefix, column)
        if isinstance(value, (list, tuple)):
            if not allow_lists:
                raise MalformedCriteriaError(f'List value not allowed for {column}')
            if not value:
                raise MalformedCriteriaError(f'Empty value list for {column}')
            for j, v in enumerate(value, 1):
                yield f'{base}_{j}', _check_scalar(column, v)
        else:
            yield base, _check_scalar(column, value)


def build_where(params: Mapping[str, Any], prefix: str = 'w') -> str:
    """Build the body of a WHERE clause from a criteria mapping.

    Scalars become ``col = :w_col``, lists ``col IN (:w_col_1, :w_col_2)``.
    Conditions are joined with AND. The WHERE keyword is left to the caller.
    """
    _check_mapping(params, 'Criteria')
    parts = []
    for column, value in params.items():
        phs = [f':{name}' for name, _ in iter_placeholders({column: value}, prefix)]
        if isinstance(value, (list, tuple)):
            parts.append(f'{column} IN ({", ".join(phs)})')
        else:
            parts.append(f'{column} = {phs[0]}')
    return ' AND '.join(parts)


def build_values(params: Mapping[str, Any], prefix: str = 'v') -> str:
    """Build a SET assignment list, ``a = :v_a, b = :v_b``."""
    _check_mapping(params, 'Values')
    pairs = []
    for column, value in params.items():
        for name, _ in iter_placeholders({column: value}, prefix, allow_lists=False):
            pairs.append(f'{column} = :{name}')
    return ', '.join(pairs)


def bind_params(stmt: Statement, params: Mapping[str, Any], prefix: Optional[str] = None,
                allow_lists: bool = True) -> Statement:
    """Bind every value of params to the placeholders generated for it."""
    for name, value in iter_placeholders(params, prefix, allow_lists):
        stmt.bind(name, value)
    return stmt
