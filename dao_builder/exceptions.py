"""Errors raised by the statement builder and the DAO."""


class DaoError(Exception):
    """Base class for DAO errors."""


class MalformedCriteriaError(DaoError, ValueError):
    """Criteria, values or options with an unsupported shape."""


class CardinalityError(DaoError):
    """A single-record lookup matched more than one row."""

    def __init__(self, table: str, identifier: str, value, count: int):
        self.table = table
        self.identifier = identifier
        self.value = value
        self.count = count
        super().__init__(f'{table}.{identifier} = {value!r} matched {count} rows, expected at most one')


class UnsupportedDialectError(DaoError):
    """The connected database has no rendering for a DAO feature."""

    def __init__(self, dialect: str, feature: str):
        self.dialect = dialect
        self.feature = feature
        super().__init__(f'{feature} not supported for {dialect}')
