"""
SQL statement generation for INSERT, UPDATE, DELETE and column definitions.

Identifiers come verbatim from the model's column mapping; values are
always bound through placeholders.
"""
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from sqlite_adapter.exceptions import BuildError, ErrorCode

logger = logging.getLogger(__name__)

PLACEHOLDER_STYLES = ('qmark', 'named')


class Intent(Enum):
    """Statement kind an encoding is produced for."""
    INSERT = 'insert'
    UPDATE = 'update'
    DELETE = 'delete'


@dataclass(frozen=True)
class Statement:
    """Statement text with its bound values.

    `parameters` is a tuple in placeholder order for the qmark style and a
    dict keyed by column for the named style.
    """
    text: str
    parameters: tuple | dict
    intent: Intent | None = None

    def __str__(self) -> str:
        return self.text


def _placeholder(column: str, style: str) -> str:
    return f':{column}' if style == 'named' else '?'


def _assignments(columns, style: str, separator: str) -> str:
    return separator.join(f'{col}={_placeholder(col, style)}' for col in columns)


def build_insert_sql(table: str, columns, style: str = 'qmark') -> str:
    """Generate an INSERT statement.

    >>> build_insert_sql('users', ['id', 'name'])
    'INSERT INTO users (id, name) VALUES (?, ?)'
    >>> build_insert_sql('users', [])
    'INSERT INTO users DEFAULT VALUES'
    """
    columns = list(columns)
    if not columns:
        return f'INSERT INTO {table} DEFAULT VALUES'
    placeholders = ', '.join(_placeholder(col, style) for col in columns)
    return f'INSERT INTO {table} ({", ".join(columns)}) VALUES ({placeholders})'


def build_update_sql(table: str, columns, key_columns, style: str = 'qmark') -> str:
    """Generate an UPDATE statement restricted by the primary-key columns.

    >>> build_update_sql('t', ['full_name'], ['id'])
    'UPDATE t SET full_name=? WHERE id=?'
    """
    columns, key_columns = list(columns), list(key_columns)
    if not key_columns:
        raise BuildError(ErrorCode.NO_PRIMARY_KEY,
                         f'Refusing to build UPDATE on {table} without primary key')
    if not columns:
        raise BuildError(ErrorCode.NO_COLUMNS, f'No columns to UPDATE on {table}')
    return (f'UPDATE {table} SET {_assignments(columns, style, ", ")} '
            f'WHERE {_assignments(key_columns, style, " AND ")}')


def build_delete_sql(table: str, key_columns, style: str = 'qmark') -> str:
    """Generate a DELETE statement restricted by the primary-key columns.

    >>> build_delete_sql('t', ['a', 'b'])
    'DELETE FROM t WHERE a=? AND b=?'
    """
    key_columns = list(key_columns)
    if not key_columns:
        raise BuildError(ErrorCode.NO_PRIMARY_KEY,
                         f'Refusing to build DELETE on {table} without primary key')
    return f'DELETE FROM {table} WHERE {_assignments(key_columns, style, " AND ")}'


def build_statement(table: str, intent: Intent, parameters: Mapping[str, Any],
                    primary_keys: Mapping[str, Any] | None = None,
                    style: str = 'qmark') -> Statement:
    """Render statement text and bound values for an encoded model.

    Args:
        table: Table name, used verbatim
        intent: Statement kind
        parameters: Column -> value for INSERT columns or UPDATE assignments
        primary_keys: Column -> value identifying the row for UPDATE/DELETE
        style: 'qmark' (?) or 'named' (:column)

    Returns
        Statement
    """
    if style not in PLACEHOLDER_STYLES:
        raise ValueError(f'placeholder style must be one of: {PLACEHOLDER_STYLES}')
    primary_keys = primary_keys or {}

    if intent is Intent.INSERT:
        text = build_insert_sql(table, parameters, style)
        ordered = list(parameters.items())
    elif intent is Intent.UPDATE:
        text = build_update_sql(table, parameters, primary_keys, style)
        ordered = [*parameters.items(), *primary_keys.items()]
    elif intent is Intent.DELETE:
        text = build_delete_sql(table, primary_keys, style)
        ordered = list(primary_keys.items())
    else:
        raise ValueError(f'Unsupported intent: {intent!r}')

    if style == 'named':
        bound = dict(ordered)
    else:
        bound = tuple(value for _, value in ordered)
    logger.debug(f'Built {intent.name} statement: {text}')
    return Statement(text=text, parameters=bound, intent=intent)


def build_column_definitions(column_names: Mapping[str, str],
                             definitions: Mapping[str, str]) -> str:
    """Render `<column> <definition>, ...` for every defined property.

    Properties are rendered in column mapping order; definitions for
    unmapped properties are skipped.

    >>> build_column_definitions({'id': 'id', 'name': 'full_name'},
    ...                          {'id': 'INTEGER PRIMARY KEY', 'name': 'TEXT'})
    'id INTEGER PRIMARY KEY, full_name TEXT'
    """
    clauses = [f'{column} {definitions[key]}'
               for key, column in column_names.items() if key in definitions]
    if not clauses:
        raise BuildError(ErrorCode.NO_DEFINITIONS, 'No column definitions declared')
    return ', '.join(clauses)


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
