"""
Model <-> SQLite row adapter.

Encoding and decoding can be called either as:
- Module functions: sqlite_adapter.parameters_for_insert(model, 'users')
- SQLiteAdapter methods: SQLiteAdapter(User).parameters_for_insert(model, 'users')

The module functions use one cached adapter per model type.
"""
__version__ = '0.1.0'

from functools import lru_cache
from typing import Any

from sqlite_adapter.adapter import SQLiteAdapter
from sqlite_adapter.exceptions import BuildError, DecodeError, EncodeError
from sqlite_adapter.exceptions import ErrorCode, ModelValidationError
from sqlite_adapter.exceptions import SchemaError, SQLiteAdapterError
from sqlite_adapter.exceptions import TransformError
from sqlite_adapter.model import SQLiteSerializing, transformed_field
from sqlite_adapter.options import AdapterOptions
from sqlite_adapter.schema import SchemaDescriptor, resolve_schema
from sqlite_adapter.statement import Intent, Statement
from sqlite_adapter.transformers import ValueTransformer, get_transformer_registry

transformer_registry = get_transformer_registry()


@lru_cache(maxsize=64)
def get_adapter(model_type: type) -> SQLiteAdapter:
    """Get the cached default adapter for a model type.
    """
    return SQLiteAdapter(model_type)


def model_from_row(model_type: type, row: Any) -> Any:
    """Deserialize a model of `model_type` from a row mapping.
    """
    return get_adapter(model_type).model_from_row(row)


def models_from_rows(model_type: type, rows: Any) -> list[Any]:
    """Deserialize every row of an iterable or a pandas DataFrame.
    """
    return get_adapter(model_type).models_from_rows(rows)


def _adapter_for(model: Any) -> SQLiteAdapter:
    if model is None:
        raise EncodeError(ErrorCode.NIL_MODEL, 'Cannot encode a missing model')
    return get_adapter(type(model))


def parameters_for_insert(model: Any, table: str) -> tuple[dict[str, Any], Statement]:
    """Serialize a model for an INSERT into `table`.
    """
    return _adapter_for(model).parameters_for_insert(model, table)


def parameters_for_update(model: Any, table: str) -> tuple[dict[str, Any], Statement]:
    """Serialize a model for an UPDATE of its row in `table`.
    """
    return _adapter_for(model).parameters_for_update(model, table)


def parameters_for_delete(model: Any, table: str) -> tuple[dict[str, Any], Statement]:
    """Serialize a model for a DELETE of its row from `table`.
    """
    return _adapter_for(model).parameters_for_delete(model, table)


def column_definitions(model_type: type) -> str:
    """Render the column-definition clause of a model type.
    """
    return get_adapter(model_type).column_definitions()


def execute_statement(target: Any, statement: Statement) -> Any:
    """Execute a statement on a DB-API cursor or sqlite3 connection.

    Driver errors propagate unchanged.
    """
    return target.execute(statement.text, statement.parameters)


__all__ = [
    'SQLiteAdapter',
    'AdapterOptions',
    'SQLiteSerializing',
    'SchemaDescriptor',
    'Statement',
    'Intent',
    'ValueTransformer',
    'transformed_field',
    'transformer_registry',
    'get_adapter',
    'resolve_schema',
    'model_from_row',
    'models_from_rows',
    'parameters_for_insert',
    'parameters_for_update',
    'parameters_for_delete',
    'column_definitions',
    'execute_statement',
    'ErrorCode',
    'SQLiteAdapterError',
    'SchemaError',
    'EncodeError',
    'DecodeError',
    'BuildError',
    'ModelValidationError',
    'TransformError',
]
