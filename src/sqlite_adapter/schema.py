"""
Schema descriptor resolution for model types.

resolve_schema() queries the serializing capabilities of a model type once
and freezes the answers into a SchemaDescriptor. Resolution is pure, so
two calls for the same type return equal descriptors.
"""
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from sqlite_adapter.exceptions import ErrorCode, SchemaError
from sqlite_adapter.model import PropertyField, SQLiteSerializing, model_fields

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchemaDescriptor:
    """Resolved mapping configuration for one model type."""

    model_type: type
    column_names_by_property_key: Mapping[str, str]
    primary_property_keys: frozenset[str] = frozenset()
    column_definitions_by_property_key: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({}))
    class_selector: Callable[[Mapping[str, Any]], type | None] | None = None
    property_transformer_overrides: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}))
    fields: Mapping[str, PropertyField] = field(
        default_factory=lambda: MappingProxyType({}))

    @property
    def property_keys(self) -> list[str]:
        """Mapped property keys in declaration order."""
        return list(self.column_names_by_property_key)

    def column_for(self, key: str) -> str:
        return self.column_names_by_property_key[key]

    def primary_key_columns(self) -> list[str]:
        """Primary-key column names in mapping order."""
        return [col for key, col in self.column_names_by_property_key.items()
                if key in self.primary_property_keys]

    def select_class(self, row: Mapping[str, Any]) -> type | None:
        if self.class_selector is None:
            return self.model_type
        return self.class_selector(row)

    def check_columns(self) -> None:
        """Raise SchemaError if two property keys target the same column.
        """
        seen: dict[str, str] = {}
        for key, column in self.column_names_by_property_key.items():
            if column in seen:
                raise SchemaError(
                    ErrorCode.DUPLICATE_COLUMN,
                    f'{self.model_type.__name__}: properties {seen[column]!r} and '
                    f'{key!r} both map to column {column!r}')
            seen[column] = key


def check_model_type(model_type: Any) -> None:
    if not isinstance(model_type, type):
        raise TypeError(f'Model type must be a class, got {model_type!r}')
    if not issubclass(model_type, SQLiteSerializing):
        raise TypeError(f'{model_type.__name__} must derive from SQLiteSerializing')


def resolve_schema(model_type: type) -> SchemaDescriptor:
    """Resolve the schema descriptor of a model type.

    Raises
        SchemaError: missing or empty column mapping, mapped keys that are
            not dataclass fields, primary keys outside the column mapping
        TypeError: model_type is not a SQLiteSerializing dataclass
    """
    check_model_type(model_type)
    name = model_type.__name__

    columns = model_type.column_names_by_property_key()
    if not columns:
        raise SchemaError(ErrorCode.MISSING_COLUMN_MAPPING,
                          f'{name} declares no column mapping')
    columns = dict(columns)

    fields = model_fields(model_type)
    unknown = [key for key in columns if key not in fields]
    if unknown:
        raise SchemaError(ErrorCode.UNKNOWN_PROPERTY,
                          f'{name} maps unknown properties: {", ".join(unknown)}')

    primary_keys = frozenset(model_type.primary_property_keys() or ())
    unmapped = sorted(primary_keys - columns.keys())
    if unmapped:
        raise SchemaError(ErrorCode.UNMAPPED_PRIMARY_KEY,
                          f'{name} primary keys missing from column mapping: {", ".join(unmapped)}')

    definitions = dict(model_type.column_definitions_by_property_key() or {})

    overrides = {}
    for key in columns:
        transformer = model_type.column_transformer_for_key(key)
        if transformer is not None:
            overrides[key] = transformer

    descriptor = SchemaDescriptor(
        model_type=model_type,
        column_names_by_property_key=MappingProxyType(columns),
        primary_property_keys=primary_keys,
        column_definitions_by_property_key=MappingProxyType(definitions),
        class_selector=model_type.class_for_parsing_row,
        property_transformer_overrides=MappingProxyType(overrides),
        fields=MappingProxyType({key: fields[key] for key in columns}),
        )
    logger.debug(f'Resolved schema for {name}: {len(columns)} columns, '
                 f'primary keys {sorted(primary_keys)}')
    return descriptor
