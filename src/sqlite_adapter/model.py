"""
Serializing capability consumed by the adapter.

Model types are dataclasses deriving from SQLiteSerializing. Only
column_names_by_property_key is required; every other capability has a
default implementation that subclasses may override.

    @dataclass
    class User(SQLiteSerializing):
        id: int = 0
        name: str = ''

        @classmethod
        def column_names_by_property_key(cls):
            return {'id': 'id', 'name': 'full_name'}

        @classmethod
        def primary_property_keys(cls):
            return {'id'}
"""
import dataclasses
import logging
import types
import typing
from collections.abc import Callable, Mapping, Set
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

# Annotations stored as-is rather than as objects
PRIMITIVE_TYPES: tuple[type, ...] = (bool, int, float, str, bytes)

# Zero values for fields declared without a default
_PRIMITIVE_DEFAULTS: dict[type, Any] = {
    bool: False,
    int: 0,
    float: 0.0,
    str: '',
    bytes: b'',
}

TRANSFORMER_METADATA_KEY = 'transformer'


class SQLiteSerializing:
    """Base class declaring how a dataclass maps to SQLite columns.
    """

    @classmethod
    def column_names_by_property_key(cls) -> Mapping[str, str] | None:
        """Map property keys to column names.

        Subclasses extending a parent's mapping should merge with `super()`.
        Keys omitted here never take part in serialization.
        """
        return None

    @classmethod
    def primary_property_keys(cls) -> Set[str]:
        """Property keys identifying a row in UPDATE and DELETE statements."""
        return frozenset()

    @classmethod
    def column_definitions_by_property_key(cls) -> Mapping[str, str]:
        """Map property keys to SQL column definitions, e.g. 'INTEGER PRIMARY KEY'."""
        return {}

    @classmethod
    def column_transformer_for_key(cls, key: str):
        """Return a ValueTransformer for `key`, or None for the default resolution."""
        return None

    @classmethod
    def class_for_parsing_row(cls, row: Mapping[str, Any]) -> type | None:
        """Return the class to instantiate for `row`, or None to abort decoding.

        Useful for class clusters where the bound base class should produce
        a subclass depending on a discriminator column.
        """
        return cls

    @classmethod
    def insertable_property_keys(cls, keys: Set[str], model: 'SQLiteSerializing') -> Set[str]:
        """Subset of `keys` written by INSERT for `model`."""
        return keys

    @classmethod
    def updatable_property_keys(cls, keys: Set[str], model: 'SQLiteSerializing') -> Set[str]:
        """Subset of `keys` (primary keys already removed) written by UPDATE for `model`."""
        return keys

    def validate(self) -> None:
        """Raise ModelValidationError when the instance is invalid."""


@dataclass(frozen=True)
class PropertyField:
    """Registration-time description of one model property."""

    name: str
    annotation: Any
    representation: type | None
    declared_class: type | None
    transformer: Any = None
    default_value: Any = None
    default_factory: Callable[[], Any] | None = None

    @property
    def is_primitive(self) -> bool:
        return self.representation is not None

    def default(self) -> Any:
        if self.default_factory is not None:
            return self.default_factory()
        return self.default_value


def _unwrap_optional(annotation: Any) -> Any:
    """Strip None from `X | None` and `Optional[X]`.

    >>> _unwrap_optional(int | None)
    <class 'int'>
    >>> _unwrap_optional(typing.Optional[str])
    <class 'str'>
    """
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def property_representation(annotation: Any) -> tuple[type | None, type | None]:
    """Classify an annotation as (primitive, None) or (None, declared class).

    Generic aliases such as list[int] resolve to their origin class; Any and
    unresolvable annotations are the generic object representation with no
    declared class.

    >>> property_representation(bool)
    (<class 'bool'>, None)
    >>> property_representation(list[int])
    (None, <class 'list'>)
    >>> property_representation(Any)
    (None, None)
    """
    annotation = _unwrap_optional(annotation)
    if annotation is Any:
        return None, None
    if annotation in PRIMITIVE_TYPES:
        return annotation, None
    origin = typing.get_origin(annotation)
    if isinstance(origin, type):
        return None, origin
    if isinstance(annotation, type):
        return None, annotation
    return None, None


def _field_default(field: dataclasses.Field, representation: type | None) -> tuple[Any, Any]:
    """Return (default_value, default_factory) for a dataclass field."""
    if field.default is not dataclasses.MISSING:
        return field.default, None
    if field.default_factory is not dataclasses.MISSING:
        return None, field.default_factory
    return _PRIMITIVE_DEFAULTS.get(representation), None


def model_fields(model_type: type) -> dict[str, PropertyField]:
    """Build the field table for a dataclass model type.
    """
    if not dataclasses.is_dataclass(model_type):
        raise TypeError(f'{model_type.__name__} is not a dataclass')
    try:
        hints = typing.get_type_hints(model_type)
    except (NameError, TypeError) as e:
        logger.debug(f'Unresolved type hints on {model_type.__name__}, properties read as objects: {e}')
        hints = {}

    table = {}
    for field in dataclasses.fields(model_type):
        if not field.init:
            continue
        annotation = hints.get(field.name, Any)
        representation, declared_class = property_representation(annotation)
        default_value, default_factory = _field_default(field, representation)
        table[field.name] = PropertyField(
            name=field.name,
            annotation=annotation,
            representation=representation,
            declared_class=declared_class,
            transformer=field.metadata.get(TRANSFORMER_METADATA_KEY),
            default_value=default_value,
            default_factory=default_factory,
            )
    return table


def transformed_field(transformer, **kwargs) -> Any:
    """Declare a dataclass field with a dedicated column transformer.

        created: datetime = transformed_field(EPOCH_TRANSFORMER, default=None)
    """
    metadata = dict(kwargs.pop('metadata', None) or {})
    metadata[TRANSFORMER_METADATA_KEY] = transformer
    return dataclasses.field(metadata=metadata, **kwargs)


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
