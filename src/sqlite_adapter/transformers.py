"""
Value transformers between in-memory property values and storable values.

A ValueTransformer holds two function slots:
1. to_storage: property value -> value bound into a statement
2. from_storage: raw column value -> property value (optional)

A transformer without from_storage is forward-only; decoding then leaves
the raw value untouched.

The TransformerRegistry maps property classes to transformers. Lookups walk
the MRO, so a transformer registered for Enum serves every Enum subclass.

Usage:
    registry = get_transformer_registry()
    registry.register(Money, ValueTransformer(str, Money.parse))

    @registry.provider(Color)
    def color_transformer(cls):
        return ValueTransformer(lambda c: c.hex, cls.from_hex)
"""
import datetime
import decimal
import enum
import json
import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import dateutil.parser

from sqlite_adapter.exceptions import TransformError

logger = logging.getLogger(__name__)

Provider = Callable[[type], 'ValueTransformer | None']


@dataclass(frozen=True)
class ValueTransformer:
    """Bidirectional (or forward-only) value conversion."""

    to_storage: Callable[[Any], Any]
    from_storage: Callable[[Any], Any] | None = None

    @property
    def reversible(self) -> bool:
        return self.from_storage is not None

    def forward(self, value: Any) -> Any:
        return self.to_storage(value)

    def reverse(self, value: Any) -> Any:
        if self.from_storage is None:
            return value
        return self.from_storage(value)


def _to_text(val: Any) -> str:
    if isinstance(val, bytes | bytearray | memoryview):
        return bytes(val).decode()
    if not isinstance(val, str):
        raise TransformError(f'Expected text, got {type(val).__name__}')
    return val


def convert_boolean(val: Any) -> bool:
    """Convert a stored boolean to bool.

    >>> convert_boolean(1), convert_boolean(0), convert_boolean('1')
    (True, False, True)
    """
    if isinstance(val, bool):
        return val
    if isinstance(val, int | float):
        return bool(val)
    text = _to_text(val).strip().lower()
    if text in {'1', 'true', 't', 'yes', 'y'}:
        return True
    if text in {'0', 'false', 'f', 'no', 'n'}:
        return False
    raise TransformError(f'Cannot read {val!r} as a boolean')


def adapt_boolean(val: Any) -> int:
    """Store booleans as SQLite integers.

    >>> adapt_boolean(True), adapt_boolean(False)
    (1, 0)
    """
    if not isinstance(val, bool | int):
        raise TransformError(f'Expected bool, got {type(val).__name__}')
    return 1 if val else 0


def adapt_datetime_iso(val: datetime.datetime) -> str:
    """Convert datetime to ISO 8601 format string.

    >>> adapt_datetime_iso(datetime.datetime(2023, 5, 15, 14, 30, 45))
    '2023-05-15T14:30:45'
    """
    if not isinstance(val, datetime.datetime):
        raise TransformError(f'Expected datetime, got {type(val).__name__}')
    return val.isoformat()


def convert_datetime(val: Any) -> datetime.datetime:
    """Convert ISO 8601 datetime string to datetime object.

    >>> convert_datetime('2023-05-15T14:30:45')
    datetime.datetime(2023, 5, 15, 14, 30, 45)
    """
    if isinstance(val, datetime.datetime):
        return val
    return dateutil.parser.isoparse(_to_text(val))


def adapt_date_iso(val: datetime.date) -> str:
    """Convert date to ISO 8601 format string.

    >>> adapt_date_iso(datetime.date(2023, 5, 15))
    '2023-05-15'
    """
    if not isinstance(val, datetime.date):
        raise TransformError(f'Expected date, got {type(val).__name__}')
    return val.isoformat()


def convert_date(val: Any) -> datetime.date:
    """Convert ISO 8601 date string to date object."""
    if isinstance(val, datetime.datetime):
        return val.date()
    if isinstance(val, datetime.date):
        return val
    return dateutil.parser.isoparse(_to_text(val)).date()


def adapt_time_iso(val: datetime.time) -> str:
    if not isinstance(val, datetime.time):
        raise TransformError(f'Expected time, got {type(val).__name__}')
    return val.isoformat()


def convert_time(val: Any) -> datetime.time:
    if isinstance(val, datetime.time):
        return val
    return datetime.time.fromisoformat(_to_text(val))


def adapt_decimal(val: decimal.Decimal) -> str:
    return str(decimal.Decimal(val))


def convert_decimal(val: Any) -> decimal.Decimal:
    if isinstance(val, float):
        return decimal.Decimal(repr(val))
    if isinstance(val, int):
        return decimal.Decimal(val)
    return decimal.Decimal(_to_text(val))


def adapt_uuid(val: uuid.UUID) -> str:
    return str(val)


def convert_uuid(val: Any) -> uuid.UUID:
    if isinstance(val, uuid.UUID):
        return val
    if isinstance(val, bytes) and len(val) == 16:
        return uuid.UUID(bytes=val)
    return uuid.UUID(_to_text(val))


def convert_json(val: Any) -> Any:
    return json.loads(_to_text(val))


BOOLEAN_TRANSFORMER = ValueTransformer(adapt_boolean, convert_boolean)
DATETIME_TRANSFORMER = ValueTransformer(adapt_datetime_iso, convert_datetime)
DATE_TRANSFORMER = ValueTransformer(adapt_date_iso, convert_date)
TIME_TRANSFORMER = ValueTransformer(adapt_time_iso, convert_time)
DECIMAL_TRANSFORMER = ValueTransformer(adapt_decimal, convert_decimal)
UUID_TRANSFORMER = ValueTransformer(adapt_uuid, convert_uuid)
JSON_TRANSFORMER = ValueTransformer(json.dumps, convert_json)


def enum_transformer(enum_cls: type[enum.Enum]) -> ValueTransformer:
    """Store enum members by value.
    """
    def to_storage(member):
        return enum_cls(member).value

    return ValueTransformer(to_storage, enum_cls)


def value_mapping_transformer(mapping: Mapping[Any, Any], default: Any = None,
                              reverse_default: Any = None) -> ValueTransformer:
    """Map stored values to property values through a fixed dictionary.

    Unknown stored values read as `default`, unknown property values store
    as `reverse_default`.

    >>> t = value_mapping_transformer({'A': 1, 'B': 2})
    >>> t.reverse('B'), t.forward(1), t.forward(9)
    (2, 'A', None)
    """
    inverse = {v: k for k, v in mapping.items()}

    def to_storage(val):
        return inverse.get(val, reverse_default)

    def from_storage(val):
        return mapping.get(val, default)

    return ValueTransformer(to_storage, from_storage)


class TransformerRegistry:
    """Registry of per-class and per-primitive value transformers."""

    def __init__(self) -> None:
        self._providers: dict[type, Provider] = {}
        self._primitives: dict[type, ValueTransformer] = {}
        # bumped on every registration
        self.version = 0

    def register(self, cls: type, transformer: ValueTransformer) -> None:
        """Use `transformer` for properties declared as `cls` or a subclass."""
        self._providers[cls] = lambda _cls: transformer
        self.version += 1

    def provider(self, cls: type):
        """Decorator registering a transformer factory for `cls` subclasses.

        The factory receives the concrete declared class.
        """
        def decorator(func: Provider) -> Provider:
            self._providers[cls] = func
            self.version += 1
            return func
        return decorator

    def register_primitive(self, primitive: type, transformer: ValueTransformer) -> None:
        """Use `transformer` for properties with a primitive representation."""
        self._primitives[primitive] = transformer
        self.version += 1

    def for_class(self, cls: type) -> ValueTransformer | None:
        """Return the transformer for the nearest registered class in the MRO."""
        for base in getattr(cls, '__mro__', (cls,)):
            provider = self._providers.get(base)
            if provider is not None:
                logger.debug(f'Class transformer for {cls.__name__} found via {base.__name__}')
                return provider(cls)
        return None

    def for_primitive(self, primitive: type) -> ValueTransformer | None:
        return self._primitives.get(primitive)

    def copy(self) -> 'TransformerRegistry':
        clone = TransformerRegistry()
        clone._providers = dict(self._providers)
        clone._primitives = dict(self._primitives)
        return clone


def _default_registry() -> TransformerRegistry:
    registry = TransformerRegistry()
    registry.register(datetime.datetime, DATETIME_TRANSFORMER)
    registry.register(datetime.date, DATE_TRANSFORMER)
    registry.register(datetime.time, TIME_TRANSFORMER)
    registry.register(decimal.Decimal, DECIMAL_TRANSFORMER)
    registry.register(uuid.UUID, UUID_TRANSFORMER)
    registry.register(dict, JSON_TRANSFORMER)
    registry.register(list, JSON_TRANSFORMER)
    registry.provider(enum.Enum)(enum_transformer)
    registry.register_primitive(bool, BOOLEAN_TRANSFORMER)
    return registry


_REGISTRY = _default_registry()


def get_transformer_registry() -> TransformerRegistry:
    """Get the shared transformer registry

    Returns
        TransformerRegistry instance
    """
    return _REGISTRY


if __name__ == '__main__':
    __import__('doctest').testmod(optionflags=4 | 8 | 32)
