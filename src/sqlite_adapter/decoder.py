"""
Row decoding into model instances.

Decoding either returns a fully constructed, validated model or raises a
DecodeError; partially populated instances never escape.
"""
import logging
from collections.abc import Callable, Mapping
from typing import Any

from sqlite_adapter.exceptions import DecodeError, ErrorCode, ModelValidationError
from sqlite_adapter.exceptions import TransformFailure
from sqlite_adapter.options import AdapterOptions
from sqlite_adapter.resolver import TransformerResolver
from sqlite_adapter.schema import SchemaDescriptor
from sqlite_adapter.types import RowAdapter, TypeConverter

logger = logging.getLogger(__name__)

DescriptorLookup = Callable[[type], SchemaDescriptor]


class ResultDecoder:
    """Convert row mappings into models of a bound type or its subclasses."""

    def __init__(self, resolver: TransformerResolver, options: AdapterOptions) -> None:
        self.resolver = resolver
        self.options = options

    def select_class(self, descriptor: SchemaDescriptor, row: Mapping[str, Any]) -> type:
        """Ask the class selector which class `row` should become."""
        model_class = descriptor.select_class(row)
        if model_class is None:
            raise DecodeError(ErrorCode.NO_CLASS_FOUND,
                              f'No model class found to decode row as {descriptor.model_type.__name__}')
        if not (isinstance(model_class, type) and issubclass(model_class, descriptor.model_type)):
            raise TypeError(f'Class selector of {descriptor.model_type.__name__} returned '
                            f'{model_class!r}, not a subclass')
        return model_class

    def decode_value(self, descriptor: SchemaDescriptor, key: str, raw: Any) -> Any:
        """Apply the reverse transformer of `key` to a raw column value."""
        if self.options.normalize_values:
            raw = TypeConverter.convert_value(raw)
        if raw is None:
            return None
        prop = descriptor.fields.get(key)
        # int columns holding NaN arrive from pandas as float64
        if prop is not None and prop.representation is int and isinstance(raw, float) and raw.is_integer():
            raw = int(raw)
        transformer = self.resolver.resolve(descriptor, key)
        if transformer is None:
            return raw
        try:
            return transformer.reverse(raw)
        except TransformFailure as e:
            raise DecodeError(
                ErrorCode.TRANSFORM_FAILURE,
                f'{descriptor.model_type.__name__}.{key}: cannot read {raw!r}: {e}') from e

    def property_values(self, descriptor: SchemaDescriptor, row: Mapping[str, Any]) -> dict[str, Any]:
        """Build constructor arguments; missing columns fall back to defaults."""
        values = {name: prop.default() for name, prop in descriptor.fields.items()}
        for key, column in descriptor.column_names_by_property_key.items():
            if column in row:
                values[key] = self.decode_value(descriptor, key, row[column])
        return values

    def construct(self, model_class: type, values: dict[str, Any]) -> Any:
        try:
            model = model_class(**values)
        except (TypeError, ValueError) as e:
            raise DecodeError(ErrorCode.VALIDATION_FAILED,
                              f'Cannot construct {model_class.__name__}: {e}') from e
        if self.options.validate_models:
            try:
                model.validate()
            except ModelValidationError as e:
                logger.debug(f'Discarding invalid {model_class.__name__}: {e.reason}')
                raise DecodeError(ErrorCode.VALIDATION_FAILED, e.reason) from e
        return model

    def decode(self, descriptor: SchemaDescriptor, row: Any,
               lookup: DescriptorLookup | None = None) -> Any:
        """Decode `row` with the bound `descriptor`.

        Args:
            descriptor: Descriptor of the bound model type
            row: Mapping, sqlite3.Row or namedtuple of column -> raw value
            lookup: Returns descriptors of selected subclasses

        Returns
            Model instance
        """
        row = RowAdapter(row).to_dict()
        model_class = self.select_class(descriptor, row)
        if model_class is not descriptor.model_type:
            if lookup is None:
                raise TypeError('A descriptor lookup is required to decode subclasses')
            descriptor = lookup(model_class)
        values = self.property_values(descriptor, row)
        return self.construct(model_class, values)
