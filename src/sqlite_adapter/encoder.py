"""
Model encoding into statement parameters.
"""
import logging
from collections.abc import Callable, Set
from typing import Any

from sqlite_adapter.exceptions import EncodeError, ErrorCode, TransformFailure
from sqlite_adapter.options import AdapterOptions
from sqlite_adapter.resolver import TransformerResolver
from sqlite_adapter.schema import SchemaDescriptor
from sqlite_adapter.statement import Intent, Statement, build_statement
from sqlite_adapter.types import TypeConverter

logger = logging.getLogger(__name__)

KeyFilter = Callable[[Set[str], Any], Set[str]]


def _default_filter(keys: Set[str], model: Any) -> Set[str]:
    return keys


class ModelEncoder:
    """Convert a model into a parameter mapping and statement.

    The key filters receive the candidate property keys and the model, and
    return the keys to serialize. Keys they add are ignored.
    """

    def __init__(self, resolver: TransformerResolver, options: AdapterOptions,
                 insertable: KeyFilter = _default_filter,
                 updatable: KeyFilter = _default_filter) -> None:
        self.resolver = resolver
        self.options = options
        self.insertable = insertable
        self.updatable = updatable

    def candidate_keys(self, descriptor: SchemaDescriptor, model: Any,
                       intent: Intent) -> list[str]:
        """Property keys serialized for `intent`, in column mapping order."""
        keys = descriptor.property_keys
        primary = descriptor.primary_property_keys
        name = descriptor.model_type.__name__

        if intent is Intent.DELETE:
            if not primary:
                raise EncodeError(ErrorCode.NO_PRIMARY_KEY,
                                  f'{name} declares no primary key; cannot DELETE')
            return [key for key in keys if key in primary]

        if intent is Intent.UPDATE:
            if not primary:
                raise EncodeError(ErrorCode.NO_PRIMARY_KEY,
                                  f'{name} declares no primary key; cannot UPDATE')
            candidates = [key for key in keys if key not in primary]
            selected = self.updatable(frozenset(candidates), model)
        elif intent is Intent.INSERT:
            candidates = keys
            selected = self.insertable(frozenset(candidates), model)
        else:
            raise ValueError(f'Unsupported intent: {intent!r}')

        selected = set(selected or ())
        extra = selected.difference(candidates)
        if extra:
            logger.warning(f'{name} {intent.name} filter returned unmapped keys, ignoring: {sorted(extra)}')
        return [key for key in candidates if key in selected]

    def encode_value(self, descriptor: SchemaDescriptor, key: str, value: Any) -> Any:
        """Apply the forward transformer of `key` to `value`."""
        if value is not None:
            transformer = self.resolver.resolve(descriptor, key)
            if transformer is not None:
                try:
                    value = transformer.forward(value)
                except TransformFailure as e:
                    raise EncodeError(
                        ErrorCode.TRANSFORM_FAILURE,
                        f'{descriptor.model_type.__name__}.{key}: cannot store {value!r}: {e}') from e
        if self.options.normalize_values:
            value = TypeConverter.convert_value(value)
        return value

    def encode_keys(self, descriptor: SchemaDescriptor, model: Any, keys) -> dict[str, Any]:
        """Build column -> storable value for `keys`."""
        return {
            descriptor.column_for(key): self.encode_value(descriptor, key, getattr(model, key))
            for key in keys
            }

    def encode(self, descriptor: SchemaDescriptor, model: Any, intent: Intent,
               table: str) -> tuple[dict[str, Any], Statement]:
        """Encode `model` for `intent` against `table`.

        Returns
            (parameter mapping, statement)
        """
        if model is None:
            raise EncodeError(ErrorCode.NIL_MODEL, 'Cannot encode a missing model')
        if not table:
            raise EncodeError(ErrorCode.NIL_TABLE, 'Cannot encode without a table name')

        keys = self.candidate_keys(descriptor, model, intent)
        parameters = self.encode_keys(descriptor, model, keys)

        if intent is Intent.DELETE:
            primary_keys = parameters
        elif intent is Intent.UPDATE:
            primary = [key for key in descriptor.property_keys
                       if key in descriptor.primary_property_keys]
            primary_keys = self.encode_keys(descriptor, model, primary)
        else:
            primary_keys = None

        statement = build_statement(table, intent, parameters, primary_keys,
                                    style=self.options.placeholder_style)
        return parameters, statement
