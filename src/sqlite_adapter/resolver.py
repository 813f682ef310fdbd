"""
Value transformer resolution.

Precedence, highest first:
1. Transformer declared on the dataclass field (transformed_field)
2. The type's column_transformer_for_key() override
3. Per-class transformer, when the property holds an object
4. Per-primitive transformer, when the property holds a primitive
5. None (identity)
"""
import logging
import threading

from sqlite_adapter.model import PropertyField
from sqlite_adapter.schema import SchemaDescriptor
from sqlite_adapter.transformers import TransformerRegistry, ValueTransformer
from sqlite_adapter.transformers import get_transformer_registry

logger = logging.getLogger(__name__)


class TransformerResolver:
    """Resolve the transformer for a property of a model type.

    Results are memoized per (model type, key) and dropped whenever the
    registry records a new registration.
    """

    def __init__(self, registry: TransformerRegistry | None = None) -> None:
        self.registry = registry or get_transformer_registry()
        self._resolved: dict[tuple[type, str], ValueTransformer | None] = {}
        self._version = self.registry.version
        self._lock = threading.Lock()

    def transformer_for_class(self, cls: type) -> ValueTransformer | None:
        return self.registry.for_class(cls)

    def transformer_for_primitive(self, primitive: type) -> ValueTransformer | None:
        return self.registry.for_primitive(primitive)

    def resolve(self, descriptor: SchemaDescriptor, key: str) -> ValueTransformer | None:
        version = self.registry.version
        if version != self._version:
            with self._lock:
                logger.debug(f'Registry changed, dropping {len(self._resolved)} resolved transformers')
                self._resolved.clear()
                self._version = version
        cache_key = (descriptor.model_type, key)
        try:
            return self._resolved[cache_key]
        except KeyError:
            pass
        transformer = self._resolve(descriptor, key)
        with self._lock:
            if self._version == version:
                self._resolved[cache_key] = transformer
        return transformer

    def _resolve(self, descriptor: SchemaDescriptor, key: str) -> ValueTransformer | None:
        prop: PropertyField | None = descriptor.fields.get(key)

        if prop is not None and prop.transformer is not None:
            return prop.transformer

        override = descriptor.property_transformer_overrides.get(key)
        if override is not None:
            return override

        if prop is None:
            return None

        if prop.is_primitive:
            return self.transformer_for_primitive(prop.representation)

        if prop.declared_class is not None:
            transformer = self.transformer_for_class(prop.declared_class)
            if transformer is not None:
                logger.debug(f'{descriptor.model_type.__name__}.{key} uses class transformer '
                             f'for {prop.declared_class.__name__}')
            return transformer

        return None

    def clear(self) -> None:
        with self._lock:
            self._resolved.clear()
