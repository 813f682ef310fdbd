"""
SQLiteAdapter binds a model type to its schema descriptor and exposes
encoding, decoding and column-definition rendering.

    adapter = SQLiteAdapter(User)
    params, stmt = adapter.parameters_for_update(user, 'users')
    cursor.execute(stmt.text, stmt.parameters)

    user = adapter.model_from_row(cursor.fetchone())
"""
import logging
from collections.abc import Set
from typing import Any

from sqlite_adapter.cache import DescriptorCache
from sqlite_adapter.decoder import ResultDecoder
from sqlite_adapter.encoder import ModelEncoder
from sqlite_adapter.options import AdapterOptions
from sqlite_adapter.resolver import TransformerResolver
from sqlite_adapter.schema import SchemaDescriptor, check_model_type, resolve_schema
from sqlite_adapter.statement import Intent, Statement, build_column_definitions
from sqlite_adapter.types import iter_row_mappings

logger = logging.getLogger(__name__)


class SQLiteAdapter:
    """Convert models of one type to and from SQLite rows.

    Subclasses may override insertable_property_keys/updatable_property_keys
    to narrow what gets written, or set resolver_class to a
    TransformerResolver subclass to change per-class and per-primitive
    transformer lookup.
    """

    resolver_class: type[TransformerResolver] = TransformerResolver

    def __init__(self, model_type: type, options: AdapterOptions | dict | None = None) -> None:
        check_model_type(model_type)
        self.model_type = model_type
        self.options = AdapterOptions.coerce(options)
        self.resolver = self.resolver_class(self.options.registry)
        self._descriptors = DescriptorCache(model_type, resolve_schema,
                                            maxsize=self.options.descriptor_cache_size)
        self.encoder = ModelEncoder(self.resolver, self.options,
                                    insertable=self.insertable_property_keys,
                                    updatable=self.updatable_property_keys)
        self.decoder = ResultDecoder(self.resolver, self.options)

    def __repr__(self) -> str:
        return f'{self.__class__.__name__}({self.model_type.__name__})'

    @property
    def descriptor(self) -> SchemaDescriptor:
        """Schema descriptor of the bound model type."""
        return self._descriptors.bound

    def descriptor_for(self, model_type: type) -> SchemaDescriptor:
        """Schema descriptor of the bound type or one of its subclasses."""
        return self._descriptors.get(model_type)

    # Key filters

    def insertable_property_keys(self, keys: Set[str], model: Any) -> Set[str]:
        """Filter the property keys written by INSERT.

        The default asks the model's class.
        """
        return type(model).insertable_property_keys(keys, model)

    def updatable_property_keys(self, keys: Set[str], model: Any) -> Set[str]:
        """Filter the property keys written by UPDATE; primary keys are already removed.

        The default asks the model's class.
        """
        return type(model).updatable_property_keys(keys, model)

    # Encoding

    def encode(self, model: Any, intent: Intent, table: str) -> tuple[dict[str, Any], Statement]:
        """Serialize `model` for `intent` on `table`.

        Returns
            (parameter mapping, statement)
        """
        if model is not None and not isinstance(model, self.model_type):
            raise TypeError(f'{self!r} cannot encode {type(model).__name__}')
        model_type = self.model_type if model is None else type(model)
        descriptor = self._descriptors.checked(self.descriptor_for(model_type))
        return self.encoder.encode(descriptor, model, intent, table)

    def parameters_for_insert(self, model: Any, table: str) -> tuple[dict[str, Any], Statement]:
        return self.encode(model, Intent.INSERT, table)

    def parameters_for_update(self, model: Any, table: str) -> tuple[dict[str, Any], Statement]:
        return self.encode(model, Intent.UPDATE, table)

    def parameters_for_delete(self, model: Any, table: str) -> tuple[dict[str, Any], Statement]:
        return self.encode(model, Intent.DELETE, table)

    # Decoding

    def model_from_row(self, row: Any) -> Any:
        """Deserialize a model from a row mapping.

        Raises DecodeError when no class is selected, a value cannot be
        transformed, or the model fails validation.
        """
        return self.decoder.decode(self.descriptor, row, lookup=self.descriptor_for)

    def models_from_rows(self, rows: Any) -> list[Any]:
        """Deserialize every row of an iterable or a pandas DataFrame.
        """
        return [self.model_from_row(row) for row in iter_row_mappings(rows)]

    # Column definitions

    def column_definitions(self) -> str:
        """Render the column-definition clause of the bound model type."""
        descriptor = self.descriptor
        return build_column_definitions(descriptor.column_names_by_property_key,
                                        descriptor.column_definitions_by_property_key)
