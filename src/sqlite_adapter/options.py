from dataclasses import dataclass
from typing import Any

from sqlite_adapter.statement import PLACEHOLDER_STYLES
from sqlite_adapter.transformers import TransformerRegistry, get_transformer_registry

__all__ = ['AdapterOptions']


@dataclass
class AdapterOptions:
    """Options

    supported placeholder styles: `qmark` (?), `named` (:column)

    - normalize_values: Convert NumPy/Pandas values to Python values and
      missing markers to NULL (default: True)
    - validate_models: Call validate() on decoded models (default: True)
    - descriptor_cache_size: Maximum cached subclass descriptors (default: 32)
    - registry: Transformer registry (default: shared registry)
    """
    placeholder_style: str = 'qmark'
    normalize_values: bool = True
    validate_models: bool = True
    descriptor_cache_size: int = 32
    registry: TransformerRegistry | None = None

    def __post_init__(self):
        if self.placeholder_style not in PLACEHOLDER_STYLES:
            raise ValueError(f'placeholder_style must be one of: {PLACEHOLDER_STYLES}')
        if self.descriptor_cache_size < 1:
            raise ValueError('descriptor_cache_size must be positive')
        if self.registry is None:
            self.registry = get_transformer_registry()

    @classmethod
    def coerce(cls, options: 'AdapterOptions | dict[str, Any] | None') -> 'AdapterOptions':
        """Accept an options instance, a dict of option values, or None."""
        if options is None:
            return cls()
        if isinstance(options, cls):
            return options
        if isinstance(options, dict):
            return cls(**options)
        raise TypeError(f'Unsupported options: {options!r}')
