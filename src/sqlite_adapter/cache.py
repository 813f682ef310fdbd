"""
Descriptor caching for adapters.

Each adapter owns one DescriptorCache. The bound model type's descriptor is
pinned for the adapter's lifetime; descriptors of subclasses selected while
decoding class clusters live in a cachetools LRUCache.
"""
import logging
import threading
from collections.abc import Callable

import cachetools

from sqlite_adapter.schema import SchemaDescriptor

logger = logging.getLogger(__name__)

Resolver = Callable[[type], SchemaDescriptor]


class DescriptorCache:
    """Thread-safe, initialize-once descriptor store."""

    def __init__(self, model_type: type, resolver: Resolver, maxsize: int = 32) -> None:
        self.model_type = model_type
        self._resolver = resolver
        self._bound: SchemaDescriptor | None = None
        self._others: cachetools.LRUCache = cachetools.LRUCache(maxsize=maxsize)
        self._checked: set[type] = set()
        self._lock = threading.RLock()

    @property
    def bound(self) -> SchemaDescriptor:
        """Descriptor of the bound model type, resolved on first access."""
        if self._bound is None:
            with self._lock:
                if self._bound is None:
                    logger.debug(f'Resolving descriptor for {self.model_type.__name__}')
                    self._bound = self._resolver(self.model_type)
        return self._bound

    def get(self, model_type: type) -> SchemaDescriptor:
        """Get the descriptor for the bound type or one of its subclasses."""
        if model_type is self.model_type:
            return self.bound
        with self._lock:
            descriptor = self._others.get(model_type)
            if descriptor is not None:
                logger.debug(f'Cache hit for {model_type.__name__}')
                return descriptor
            logger.debug(f'Cache miss for {model_type.__name__}')
            descriptor = self._resolver(model_type)
            self._others[model_type] = descriptor
            return descriptor

    def checked(self, descriptor: SchemaDescriptor) -> SchemaDescriptor:
        """Return `descriptor` after its column mapping passed check_columns once."""
        if descriptor.model_type not in self._checked:
            with self._lock:
                if descriptor.model_type not in self._checked:
                    descriptor.check_columns()
                    self._checked.add(descriptor.model_type)
        return descriptor

    def clear(self) -> None:
        """Drop subclass descriptors; the bound descriptor stays pinned."""
        with self._lock:
            self._others.clear()
            self._checked.clear()

    def __len__(self) -> int:
        return len(self._others) + (self._bound is not None)
