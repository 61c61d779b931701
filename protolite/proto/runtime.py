"""Request coalescing support for generated RPC clients.

Generated clients build ``aiodataloader.DataLoader`` instances, keyed with
``cache_key``, and keep them on a per-request ``DataLoaderContext``.
"""

from collections.abc import Callable, Hashable
from typing import Any, TypeVar

from aiodataloader import DataLoader as DataLoader

T = TypeVar("T")


def cache_key(value: Any) -> Hashable:
    """Return a key identifying ``value`` for request deduplication.

    Hashable values are their own key. Generated messages are mutable
    dataclasses and therefore unhashable; equal messages have equal ``repr``,
    so they are keyed by their type and ``repr``.
    """
    try:
        hash(value)
    except TypeError:
        return (type(value).__qualname__, repr(value))
    return value


class DataLoaderContext:
    """A per-request context holding one DataLoader per identifier.

    Satisfies the ``DataLoaders`` protocol emitted in generated units that
    were generated with ``context=true``. Loaders live as long as the context
    and are never shared between contexts. Keyword arguments are passed to
    every ``DataLoader`` the generated clients construct, e.g.
    ``DataLoaderContext(max_batch_size=50)``.
    """

    def __init__(self, **rpc_data_loader_options: Any) -> None:
        self.rpc_data_loader_options: dict[str, Any] = rpc_data_loader_options
        self._loaders: dict[str, Any] = {}

    def get_data_loader(self, identifier: str, constructor_fn: Callable[[], T]) -> T:
        if identifier not in self._loaders:
            self._loaders[identifier] = constructor_fn()
        return self._loaders[identifier]
