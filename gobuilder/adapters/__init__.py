"""Adapters — the only code that spawns external processes."""

from gobuilder.adapters.base import Adapter, ExecutionContext
from gobuilder.adapters.mock import MockAdapter
from gobuilder.adapters.registry import AdapterRegistry, default_registry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]
