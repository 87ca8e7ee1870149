"""
==========================
Storage adapters package.
==========================

Adapters are supplied to ModelsPlugin.initialize() (or to the plugin
constructor) and never appear in serialized state.

Modules:
    base: Adapter base class
    sqlite: SqliteAdapter and MemoryAdapter (aiosqlite)
    postgresql: PostgresAdapter (asyncpg)

Example:
    >>> from adapters import MemoryAdapter
    >>> await plugin.initialize([MemoryAdapter()])
"""

__version__ = "0.1.0"
__all__ = [
    'Adapter',
    'SqliteAdapter',
    'MemoryAdapter',
    'PostgresAdapter',
    'builtin_adapters',
]

from .base import Adapter
from .postgresql import PostgresAdapter
from .sqlite import MemoryAdapter, SqliteAdapter


def builtin_adapters() -> dict:
    """Fresh instances of every built-in adapter, keyed by identity."""
    adapters = [MemoryAdapter(), SqliteAdapter(), PostgresAdapter()]
    return {adapter.identity: adapter for adapter in adapters}
