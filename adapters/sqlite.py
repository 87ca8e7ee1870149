"""
SQLite adapters (aiosqlite driver).

    SqliteAdapter ('sqlite'): file database, `database` key gives the path
    MemoryAdapter ('memory'): private in-memory database per engine

The in-memory adapter keeps a single shared connection (StaticPool) so
every session of the engine sees the same database.
"""

from typing import Any, Dict, Mapping

from sqlalchemy.engine import URL
from sqlalchemy.pool import StaticPool

from adapters.base import Adapter


class SqliteAdapter(Adapter):
    """File-backed SQLite adapter."""

    identity = 'sqlite'
    drivername = 'sqlite+aiosqlite'

    def build_url(self, connection: Mapping[str, Any]) -> URL:
        database = connection.get('database') or connection.get('filename')
        return URL.create(self.drivername, database=database or None)

    def engine_kwargs(self, connection: Mapping[str, Any]) -> Dict[str, Any]:
        kwargs = super().engine_kwargs(connection)
        if not (connection.get('database') or connection.get('filename') or connection.get('url')):
            kwargs.setdefault('poolclass', StaticPool)
            kwargs.setdefault('connect_args', {'check_same_thread': False})
        return kwargs


class MemoryAdapter(SqliteAdapter):
    """In-memory SQLite adapter, useful for tests and the client side."""

    identity = 'memory'

    def build_url(self, connection: Mapping[str, Any]) -> URL:
        return URL.create(self.drivername)

    def engine_kwargs(self, connection: Mapping[str, Any]) -> Dict[str, Any]:
        kwargs = dict(self.engine_options)
        kwargs.setdefault('poolclass', StaticPool)
        kwargs.setdefault('connect_args', {'check_same_thread': False})
        return kwargs
