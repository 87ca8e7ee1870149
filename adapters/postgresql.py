"""
=====================================
PostgreSQL adapter (asyncpg driver).
=====================================

Connection keys: host, port, user, password, database. Missing keys fall
back to the POSTGRES_* settings in core.config.

Example:
    >>> adapter = PostgresAdapter(pool_size=10)
    >>> connections = {
    ...     'warehouse': {'adapter': 'postgresql', 'database': 'warehouse'}
    ... }
"""

from typing import Any, Dict, Mapping

from sqlalchemy.engine import URL

from adapters.base import Adapter
from core.config import config


class PostgresAdapter(Adapter):
    """PostgreSQL adapter with connection pooling."""

    identity = 'postgresql'
    drivername = 'postgresql+asyncpg'

    def build_url(self, connection: Mapping[str, Any]) -> URL:
        defaults = config.db.get_connection_params()
        return URL.create(
            drivername=self.drivername,
            username=connection.get('user', defaults['user']),
            password=connection.get('password', defaults['password']),
            host=connection.get('host', defaults['host']),
            port=int(connection.get('port', defaults['port'])),
            database=connection.get('database', defaults['database'])
        )

    def engine_kwargs(self, connection: Mapping[str, Any]) -> Dict[str, Any]:
        kwargs = super().engine_kwargs(connection)
        kwargs.setdefault('pool_size', int(connection.get('pool_size', 5)))
        kwargs.setdefault('max_overflow', int(connection.get('max_overflow', 10)))
        kwargs.setdefault('pool_pre_ping', True)  # Verify connections before using
        return kwargs
