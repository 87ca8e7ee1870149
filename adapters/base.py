"""
=====================================
Base class for storage adapters.
=====================================

An adapter turns a connection configuration into an async SQLAlchemy
engine. Adapters are keyed by `identity`; connection configs reference them
through their `adapter` key.

A connection config may always give a full `url`, which takes precedence
over the adapter-specific keys.

Example:
    >>> class MyAdapter(Adapter):
    ...     identity = 'mine'
    ...     drivername = 'sqlite+aiosqlite'
    ...
    ...     def build_url(self, connection):
    ...         return URL.create(self.drivername, database=connection['database'])
"""

from typing import Any, Dict, Mapping, Optional

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from core.logger import get_logger

logger = get_logger(__name__)


class Adapter:
    """Builds async engines for connections that reference it.

    Attributes:
        identity: Key connection configs use to reference this adapter
        drivername: SQLAlchemy async driver name
        engine_options: Extra keyword arguments for create_async_engine
    """

    identity: Optional[str] = None
    drivername: Optional[str] = None

    def __init__(self, identity: Optional[str] = None, **engine_options: Any):
        if identity is not None:
            self.identity = identity
        self.engine_options = engine_options

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.identity}>"

    def build_url(self, connection: Mapping[str, Any]) -> URL:
        """Build the database URL for a connection config."""
        raise NotImplementedError

    def engine_kwargs(self, connection: Mapping[str, Any]) -> Dict[str, Any]:
        """Keyword arguments passed to create_async_engine."""
        return dict(self.engine_options)

    def create_engine(self, connection: Mapping[str, Any], echo: bool = False) -> AsyncEngine:
        """Create the async engine for a connection config.

        Args:
            connection: Connection configuration
            echo: Enable SQL statement logging

        Returns:
            SQLAlchemy AsyncEngine
        """
        url = make_url(connection['url']) if connection.get('url') else self.build_url(connection)
        logger.debug(f"Creating engine for {url.render_as_string(hide_password=True)}")
        return create_async_engine(url, echo=echo, **self.engine_kwargs(connection))

    async def teardown(self, engine: AsyncEngine) -> None:
        """Release all pooled connections of an engine."""
        await engine.dispose()
