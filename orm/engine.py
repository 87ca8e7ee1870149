"""
=====================================================
ORM engine: collections, connections and schema.
=====================================================

The Orm instance is the engine the plugin drives. It accepts model
definitions one at a time, then on initialize:

    1. Maps all definitions onto a private declarative base
    2. Opens one async engine per connection through its adapter
    3. Reconciles the schema according to each model's migrate strategy
    4. Returns one live Collection per model

An Orm instance is single-use: it is created for one initialize and
discarded after teardown.

Migrate strategies:
    safe:  never touch the schema
    alter: create missing tables (existing tables are left as they are)
    drop:  drop and recreate the model's tables

Example:
    >>> from orm import Orm
    >>> from adapters import MemoryAdapter
    >>>
    >>> orm = Orm()
    >>> orm.load_collection(user_definition)
    >>> collections = await orm.initialize(
    ...     adapters={'memory': MemoryAdapter()},
    ...     connections={'default': {'adapter': 'memory'}}
    ... )
    >>> await orm.teardown()
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from core.config import MIGRATE_STRATEGIES, config
from core.logger import get_logger
from orm.collection import Collection
from orm.errors import OrmError, SchemaError, UnknownAdapterError, UnknownConnectionError
from orm.schema import SchemaBuilder
from utils.normalize import read_field

logger = get_logger(__name__)


@dataclass
class ConnectionHandle:
    """An open connection: its adapter, engine and session factory."""

    name: str
    adapter: Any
    engine: AsyncEngine
    session_factory: async_sessionmaker


class Orm:
    """SQLAlchemy-backed ORM engine.

    Attributes:
        migrate: Default migrate strategy for models that declare none
        echo: If True, engines echo SQL
        definitions: Identity → loaded model definition
        collections: Identity → Collection (after initialize)
        connections: Connection name → ConnectionHandle (after initialize)
        initialized: True between a successful initialize and teardown
    """

    def __init__(self, migrate: Optional[str] = None, echo: Optional[bool] = None):
        self.migrate = migrate or config.migrate
        self.echo = config.echo_sql if echo is None else echo
        self.definitions: Dict[str, Dict[str, Any]] = {}
        self.collections: Dict[str, Collection] = {}
        self.connections: Dict[str, ConnectionHandle] = {}
        self.initialized = False
        self._schema: Optional[SchemaBuilder] = None

    def load_collection(self, definition: Mapping[str, Any]) -> None:
        """Register a model definition.

        Args:
            definition: Model definition with at least an identity

        Raises:
            OrmError: If called after initialize or without an identity
        """
        if self.initialized:
            raise OrmError("Cannot load collections into an initialized ORM")
        identity = definition.get('identity')
        if not identity:
            raise SchemaError("Model definition has no identity")
        self.definitions[str(identity).lower()] = dict(definition)

    def _migrate_strategy(self, identity: str) -> str:
        strategy = str(self.definitions[identity].get('migrate') or self.migrate).lower()
        if strategy not in MIGRATE_STRATEGIES:
            raise SchemaError(f"Model '{identity}' has unknown migrate strategy '{strategy}'")
        return strategy

    def _open_connections(
        self,
        adapters: Mapping[str, Any],
        connections: Mapping[str, Mapping[str, Any]]
    ) -> None:
        used = {definition.get('connection') for definition in self.definitions.values()}
        for name in used:
            if name not in connections:
                raise UnknownConnectionError(f"Connection '{name}' is not configured")
            connection = connections[name]
            adapter_id = read_field(connection, 'adapter')
            adapter = adapters.get(adapter_id)
            if adapter is None:
                raise UnknownAdapterError(
                    f"Connection '{name}' uses adapter '{adapter_id}' which was not provided"
                )
            engine = adapter.create_engine(connection, echo=self.echo)
            self.connections[name] = ConnectionHandle(
                name=name,
                adapter=adapter,
                engine=engine,
                session_factory=async_sessionmaker(engine, expire_on_commit=False)
            )
            logger.debug(f"Opened connection '{name}' with adapter '{adapter_id}'")

    async def _reconcile_schema(self) -> None:
        metadata = self._schema.base.metadata
        for name, handle in self.connections.items():
            by_strategy: Dict[str, List[str]] = {strategy: [] for strategy in MIGRATE_STRATEGIES}
            for identity, definition in self.definitions.items():
                if definition.get('connection') == name:
                    by_strategy[self._migrate_strategy(identity)].append(identity)

            drop_tables = self._schema.tables_for(by_strategy['drop'])
            create_tables = self._schema.tables_for(by_strategy['alter'] + by_strategy['drop'])
            if not create_tables:
                continue

            async with handle.engine.begin() as conn:
                if drop_tables:
                    await conn.run_sync(metadata.drop_all, tables=drop_tables, checkfirst=True)
                await conn.run_sync(metadata.create_all, tables=create_tables, checkfirst=True)
            logger.debug(
                f"Reconciled {len(create_tables)} table(s) on connection '{name}' "
                f"({len(drop_tables)} recreated)"
            )

    async def initialize(
        self,
        adapters: Mapping[str, Any],
        connections: Mapping[str, Mapping[str, Any]]
    ) -> Dict[str, Collection]:
        """Map the loaded definitions and connect them to their databases.

        Args:
            adapters: Adapter identity → adapter
            connections: Connection name → connection config

        Returns:
            Identity → Collection

        Raises:
            OrmError: On any mapping, connection or schema failure. Opened
                engines are disposed before the error propagates.
        """
        if self.initialized:
            raise OrmError("ORM is already initialized")

        self._schema = SchemaBuilder(self.definitions)
        try:
            classes = self._schema.build()
            self._open_connections(adapters or {}, connections or {})
            await self._reconcile_schema()
        except Exception:
            await self._close_connections(raise_errors=False)
            self._schema.dispose()
            self._schema = None
            raise

        for identity, definition in self.definitions.items():
            self.collections[identity] = Collection(
                identity=identity,
                definition=definition,
                attributes=self._schema.attributes[identity],
                model_class=classes[identity],
                primary_key=self._schema.primary_key(identity),
                session_factory=self.connections[definition.get('connection')].session_factory
            )

        self.initialized = True
        logger.info(
            f"ORM initialized with {len(self.collections)} model(s) "
            f"on {len(self.connections)} connection(s)"
        )
        return dict(self.collections)

    async def _close_connections(self, raise_errors: bool = True) -> None:
        first_error: Optional[BaseException] = None
        for name, handle in list(self.connections.items()):
            try:
                await handle.adapter.teardown(handle.engine)
                logger.debug(f"Closed connection '{name}'")
            except Exception as e:
                logger.error(f"Failed to close connection '{name}': {e}")
                if first_error is None:
                    first_error = e
        self.connections = {}
        if first_error is not None and raise_errors:
            raise first_error

    async def teardown(self) -> None:
        """Close all connections and dispose the generated mappings."""
        await self._close_connections()
        if self._schema is not None:
            self._schema.dispose()
            self._schema = None
        self.collections = {}
        self.initialized = False
        logger.info("ORM torn down")
