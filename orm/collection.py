"""
===========================================
Live collection objects produced by the ORM.
===========================================

A Collection is the query-capable object standing in for one model
definition after the ORM was initialized. It exposes the model metadata
(identity, globalId, resolved attributes), the generated record class and a
small set of async record operations that run the model's lifecycle hooks.

Lifecycle hooks (all optional, sync or async, declared at the top level of
the model definition):
    before_validate(values), before_create(values), after_create(record),
    before_destroy(criteria), after_destroy(records)

Any other callable at the top level of the definition is exposed as an
attribute of the collection (static model helpers).

Example:
    >>> user = await models['user'].create({'username': 'marnusw'})
    >>> users = await models['user'].find(username='marnusw')
    >>> records = models['user'].merge_data({'1': {'id': 1, 'username': 'a'}})
"""

import inspect
from typing import Any, Callable, Dict, List, Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.logger import get_logger
from orm.errors import RecordValidationError
from orm.schema import foreign_key_name
from orm.types import is_relationship

logger = get_logger(__name__)

HOOK_NAMES = ('before_validate', 'before_create', 'after_create', 'before_destroy', 'after_destroy')


class Collection:
    """Query-capable live model.

    Attributes:
        identity: Lowercase model identity
        global_id: Display-cased alias (may be None)
        connection: Name of the connection the model is bound to
        definition: The model definition the collection was built from
        attributes: Resolved attributes, engine-injected fields included
        model_class: Generated SQLAlchemy record class
        primary_key: Name of the primary key attribute
        associations: Association descriptors (attached by the plugin)
    """

    def __init__(
        self,
        identity: str,
        definition: Dict[str, Any],
        attributes: Dict[str, Dict[str, Any]],
        model_class: type,
        primary_key: str,
        session_factory: async_sessionmaker
    ):
        self.identity = identity
        self.global_id = definition.get('globalId')
        self.connection = definition.get('connection')
        self.definition = definition
        self.attributes = attributes
        self.model_class = model_class
        self.primary_key = primary_key
        self.associations: List[Any] = []
        self._session_factory = session_factory

        for name, value in definition.items():
            if name == 'attributes' or not callable(value):
                continue
            if hasattr(type(self), name):
                logger.warning(f"Model '{identity}' helper '{name}' shadows a collection method, skipped")
                continue
            setattr(self, name, value)

    def __repr__(self) -> str:
        return f"<Collection {self.identity}>"

    @property
    def globalId(self) -> Optional[str]:
        return self.global_id

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def session(self) -> AsyncSession:
        """Open a new async session bound to this model's connection."""
        return self._session_factory()

    def _hook(self, name: str) -> Optional[Callable]:
        hook = self.definition.get(name)
        return hook if callable(hook) else None

    async def _run_hook(self, name: str, argument: Any) -> None:
        hook = self._hook(name)
        if hook is None:
            return
        result = hook(argument)
        if inspect.isawaitable(result):
            await result

    def _column_values(self, values: Mapping[str, Any]) -> Dict[str, Any]:
        """Map record values onto mapped attribute names.

        A `model` attribute given a plain key is stored on its foreign key
        column; given a record it is assigned to the relationship.
        """
        mapped: Dict[str, Any] = {}
        for name, value in values.items():
            attr_def = self.attributes.get(name)
            if attr_def is None:
                if hasattr(self.model_class, name) and name.endswith('_id'):
                    mapped[name] = value
                    continue
                raise RecordValidationError(f"Model '{self.identity}' has no attribute '{name}'")
            if is_relationship(attr_def) and attr_def.get('model') \
                    and not hasattr(value, '__table__'):
                mapped[foreign_key_name(name)] = value
            else:
                mapped[name] = value
        return mapped

    def _criteria(self, criteria: Mapping[str, Any]) -> List[Any]:
        clauses = []
        for name, value in self._column_values(criteria).items():
            clauses.append(getattr(self.model_class, name) == value)
        return clauses

    def validate(self, values: Mapping[str, Any]) -> None:
        """Check required attributes are present.

        Raises:
            RecordValidationError: If a required attribute has no value
        """
        missing = [
            name for name, attr_def in self.attributes.items()
            if attr_def.get('required') and 'defaultsTo' not in attr_def
            and values.get(name) is None
        ]
        if missing:
            raise RecordValidationError(
                f"Model '{self.identity}' is missing required attributes: {', '.join(missing)}"
            )

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def new(self, values: Mapping[str, Any]) -> Any:
        """Instantiate a record without persisting it."""
        return self.model_class(**self._column_values(values))

    def merge_data(self, data: Mapping[Any, Mapping[str, Any]]) -> Dict[Any, Any]:
        """Turn serialized record data back into record instances.

        Args:
            data: Mapping of record id → record data

        Returns:
            New dict with the same keys and record instances as values
        """
        return {record_id: self.new(values) for record_id, values in data.items()}

    async def create(self, values: Mapping[str, Any]) -> Any:
        """Validate and insert a record.

        Args:
            values: Attribute values

        Returns:
            The persisted record
        """
        values = dict(values)
        await self._run_hook('before_validate', values)
        self.validate(values)
        await self._run_hook('before_create', values)

        record = self.new(values)
        async with self._session_factory() as session:
            async with session.begin():
                session.add(record)

        await self._run_hook('after_create', record)
        return record

    async def find(self, **criteria: Any) -> List[Any]:
        """Return all records matching attribute equality criteria."""
        statement = select(self.model_class).where(*self._criteria(criteria))
        async with self._session_factory() as session:
            result = await session.execute(statement)
            return list(result.scalars().all())

    async def find_one(self, **criteria: Any) -> Optional[Any]:
        """Return the first record matching the criteria, or None."""
        statement = select(self.model_class).where(*self._criteria(criteria)).limit(1)
        async with self._session_factory() as session:
            result = await session.execute(statement)
            return result.scalars().first()

    async def count(self, **criteria: Any) -> int:
        """Count records matching the criteria."""
        statement = select(func.count()).select_from(self.model_class).where(*self._criteria(criteria))
        async with self._session_factory() as session:
            result = await session.execute(statement)
            return int(result.scalar_one())

    async def destroy(self, **criteria: Any) -> List[Any]:
        """Delete records matching the criteria.

        Returns:
            The deleted records
        """
        await self._run_hook('before_destroy', dict(criteria))

        statement = select(self.model_class).where(*self._criteria(criteria))
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(statement)
                records = list(result.scalars().all())
                for record in records:
                    await session.delete(record)

        await self._run_hook('after_destroy', records)
        return records
