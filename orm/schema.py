"""
======================================================
Declarative mapping of model definitions.
======================================================

Builds one SQLAlchemy declarative class per model definition on a private
declarative base, so each ORM instance owns its own mapper registry and
MetaData and can be disposed without affecting other instances.

Relationship attributes are mapped as follows:
    - {'model': 'user'} on alias `owner`:
        column `owner_id` (FK to the target primary key) and a many-to-one
        relationship `owner`
    - {'collection': 'pet', 'via': 'owner'} where pet.owner is a model attribute:
        one-to-many relationship using pet.owner_id
    - {'collection': 'tag', 'via': 'posts'} where tag.posts is a collection,
      or a collection without `via`:
        many-to-many relationship through a junction table

Reciprocal relationships are linked with back_populates. All relationships
load with 'selectin' so records are complete when returned from an async
session.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy import Column, ForeignKey, Table
from sqlalchemy.orm import declarative_base, relationship

from core.logger import get_logger
from orm.errors import SchemaError
from orm.types import column_type, is_relationship, primary_key_name, resolve_attributes

logger = get_logger(__name__)

JunctionKey = Tuple[Tuple[str, str], ...]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordMixin:
    """Behaviour shared by every generated record class."""

    def to_dict(self) -> Dict[str, Any]:
        """Return the column values of this record."""
        return {column.key: getattr(self, column.key) for column in self.__table__.columns}

    def __repr__(self) -> str:
        pk = ', '.join(str(getattr(self, col.key)) for col in self.__table__.primary_key.columns)
        return f"<{type(self).__name__} {pk}>"


def foreign_key_name(alias: str) -> str:
    """Column name backing a `model` attribute."""
    return f"{alias}_id"


class SchemaBuilder:
    """Map a set of model definitions onto a private declarative base.

    Attributes:
        definitions: Identity → model definition (defaults merged)
        attributes: Identity → resolved attributes
        base: Private declarative base
        classes: Identity → generated record class
        junctions: Junction tables keyed by their relationship endpoints
    """

    def __init__(self, definitions: Dict[str, Dict[str, Any]]):
        self.definitions = definitions
        self.attributes = {
            identity: resolve_attributes(definition)
            for identity, definition in definitions.items()
        }
        self.base = declarative_base(cls=RecordMixin, name='Record')
        self.classes: Dict[str, type] = {}
        self.junctions: Dict[JunctionKey, Table] = {}
        self._junction_owner: Dict[JunctionKey, str] = {}

    # ------------------------------------------------------------------
    # Naming
    # ------------------------------------------------------------------

    def table_name(self, identity: str) -> str:
        return self.definitions[identity].get('tableName') or identity

    def class_name(self, identity: str) -> str:
        global_id = self.definitions[identity].get('globalId')
        if isinstance(global_id, str) and global_id.isidentifier():
            return global_id
        return identity[:1].upper() + identity[1:] if identity.isidentifier() else 'Record'

    def primary_key(self, identity: str) -> str:
        return primary_key_name(self.attributes[identity])

    # ------------------------------------------------------------------
    # Relationship topology
    # ------------------------------------------------------------------

    def _target(self, identity: str, alias: str, attr_def: Dict[str, Any]) -> str:
        target = str(attr_def.get('model') or attr_def.get('collection')).lower()
        if target not in self.definitions:
            raise SchemaError(
                f"Attribute '{identity}.{alias}' references unknown model '{target}'"
            )
        return target

    def _inverse(self, identity: str, alias: str, attr_def: Dict[str, Any]) -> Optional[str]:
        """Name of the reciprocal attribute on the target, if both sides declare it."""
        target = self._target(identity, alias, attr_def)
        target_attrs = self.attributes[target]

        if attr_def.get('model'):
            for name, other in target_attrs.items():
                if (is_relationship(other) and str(other.get('collection') or '').lower() == identity
                        and other.get('via') == alias and (target, name) != (identity, alias)):
                    return name
            return None

        via = attr_def.get('via')
        other = target_attrs.get(via) if via else None
        if not is_relationship(other):
            return None
        if other.get('model') and str(other['model']).lower() == identity:
            return via
        if other.get('collection') and str(other['collection']).lower() == identity \
                and other.get('via') == alias and (target, via) != (identity, alias):
            return via
        return None

    def _is_one_to_many(self, identity: str, alias: str, attr_def: Dict[str, Any]) -> bool:
        inverse = self._inverse(identity, alias, attr_def)
        if inverse is None:
            return False
        target = self._target(identity, alias, attr_def)
        return bool(self.attributes[target][inverse].get('model'))

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def _column(self, name: str, attr_def: Dict[str, Any]) -> Column:
        kwargs: Dict[str, Any] = {}
        if attr_def.get('primaryKey'):
            kwargs['primary_key'] = True
            kwargs['autoincrement'] = bool(attr_def.get('autoIncrement', False))
        else:
            kwargs['nullable'] = not attr_def.get('required', False)
            if attr_def.get('unique'):
                kwargs['unique'] = True
            if attr_def.get('index'):
                kwargs['index'] = True

        if 'defaultsTo' in attr_def:
            default = attr_def['defaultsTo']
            if isinstance(default, (list, dict)):
                kwargs['default'] = lambda ctx, value=default: type(value)(value)
            else:
                kwargs['default'] = default
        elif name == 'createdAt':
            kwargs['default'] = _utcnow
        elif name == 'updatedAt':
            kwargs['default'] = _utcnow
            kwargs['onupdate'] = _utcnow

        return Column(name, column_type(name, attr_def), **kwargs)

    def _foreign_key_column(self, identity: str, alias: str, attr_def: Dict[str, Any]) -> Column:
        target = self._target(identity, alias, attr_def)
        target_pk = self.primary_key(target)
        target_type = column_type(target_pk, self.attributes[target][target_pk])
        return Column(
            foreign_key_name(alias),
            target_type,
            ForeignKey(f"{self.table_name(target)}.{target_pk}"),
            nullable=not attr_def.get('required', False),
            index=True
        )

    def _pk_column(self, identity: str) -> Callable[[], Column]:
        return lambda: self.classes[identity].__table__.c[self.primary_key(identity)]

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    def _model_relationship(self, identity: str, alias: str, attr_def: Dict[str, Any]):
        target = self._target(identity, alias, attr_def)
        fk = foreign_key_name(alias)
        return relationship(
            lambda: self.classes[target],
            foreign_keys=lambda: [self.classes[identity].__table__.c[fk]],
            remote_side=self._pk_column(target),
            back_populates=self._inverse(identity, alias, attr_def),
            lazy='selectin'
        )

    def _one_to_many_relationship(self, identity: str, alias: str, attr_def: Dict[str, Any]):
        target = self._target(identity, alias, attr_def)
        via = attr_def['via']
        fk = foreign_key_name(via)
        return relationship(
            lambda: self.classes[target],
            foreign_keys=lambda: [self.classes[target].__table__.c[fk]],
            back_populates=via,
            lazy='selectin'
        )

    def _junction_columns(self, identity: str, alias: str, attr_def: Dict[str, Any]) -> Tuple[JunctionKey, str, str]:
        target = self._target(identity, alias, attr_def)
        inverse = self._inverse(identity, alias, attr_def)
        local = f"{identity}_{alias}"
        if inverse is None:
            key: JunctionKey = ((identity, alias),)
            remote = f"{target}_{alias}_ref"
        else:
            key = tuple(sorted([(identity, alias), (target, inverse)]))
            remote = f"{target}_{inverse}"
        return key, local, remote

    def _junction_table(self, identity: str, alias: str, attr_def: Dict[str, Any]) -> Table:
        key, local, remote = self._junction_columns(identity, alias, attr_def)
        if key in self.junctions:
            return self.junctions[key]

        target = self._target(identity, alias, attr_def)
        name = '__'.join(f"{owner}_{attr}" for owner, attr in key)
        if len(key) == 1:
            name = f"{name}__{target}"

        local_pk, target_pk = self.primary_key(identity), self.primary_key(target)
        table = Table(
            name,
            self.base.metadata,
            Column(local, column_type(local_pk, self.attributes[identity][local_pk]),
                   ForeignKey(f"{self.table_name(identity)}.{local_pk}", ondelete='CASCADE'),
                   primary_key=True),
            Column(remote, column_type(target_pk, self.attributes[target][target_pk]),
                   ForeignKey(f"{self.table_name(target)}.{target_pk}", ondelete='CASCADE'),
                   primary_key=True),
        )
        self.junctions[key] = table
        self._junction_owner[key] = identity
        logger.debug(f"Created junction table {name}")
        return table

    def _many_to_many_relationship(self, identity: str, alias: str, attr_def: Dict[str, Any]):
        target = self._target(identity, alias, attr_def)
        table = self._junction_table(identity, alias, attr_def)
        _, local, remote = self._junction_columns(identity, alias, attr_def)
        local_pk, target_pk = self._pk_column(identity), self._pk_column(target)
        return relationship(
            lambda: self.classes[target],
            secondary=table,
            primaryjoin=lambda: local_pk() == table.c[local],
            secondaryjoin=lambda: target_pk() == table.c[remote],
            back_populates=self._inverse(identity, alias, attr_def),
            lazy='selectin'
        )

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def _namespace(self, identity: str) -> Dict[str, Any]:
        definition = self.definitions[identity]
        namespace: Dict[str, Any] = {
            '__tablename__': self.table_name(identity),
            '__module__': __name__,
        }

        for name, attr_def in self.attributes[identity].items():
            if not is_relationship(attr_def):
                namespace[name] = self._column(name, attr_def)
            elif attr_def.get('model'):
                namespace[foreign_key_name(name)] = self._foreign_key_column(identity, name, attr_def)
                namespace[name] = self._model_relationship(identity, name, attr_def)
            elif self._is_one_to_many(identity, name, attr_def):
                namespace[name] = self._one_to_many_relationship(identity, name, attr_def)
            else:
                namespace[name] = self._many_to_many_relationship(identity, name, attr_def)

        # Callable attributes become instance methods of the record class
        for name, attr_def in (definition.get('attributes') or {}).items():
            if callable(attr_def):
                namespace[name] = attr_def

        return namespace

    def build(self) -> Dict[str, type]:
        """Generate and configure the record classes.

        Returns:
            Identity → record class

        Raises:
            SchemaError: If a definition cannot be mapped
        """
        for identity in self.definitions:
            self.classes[identity] = type(self.class_name(identity), (self.base,), self._namespace(identity))
            logger.debug(f"Mapped model '{identity}' to table '{self.table_name(identity)}'")

        try:
            self.base.registry.configure()
        except SchemaError:
            raise
        except Exception as e:
            raise SchemaError(f"Could not configure model relationships: {e}") from e

        return self.classes

    def tables_for(self, identities: List[str]) -> List[Table]:
        """Tables owned by the given models, junction tables included."""
        owned = set(identities)
        tables = [self.classes[identity].__table__ for identity in identities if identity in self.classes]
        tables.extend(
            table for key, table in self.junctions.items()
            if self._junction_owner[key] in owned
        )
        return tables

    def dispose(self) -> None:
        """Dispose the private mapper registry."""
        self.base.registry.dispose()
        self.classes = {}
