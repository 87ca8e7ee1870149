"""
=================================================
Attribute resolution and column type mapping.
=================================================

Translates the attribute declarations of a model definition into the
resolved attribute map the engine works with, and maps attribute type tags
to SQLAlchemy column types.

Resolution:
    - 'string'                  → {'type': 'string'}
    - {'type': 'integer', ...}  → copied as-is
    - {'model': 'user'}         → copied as-is (relationship)
    - callables                 → excluded (instance methods, see schema.py)
    - primary key 'id' injected unless one is declared or autoPK is False
    - 'createdAt' / 'updatedAt' injected unless disabled

Example:
    >>> from orm.types import resolve_attributes
    >>>
    >>> resolve_attributes({'identity': 'car', 'attributes': {'make': 'string'}})
    {'id': {'type': 'integer', 'primaryKey': True, 'autoIncrement': True},
     'make': {'type': 'string'},
     'createdAt': {'type': 'datetime'},
     'updatedAt': {'type': 'datetime'}}
"""

from typing import Any, Callable, Dict

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Float,
    Integer,
    LargeBinary,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.types import TypeEngine

from orm.errors import SchemaError

DEFAULT_STRING_SIZE = 255

TYPE_MAP: Dict[str, Callable[[Dict[str, Any]], TypeEngine]] = {
    'string': lambda attr: String(attr.get('size') or DEFAULT_STRING_SIZE),
    'email': lambda attr: String(attr.get('size') or DEFAULT_STRING_SIZE),
    'text': lambda attr: Text(),
    'mediumtext': lambda attr: Text(),
    'longtext': lambda attr: Text(),
    'integer': lambda attr: Integer(),
    'float': lambda attr: Float(),
    'number': lambda attr: Float(),
    'decimal': lambda attr: Numeric(),
    'boolean': lambda attr: Boolean(),
    'date': lambda attr: Date(),
    'time': lambda attr: Time(),
    'datetime': lambda attr: DateTime(),
    'binary': lambda attr: LargeBinary(),
    'json': lambda attr: JSON(),
    'array': lambda attr: JSON(),
}

# Names SQLAlchemy's declarative base reserves on mapped classes
RESERVED_NAMES = frozenset({'metadata', 'registry'})


def is_relationship(attr_def: Any) -> bool:
    """Check whether a resolved attribute declares a model or collection."""
    return isinstance(attr_def, dict) and bool(attr_def.get('model') or attr_def.get('collection'))


def column_type(name: str, attr_def: Dict[str, Any]) -> TypeEngine:
    """Map a resolved attribute to a SQLAlchemy column type.

    Args:
        name: Attribute name (for error messages)
        attr_def: Resolved attribute definition

    Returns:
        SQLAlchemy type instance

    Raises:
        SchemaError: If the type tag is unknown
    """
    tag = str(attr_def.get('type') or 'string').lower()
    factory = TYPE_MAP.get(tag)
    if factory is None:
        raise SchemaError(f"Attribute '{name}' has unknown type '{tag}'")
    return factory(attr_def)


def primary_key_name(attributes: Dict[str, Any]) -> str:
    """Return the name of the primary key attribute of a resolved map."""
    for name, attr_def in attributes.items():
        if isinstance(attr_def, dict) and attr_def.get('primaryKey'):
            return name
    raise SchemaError("Model has no primary key attribute")


def resolve_attributes(definition: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Resolve the attribute declarations of a model definition.

    Args:
        definition: Model definition (defaults already merged)

    Returns:
        Ordered dict of attribute name → attribute dict, including the
        engine-injected primary key and timestamp attributes

    Raises:
        SchemaError: If an attribute uses a reserved name
    """
    declared: Dict[str, Dict[str, Any]] = {}
    for name, attr_def in (definition.get('attributes') or {}).items():
        if callable(attr_def):
            continue
        if name in RESERVED_NAMES:
            raise SchemaError(
                f"Model '{definition.get('identity')}' uses reserved attribute name '{name}'"
            )
        if isinstance(attr_def, str):
            declared[name] = {'type': attr_def}
        elif isinstance(attr_def, dict):
            declared[name] = dict(attr_def)

    resolved: Dict[str, Dict[str, Any]] = {}
    has_pk = any(attr.get('primaryKey') for attr in declared.values())
    if not has_pk and definition.get('autoPK', True):
        resolved['id'] = {'type': 'integer', 'primaryKey': True, 'autoIncrement': True}
    elif not has_pk:
        raise SchemaError(
            f"Model '{definition.get('identity')}' disables autoPK but declares no primary key"
        )

    resolved.update(declared)

    if definition.get('autoCreatedAt', True) and 'createdAt' not in resolved:
        resolved['createdAt'] = {'type': 'datetime'}
    if definition.get('autoUpdatedAt', True) and 'updatedAt' not in resolved:
        resolved['updatedAt'] = {'type': 'datetime'}

    return resolved
