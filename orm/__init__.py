"""
========================================
SQLAlchemy-backed ORM engine.
========================================

The engine the plugin drives to turn model definitions into live,
query-capable collections. The plugin only relies on its interface:
load_collection(definition), async initialize(adapters, connections) and
async teardown().

Modules:
    engine: Orm instance lifecycle and schema reconciliation
    schema: Declarative mapping of model definitions
    collection: Live collection objects
    types: Attribute resolution and column types
    errors: Engine exceptions
"""

__version__ = "0.1.0"
__all__ = [
    'Orm',
    'Collection',
    'OrmError',
    'SchemaError',
    'UnknownAdapterError',
    'UnknownConnectionError',
    'RecordValidationError',
]

from .collection import Collection
from .engine import Orm
from .errors import (
    OrmError,
    RecordValidationError,
    SchemaError,
    UnknownAdapterError,
    UnknownConnectionError,
)
