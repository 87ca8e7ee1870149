"""
=======================================================
ORM models plugin: configuration, lifecycle, transfer.
=======================================================

Lets an application declare model definitions and connections once and
materialize them as live models on the server and, after state transfer,
on the client.

Modules:
    config_merger: common/server/client configuration scopes
    associations: Association metadata derived from attributes
    orm_builder: Drives the ORM engine and decorates live models
    registry: Live models by identity and globalId
    context: Action/store context integration
    lifecycle: ModelsPlugin state machine and dehydrate/rehydrate

Example:
    >>> from plugin import ModelsPlugin
    >>> from adapters import MemoryAdapter
    >>>
    >>> plugin = ModelsPlugin({'common': {'models': [User], 'connections': conns}})
    >>> models = await plugin.initialize([MemoryAdapter()])
    >>> await plugin.tear_down()
"""

__version__ = "0.1.0"
__all__ = [
    'ModelsPlugin',
    'LifecycleState',
    'ConfigMerger',
    'OrmBuilder',
    'normalize_adapters',
    'ModelRegistry',
    'ContextPlug',
    'AssociationDescriptor',
    'derive_associations',
]

from .associations import AssociationDescriptor, derive_associations
from .config_merger import ConfigMerger
from .context import ContextPlug
from .lifecycle import LifecycleState, ModelsPlugin
from .orm_builder import OrmBuilder, normalize_adapters
from .registry import ModelRegistry
