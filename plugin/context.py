"""
===============================================
Context integration for the hosting application.
===============================================

The host application hands the plugin two mutable context objects:

    action context: gets `models`, the live registry itself, so lookups
        always reflect the current initialize/tear_down cycle
    store context: gets three lookup functions
        get_model_constructor(identity) → record class
        get_attribute_type(identity, attribute) → type tag, 'model' or 'collection'
        get_associations(identity) → association descriptors

Contexts may be plain objects or mutable mappings.

Example:
    >>> plug = plugin.plug_context()
    >>> plug.plug_action_context(action_context)
    >>> plug.plug_store_context(store_context)
    >>> User = store_context.get_model_constructor('user')
"""

from collections.abc import MutableMapping
from typing import Any, Callable, List, Optional

from core.errors import UnknownIdentityError
from plugin.registry import ModelRegistry
from utils.normalize import read_field


def _attach(context: Any, name: str, value: Any) -> None:
    if isinstance(context, MutableMapping):
        context[name] = value
    else:
        setattr(context, name, value)


def attribute_type(attr_def: Any) -> Optional[str]:
    """Semantic type of one attribute declaration.

    Relationship attributes resolve to 'model' or 'collection' rather than
    their raw declaration; string declarations are their own type.
    """
    if isinstance(attr_def, str):
        return attr_def
    if callable(attr_def) or not hasattr(attr_def, 'get'):
        return None
    if attr_def.get('model'):
        return 'model'
    if attr_def.get('collection'):
        return 'collection'
    return attr_def.get('type')


class ContextPlug:
    """Binds a model registry to host contexts.

    Attributes:
        name: Plugin name reported to the host
        registry: The registry exposed to the contexts
    """

    def __init__(self, registry: ModelRegistry, name: str = 'ModelsPlugin'):
        self.name = name
        self.registry = registry

    def _lookup(self, identity: str) -> Any:
        model = self.registry.get(identity)
        if model is None:
            raise UnknownIdentityError(identity)
        return model

    def get_model_constructor(self, identity: str) -> Any:
        """Record class of a model.

        Raises:
            UnknownIdentityError: If the identity is not registered
        """
        model = self._lookup(identity)
        return read_field(model, 'model_class', '_model', default=model)

    def get_attribute_type(self, identity: str, attribute: str) -> Optional[str]:
        """Semantic type of `attribute` on a model, or None if undeclared.

        Raises:
            UnknownIdentityError: If the identity is not registered
        """
        attributes = read_field(self._lookup(identity), 'attributes', default={})
        return attribute_type(attributes.get(attribute))

    def get_associations(self, identity: str) -> List[Any]:
        """Association descriptors of a model.

        Raises:
            UnknownIdentityError: If the identity is not registered
        """
        return list(read_field(self._lookup(identity), 'associations', default=[]))

    def plug_action_context(self, action_context: Any) -> None:
        """Expose the registry as `models` on the action context."""
        _attach(action_context, 'models', self.registry)

    def plug_store_context(self, store_context: Any) -> None:
        """Expose the model lookups on the store context."""
        lookups: List[Callable] = [
            self.get_model_constructor,
            self.get_attribute_type,
            self.get_associations,
        ]
        for lookup in lookups:
            _attach(store_context, lookup.__name__, lookup)
