"""
===========================================================
Build live models from an effective configuration.
===========================================================

OrmBuilder drives the ORM engine:

    1. Normalize adapters (list or identity-keyed mapping) → mapping.
       An adapter without identity raises InvalidAdapterError immediately,
       before any asynchronous work is started.
    2. Merge `modelDefaults` under every model definition (the definition
       wins) and load it into a fresh engine instance.
    3. Initialize the engine with the adapters and connections. Any failure
       is wrapped in OrmInitializationError with the original as `cause`.
       There is no retry.
    4. Attach `associations` to every live collection, derived from its
       resolved attributes.
    5. Return the identity-keyed mapping of live collections.

Example:
    >>> builder = OrmBuilder()
    >>> models = await builder.build(merger.compute_effective('server'), [MemoryAdapter()])
    >>> models['user'].associations
    []
"""

from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Tuple, Union

from core.errors import InvalidAdapterError, OrmInitializationError
from core.logger import get_logger
from orm import Orm
from plugin.associations import derive_associations
from utils.normalize import deep_merge, ensure_identity_mapping, read_field

logger = get_logger(__name__)

AdapterCollection = Union[Mapping[str, Any], list, tuple, None]


def _reject_adapter(adapter: Any) -> None:
    raise InvalidAdapterError(f"Adapter {adapter!r} does not expose an identity")


def normalize_adapters(adapters: AdapterCollection) -> Dict[str, Any]:
    """Normalize a list or mapping of adapters to an identity-keyed dict.

    Args:
        adapters: List of adapters, or mapping whose values are adapters

    Returns:
        Dict mapping adapter identity → adapter

    Raises:
        InvalidAdapterError: If an adapter has no identity
    """
    return ensure_identity_mapping(adapters, on_missing=_reject_adapter)


class OrmBuilder:
    """Builds decorated live models through a fresh engine instance.

    Attributes:
        orm_factory: Callable returning a new engine instance
        orm: Engine instance of the last build (kept for teardown)
    """

    def __init__(self, orm_factory: Optional[Callable[[], Any]] = None):
        self.orm_factory = orm_factory or Orm
        self.orm = None

    def build(
        self,
        effective_config: Mapping[str, Any],
        adapters: AdapterCollection
    ) -> Awaitable[Dict[str, Any]]:
        """Start building the ORM.

        Adapter normalization happens synchronously; the returned awaitable
        performs the engine initialization.

        Args:
            effective_config: Output of ConfigMerger.compute_effective()
            adapters: List or identity-keyed mapping of adapters

        Returns:
            Awaitable resolving to identity → live model

        Raises:
            InvalidAdapterError: If an adapter has no identity
        """
        normalized = normalize_adapters(adapters)
        return self._build(effective_config, normalized)

    async def _build(self, effective_config: Mapping[str, Any], adapters: Dict[str, Any]) -> Dict[str, Any]:
        orm, connections = self._load(effective_config)

        try:
            collections = await orm.initialize(adapters=adapters, connections=connections)
        except Exception as e:
            logger.error(f"ORM initialization failed: {e}")
            raise OrmInitializationError(f"ORM initialization failed: {e}", cause=e) from e

        models = {}
        for identity, collection in collections.items():
            collection.associations = derive_associations(read_field(collection, 'attributes'))
            models[identity] = collection
            logger.debug(
                f"Model '{identity}' ready with {len(collection.associations)} association(s)"
            )

        self.orm = orm
        return models

    def _load(self, effective_config: Mapping[str, Any]) -> Tuple[Any, Dict[str, Any]]:
        orm = self.orm_factory()
        defaults = effective_config.get('modelDefaults') or {}
        try:
            for definition in (effective_config.get('models') or {}).values():
                orm.load_collection(deep_merge(defaults, definition))
        except Exception as e:
            raise OrmInitializationError(f"Could not load model definitions: {e}", cause=e) from e
        return orm, dict(effective_config.get('connections') or {})
