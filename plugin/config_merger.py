"""
=====================================================
Layered configuration scopes: common, server, client.
=====================================================

ConfigMerger accumulates the three configuration scopes a plugin is
configured with and computes the effective configuration for one
environment.

Merge rules:
    - Mappings are merged key by key, recursively
    - Scalars and lists are replaced wholesale
    - `models` (list or mapping) is normalized to an identity-keyed mapping
      before merging, so a model given twice ends up as one entry with the
      later fields winning (last write wins)

Precedence in compute_effective(): common < requested scope.

Example:
    >>> merger = ConfigMerger()
    >>> merger.merge_scope('common', {'models': [user], 'connections': conns})
    >>> merger.merge_scope('server', {'modelDefaults': {'migrate': 'safe'}})
    >>> effective = merger.compute_effective('server')
    >>> sorted(effective)
    ['connections', 'modelDefaults', 'models']
"""

import copy
from typing import Any, Dict, Mapping, Optional

from core.errors import ConfigurationLockedError, InvalidModelError
from core.logger import get_logger
from utils.normalize import deep_merge, normalize_model_definitions

logger = get_logger(__name__)

SCOPES = ('common', 'server', 'client')
ENVIRONMENTS = ('server', 'client')


def _reject_definition(definition: Any) -> None:
    raise InvalidModelError(f"Model definition has no identity: {definition!r}")


def normalize_scope(partial: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Normalize one scope's partial configuration.

    Args:
        partial: Mapping with optional modelDefaults, models, connections

    Returns:
        Copy of the scope with `models` as an identity-keyed mapping
    """
    scope = dict(partial or {})
    if 'models' in scope:
        scope['models'] = normalize_model_definitions(scope['models'], on_missing=_reject_definition)
    return scope


class ConfigMerger:
    """Accumulates the common/server/client configuration scopes.

    Attributes:
        scopes: Scope name → accumulated configuration
        locked: True while the ORM is initialized
    """

    def __init__(self):
        self.scopes: Dict[str, Dict[str, Any]] = {name: {} for name in SCOPES}
        self.locked = False

    def lock(self) -> None:
        self.locked = True

    def unlock(self) -> None:
        self.locked = False

    def is_empty(self) -> bool:
        """True if no scope holds any configuration."""
        return not any(self.scopes.values())

    def scope(self, name: str) -> Dict[str, Any]:
        """Return a deep copy of one accumulated scope."""
        self._check_scope(name, SCOPES)
        return copy.deepcopy(self.scopes[name])

    @staticmethod
    def _check_scope(name: str, allowed) -> None:
        if name not in allowed:
            raise ValueError(f"Unknown scope '{name}'. Expected one of: {', '.join(allowed)}")

    def merge_scope(self, name: str, partial: Optional[Mapping[str, Any]]) -> None:
        """Deep-merge a partial configuration into a scope.

        Args:
            name: 'common', 'server' or 'client'
            partial: Mapping with optional modelDefaults, models, connections

        Raises:
            ConfigurationLockedError: If the ORM is initialized
            ValueError: If the scope name is unknown
            InvalidModelError: If a model definition has no identity
        """
        self._check_scope(name, SCOPES)
        if self.locked:
            raise ConfigurationLockedError(
                f"Cannot merge '{name}' configuration after the ORM was initialized"
            )
        if not partial:
            return

        self.scopes[name] = deep_merge(self.scopes[name], normalize_scope(partial))
        logger.debug(
            f"Merged '{name}' scope: "
            f"{len(self.scopes[name].get('models', {}))} model(s), "
            f"{len(self.scopes[name].get('connections', {}))} connection(s)"
        )

    def merge(self, options: Optional[Mapping[str, Any]]) -> None:
        """Merge a `{common?, server?, client?}` options mapping.

        Raises:
            ValueError: If options hold keys other than the scope names
        """
        unknown = [str(key) for key in (options or {}) if key not in SCOPES]
        if unknown:
            raise ValueError(
                f"Unknown configuration scope(s): {', '.join(unknown)}. "
                f"Expected one of: {', '.join(SCOPES)}"
            )
        for name in SCOPES:
            if options and options.get(name):
                self.merge_scope(name, options[name])

    def compute_effective(self, environment: str) -> Dict[str, Any]:
        """Compute the effective configuration for one environment.

        Args:
            environment: 'server' or 'client'

        Returns:
            Dict with `models`, `connections` and `modelDefaults` keys
        """
        self._check_scope(environment, ENVIRONMENTS)
        effective = deep_merge(self.scopes['common'], self.scopes[environment])
        effective.setdefault('models', {})
        effective.setdefault('connections', {})
        effective.setdefault('modelDefaults', {})
        return effective
