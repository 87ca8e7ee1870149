"""
===============================================
Registry of live models by identity and globalId.
===============================================

Every live model is reachable under its identity and, when it has one,
under its globalId. Both keys point at the same object.

In strict mode a model without identity is rejected with
InvalidModelError. In permissive mode it is indexed under whatever key it
has (its globalId) or, with neither, accepted but unreachable.

Example:
    >>> registry = ModelRegistry()
    >>> registry.set([user_collection])
    >>> registry.get('user') is registry.get('User')
    True
"""

from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Union

from core.errors import InvalidModelError, UnknownIdentityError
from core.logger import get_logger
from utils.normalize import read_field

logger = get_logger(__name__)


def _model_keys(model: Any) -> List[str]:
    keys = []
    for value in (read_field(model, 'identity'), read_field(model, 'global_id', 'globalId')):
        if value and value not in keys:
            keys.append(value)
    return keys


class ModelRegistry:
    """Two-key index of live models.

    Attributes:
        strict: If True, models without identity are rejected
    """

    def __init__(self, strict: bool = True):
        self.strict = strict
        self._index: Dict[str, Any] = {}

    def set(self, models: Union[Mapping[str, Any], Iterable[Any], None]) -> None:
        """Index live models, overwriting entries with the same keys.

        The batch is validated before any entry is written.

        Args:
            models: List of models or mapping whose values are models

        Raises:
            InvalidModelError: In strict mode, if a model has no identity
        """
        entries = list(models.values()) if isinstance(models, Mapping) else list(models or [])

        if self.strict:
            for model in entries:
                if not read_field(model, 'identity'):
                    raise InvalidModelError(f"Model {model!r} does not expose an identity")

        index = dict(self._index)
        for model in entries:
            keys = _model_keys(model)
            if not keys:
                logger.warning(f"Model {model!r} has neither identity nor globalId and cannot be looked up")
            for key in keys:
                index[key] = model
        self._index = index

    def get(self, key: str, default: Any = None) -> Any:
        """Return the model registered under `key`, or `default`."""
        return self._index.get(key, default)

    def has(self, key: str) -> bool:
        return key in self._index

    def clear(self) -> None:
        """Remove every model."""
        self._index = {}

    def identities(self) -> List[str]:
        """Identities of the registered models, in registration order."""
        seen = []
        for model in self._index.values():
            identity = read_field(model, 'identity')
            if identity and identity not in seen:
                seen.append(identity)
        return seen

    def as_dict(self) -> Dict[str, Any]:
        """Copy of the index (identity and globalId keys)."""
        return dict(self._index)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def __getitem__(self, key: str) -> Any:
        try:
            return self._index[key]
        except KeyError:
            raise UnknownIdentityError(key) from None

    def __getattr__(self, key: str) -> Any:
        # Attribute access (models.user) for action handlers
        if key.startswith('_'):
            raise AttributeError(key)
        try:
            return self._index[key]
        except KeyError:
            raise AttributeError(f"No model registered for '{key}'") from None

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._index))

    def __len__(self) -> int:
        return len(self._index)

    def __bool__(self) -> bool:
        return bool(self._index)

    def __repr__(self) -> str:
        return f"<ModelRegistry {self.identities()}>"
