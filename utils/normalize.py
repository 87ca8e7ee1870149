"""
==================================================
Normalization helpers for configuration structures.
==================================================

Small pure functions shared by the config merger, the ORM builder, the
registry and the state transfer:

    - read_field: read a key from a mapping or an attribute from an object
    - ensure_identity_mapping: list-or-mapping → identity-keyed dict
    - normalize_model_definitions: same, for model definitions (lowercased)
    - deep_merge: recursive dict merge, later values winning
    - to_serializable: strip callables and non-JSON values (the latter logged)

Example:
    >>> from utils.normalize import deep_merge, ensure_identity_mapping
    >>>
    >>> deep_merge({'a': {'x': 1}}, {'a': {'y': 2}})
    {'a': {'x': 1, 'y': 2}}
    >>> ensure_identity_mapping([{'identity': 'memory'}])
    {'memory': {'identity': 'memory'}}
"""

from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, Optional, Union

from core.logger import get_logger

logger = get_logger(__name__)

_MISSING = object()

JSON_SCALARS = (str, int, float, bool, type(None))


def read_field(entry: Any, *names: str, default: Any = None) -> Any:
    """Read the first present field from a mapping or an object.

    Args:
        entry: Mapping or object to read from
        *names: Candidate key/attribute names, tried in order
        default: Value returned when no candidate is present

    Returns:
        The first non-None value found, or default

    Example:
        >>> read_field({'globalId': 'User'}, 'global_id', 'globalId')
        'User'
    """
    for name in names:
        if isinstance(entry, Mapping):
            value = entry.get(name, _MISSING)
        else:
            value = getattr(entry, name, _MISSING)
        if value is not _MISSING and value is not None:
            return value
    return default


def _iter_items(items: Union[Mapping, Iterable, None]) -> Iterable:
    if items is None:
        return []
    if isinstance(items, Mapping):
        return items.values()
    return items


def ensure_identity_mapping(
    items: Union[Mapping, Iterable, None],
    on_missing: Optional[Callable[[Any], None]] = None
) -> Dict[str, Any]:
    """Index a list or mapping of items by their `identity`.

    Args:
        items: An iterable of items, or a mapping whose values are items
        on_missing: Called with any item lacking an identity; expected to
            raise. If omitted, such items are skipped.

    Returns:
        Dict mapping identity → item, in input order (later items win)
    """
    indexed = {}
    for item in _iter_items(items):
        identity = read_field(item, 'identity')
        if not identity:
            if on_missing is not None:
                on_missing(item)
            continue
        indexed[identity] = item
    return indexed


def normalize_model_definitions(
    models: Union[Mapping, Iterable, None],
    on_missing: Optional[Callable[[Any], None]] = None
) -> Dict[str, Dict[str, Any]]:
    """Normalize model definitions to a lowercase identity-keyed dict.

    Mapping keys are used as the identity of definitions that omit one.
    Each definition is shallow-copied with its `identity` lowercased.

    Args:
        models: List of definitions or mapping of key → definition
        on_missing: Called with any definition that has no identity at all

    Returns:
        Dict mapping lowercase identity → definition copy
    """
    if models is None:
        return {}

    if isinstance(models, Mapping):
        pairs = list(models.items())
    else:
        pairs = [(None, definition) for definition in models]

    normalized = {}
    for key, definition in pairs:
        identity = read_field(definition, 'identity') or key
        if not identity:
            if on_missing is not None:
                on_missing(definition)
            continue
        identity = str(identity).lower()
        normalized[identity] = {**definition, 'identity': identity}
    return normalized


def deep_merge(base: Optional[Mapping], override: Optional[Mapping]) -> Dict[str, Any]:
    """Recursively merge two mappings into a new dict.

    Mappings are merged key by key; every other value (scalars, lists,
    callables) from `override` replaces the value in `base` wholesale.
    Neither input is mutated.

    Args:
        base: Mapping providing default values
        override: Mapping whose values win on conflict

    Returns:
        New merged dict
    """
    merged: Dict[str, Any] = {}
    for source in (base or {}, override or {}):
        for key, value in source.items():
            current = merged.get(key)
            if isinstance(value, Mapping):
                merged[key] = deep_merge(current if isinstance(current, Mapping) else None, value)
            elif isinstance(value, list):
                merged[key] = list(value)
            else:
                merged[key] = value
    return merged


def to_serializable(value: Any, path: str = '') -> Any:
    """Return a JSON-serializable copy of a configuration structure.

    Callables are dropped silently; any other value JSON cannot represent
    (datetime, Decimal, sets, ...) is dropped with a warning naming its key
    path. Tuples become lists; mapping keys become strings.

    Args:
        value: Configuration structure to copy
        path: Dotted key path of `value`, used in warnings

    Example:
        >>> to_serializable({'hook': print, 'size': 3})
        {'size': 3}
    """
    if isinstance(value, Mapping):
        result = {}
        for key, item in value.items():
            converted = to_serializable(item, f"{path}.{key}" if path else str(key))
            if converted is not _MISSING:
                result[str(key)] = converted
        return result
    if isinstance(value, (list, tuple)):
        items = (to_serializable(item, f"{path}[{index}]") for index, item in enumerate(value))
        return [item for item in items if item is not _MISSING]
    if isinstance(value, JSON_SCALARS):
        return value
    if not callable(value):
        logger.warning(
            f"Dropping '{path or '<root>'}' from serialized state: "
            f"{type(value).__name__} is not JSON-serializable"
        )
    return _MISSING
