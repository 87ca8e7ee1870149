"""
Association metadata derived from model attributes.

Each attribute declaring a `model` or `collection` yields one descriptor,
in declaration order. Anything else, including malformed declarations and
engine-injected fields such as the primary key, is skipped.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Optional


@dataclass(frozen=True)
class AssociationDescriptor:
    """One relationship of a model.

    Attributes:
        alias: The attribute name
        type: 'model' or 'collection'
        model: Target identity of a 'model' association
        collection: Target identity of a 'collection' association
        via: Attribute on the target linking back, if declared
    """

    alias: str
    type: str
    model: Optional[str] = None
    collection: Optional[str] = None
    via: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Dict form without unset keys."""
        return {key: value for key, value in asdict(self).items() if value is not None}


def derive_associations(attributes: Optional[Mapping[str, Any]]) -> List[AssociationDescriptor]:
    """Derive association descriptors from a model's attributes.

    Args:
        attributes: Attribute name → declaration

    Returns:
        Descriptors in attribute declaration order

    Example:
        >>> derive_associations({
        ...     'owner': {'model': 'user'},
        ...     'tags': {'collection': 'tag', 'via': 'posts'},
        ...     'title': {'type': 'string'},
        ... })
        [AssociationDescriptor(alias='owner', type='model', model='user', collection=None, via=None),
         AssociationDescriptor(alias='tags', type='collection', model=None, collection='tag', via='posts')]
    """
    associations = []
    for name, attr_def in (attributes or {}).items():
        if not isinstance(attr_def, Mapping):
            continue
        model, collection = attr_def.get('model'), attr_def.get('collection')
        if not (model or collection):
            continue
        associations.append(AssociationDescriptor(
            alias=name,
            type='model' if model else 'collection',
            model=model or None,
            collection=collection or None,
            via=attr_def.get('via') or None
        ))
    return associations
