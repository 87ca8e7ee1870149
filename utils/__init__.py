"""
==========================
Utility Functions Package.
==========================

Reusable helpers for normalizing configuration structures.

Modules:
    normalize: identity mappings, deep merge and serialization
"""

__version__ = "0.1.0"
__all__ = [
    'read_field',
    'ensure_identity_mapping',
    'normalize_model_definitions',
    'deep_merge',
    'to_serializable',
]

from .normalize import (
    deep_merge,
    ensure_identity_mapping,
    normalize_model_definitions,
    read_field,
    to_serializable,
)
