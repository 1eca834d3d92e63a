"""
Optimistic, debounced reconciliation of config drafts with the deployment record.
"""

from .projection import PERSISTABLE_FIELDS, has_changed, normalize_env_vars, persistable_projection, serialize
from .reconciler import ConfigReconciler
from .scheduler import Debouncer

__all__ = [
    "PERSISTABLE_FIELDS",
    "has_changed",
    "normalize_env_vars",
    "persistable_projection",
    "serialize",
    "ConfigReconciler",
    "Debouncer",
]
