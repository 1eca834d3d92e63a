"""
Deployment target selection from scanned project metadata.
"""

from .metadata import ProjectMetadata, normalize_language
from .plan import TargetDecision, SIMPLEST_FIRST, SUPPORTED_TARGETS
from .rules import DEFAULT_POLICY, eb_solution_stack
from .select import classify, is_deployable

__all__ = [
    "ProjectMetadata",
    "normalize_language",
    "TargetDecision",
    "SIMPLEST_FIRST",
    "SUPPORTED_TARGETS",
    "DEFAULT_POLICY",
    "eb_solution_stack",
    "classify",
    "is_deployable",
]
