import logging
from typing import Any, Dict, List, Optional, Union

from .metadata import ProjectMetadata
from .plan import TargetDecision
from .rules import (
    DEFAULT_POLICY, Rule, apply_policy, default_decision, select_simplest_compatible,
)

logger = logging.getLogger(__name__)


def is_deployable(metadata: ProjectMetadata) -> bool:
    """False when there is no runnable service to deploy at all."""
    if metadata.is_library:
        return False
    if metadata.uses_mobile and not metadata.has_server_entry_point:
        return False
    return True


def classify(metadata: Union[ProjectMetadata, Dict[str, Any]],
             policy: Optional[List[Rule]] = None) -> Optional[TargetDecision]:
    """
    Decide which target a scanned project should be deployed to.

    Args:
        metadata: ProjectMetadata, or a raw scanner dict accepted by ProjectMetadata.from_dict
        policy: ordered fallback rules; DEFAULT_POLICY when omitted

    Returns:
        TargetDecision, or None when the project is not deployable
    """
    if isinstance(metadata, dict):
        metadata = ProjectMetadata.from_dict(metadata)

    if not is_deployable(metadata):
        logger.info("Project is not deployable (library or mobile-only without a server)")
        return None

    if not metadata.language and not metadata.normalized_language and not metadata.run_cmd \
            and not metadata.multi_service:
        # Likely an empty or docs-only repository; declared services still count
        logger.info("No language and no run command detected; nothing to deploy")
        return None

    warnings: List[str] = []
    if metadata.requires_build_but_missing_cmd:
        warnings.append("Project needs a build step but no build command was detected.")

    compat = metadata.service_compatibility
    if compat:
        if all(value is False for value in compat.values()):
            logger.info("Compatibility analysis reports no compatible target")
            return None
        decision = select_simplest_compatible(metadata, warnings)
        if decision:
            logger.info(f"Selected {decision.target} from compatibility analysis")
            return decision

    decision = apply_policy(metadata, policy if policy is not None else DEFAULT_POLICY, warnings)
    if decision:
        logger.info(f"Selected {decision.target}: {decision.reason}")
        return decision

    decision = default_decision(metadata, warnings)
    logger.debug(f"No rule matched; defaulting to {decision.target}")
    return decision
