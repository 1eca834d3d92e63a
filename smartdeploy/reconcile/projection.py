"""
Persistable projection of a deployment config draft.
"""

import json
from typing import Any, Dict, Optional

# DeployConfig fields that belong in the stored record. Anything else on a
# draft (file handles, form state, embedded artifacts) is never persisted.
PERSISTABLE_FIELDS = (
    "id",
    "url",
    "branch",
    "commitSha",
    "use_custom_dockerfile",
    "env_vars",
    "deployUrl",
    "custom_url",
    "service_name",
    "status",
    "first_deployment",
    "last_deployment",
    "revision",
    "core_deployment_info",
    "features_infrastructure",
    "final_notes",
    "cloudProvider",
    "deploymentTarget",
    "deployment_target_reason",
    "awsRegion",
    "ec2",
    "ecs",
    "amplify",
    "elasticBeanstalk",
    "cloudRun",
)


def normalize_env_vars(env_vars: str) -> str:
    """Collapse .env style lines into the stored KEY=VALUE,KEY=VALUE form."""
    lines = (line.strip() for line in env_vars.split("\n"))
    return ",".join(line for line in lines if line and not line.startswith("#"))


def persistable_projection(draft: Dict[str, Any]) -> Dict[str, Any]:
    projection = {}
    for key in PERSISTABLE_FIELDS:
        value = draft.get(key)
        if value is None:
            continue
        if key == "env_vars" and isinstance(value, str):
            value = normalize_env_vars(value)
        projection[key] = value
    return projection


def serialize(projection: Dict[str, Any]) -> str:
    """Canonical serialization; equal projections always serialize identically."""
    return json.dumps(projection, sort_keys=True, separators=(",", ":"), default=str)


def has_changed(draft: Dict[str, Any], snapshot: Optional[str]) -> bool:
    """True if the draft's persistable projection differs from the last emitted snapshot."""
    return serialize(persistable_projection(draft)) != snapshot
