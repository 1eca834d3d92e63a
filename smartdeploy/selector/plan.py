from dataclasses import dataclass, field
from typing import Dict, List

AMPLIFY = "amplify"
ELASTIC_BEANSTALK = "elastic-beanstalk"
CLOUD_RUN = "cloud-run"
ECS = "ecs"
EC2 = "ec2"

# Simplest first; the first compatible target wins.
SIMPLEST_FIRST = [AMPLIFY, ELASTIC_BEANSTALK, CLOUD_RUN, ECS, EC2]

SUPPORTED_TARGETS = set(SIMPLEST_FIRST)

TARGET_LABELS = {
    AMPLIFY: "AWS Amplify (static/frontend)",
    ELASTIC_BEANSTALK: "AWS Elastic Beanstalk",
    CLOUD_RUN: "Google Cloud Run",
    ECS: "AWS ECS Fargate",
    EC2: "AWS EC2",
}

# Keys used by the scanner's service_compatibility map.
COMPATIBILITY_KEYS = {
    AMPLIFY: "amplify",
    ELASTIC_BEANSTALK: "elastic_beanstalk",
    CLOUD_RUN: "cloud_run",
    ECS: "ecs",
    EC2: "ec2",
}


@dataclass
class TargetDecision:
    target: str
    reason: str
    warnings: List[str] = field(default_factory=list)

    def to_record_fields(self) -> Dict[str, str]:
        """Fields copied into a deployment record that this decision annotates."""
        return {
            "deploymentTarget": self.target,
            "deployment_target_reason": self.reason,
        }

    def to_dict(self) -> Dict[str, object]:
        return {"target": self.target, "reason": self.reason, "warnings": list(self.warnings)}
