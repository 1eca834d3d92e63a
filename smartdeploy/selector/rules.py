from typing import Callable, Dict, List, Optional, Tuple

from .metadata import ProjectMetadata
from .plan import (
    AMPLIFY, EC2, ECS, ELASTIC_BEANSTALK, COMPATIBILITY_KEYS, SIMPLEST_FIRST,
    TARGET_LABELS, TargetDecision,
)

# Elastic Beanstalk solution stacks per supported language
EB_SOLUTION_STACKS: Dict[str, str] = {
    "node": "64bit Amazon Linux 2023 v6.7.2 running Node.js 20",
    "python": "64bit Amazon Linux 2023 v4.9.1 running Python 3.11",
    "java": "64bit Amazon Linux 2023 v5.9.2 running Corretto 17",
    "go": "64bit Amazon Linux 2023 v3.14.2 running Go 1",
    "dotnet": "64bit Windows Server 2022 v2.22.1 running IIS 10.0",
    "php": "64bit Amazon Linux 2023 v4.0.0 running PHP 8.2",
    "ruby": "64bit Amazon Linux 2023 v4.0.0 running Ruby 3.2",
}

STATIC_SITE_REASON = (
    "Static frontend app (SPA). AWS Amplify Hosting is perfect for static sites like "
    "Create React App, Vite, and Next.js static exports."
)

# A rule returns (target, reason) when it matches; it may append to warnings either way.
Rule = Callable[[ProjectMetadata, List[str]], Optional[Tuple[str, str]]]


def eb_solution_stack(language: str) -> Optional[str]:
    return EB_SOLUTION_STACKS.get(language)


def select_simplest_compatible(metadata: ProjectMetadata, warnings: List[str]) -> Optional[TargetDecision]:
    compat = metadata.service_compatibility or {}
    for target in SIMPLEST_FIRST:
        if compat.get(COMPATIBILITY_KEYS[target]) is not True:
            continue
        return TargetDecision(
            target=target,
            reason=f"Compatible with {TARGET_LABELS[target]}; chosen as the simplest compatible target for this project.",
            warnings=warnings,
        )

    # A static SPA the scan failed to mark as amplify-compatible still belongs on Amplify
    if metadata.is_node_static_site and (metadata.is_static_spa or metadata.nextjs_static_export):
        warnings.append("Detected static SPA. Using Amplify for optimal static hosting.")
        return TargetDecision(target=AMPLIFY, reason=STATIC_SITE_REASON, warnings=warnings)
    return None


def _overridden_signals(metadata: ProjectMetadata, cause: str) -> List[str]:
    """Warnings for simpler-looking signals an ECS rule is overriding."""
    notes = []
    if metadata.has_dockerfile:
        notes.append(f"Dockerfile present but ECS selected due to {cause}")
    if metadata.is_node_static_site:
        notes.append(f"Static site shape detected but ECS selected due to {cause}")
    elif metadata.is_eb_language and not metadata.has_dockerfile:
        notes.append(
            f"{metadata.normalized_language} is supported by Elastic Beanstalk but ECS selected due to {cause}"
        )
    return notes


def rule_multi_service(metadata: ProjectMetadata, warnings: List[str]) -> Optional[Tuple[str, str]]:
    if not metadata.multi_service:
        return None
    warnings.extend(_overridden_signals(metadata, "multi-service topology"))
    count = len(metadata.monorepo_services)
    detail = f" with {count} services" if count > 1 else ""
    return ECS, f"Multi-service app{detail}. ECS Fargate provides container orchestration for multiple services."


def rule_database(metadata: ProjectMetadata, warnings: List[str]) -> Optional[Tuple[str, str]]:
    if not metadata.has_database:
        return None
    warnings.append("Database detected. AWS RDS can be provisioned.")
    warnings.extend(_overridden_signals(metadata, "database requirement"))
    return ECS, "Application uses a database. ECS Fargate with RDS provides managed database connectivity."


def rule_websockets(metadata: ProjectMetadata, warnings: List[str]) -> Optional[Tuple[str, str]]:
    if not metadata.uses_websockets:
        return None
    warnings.extend(_overridden_signals(metadata, "WebSocket usage"))
    return ECS, "App uses WebSockets. ECS Fargate with ALB supports WebSocket connections."


def rule_static_site(metadata: ProjectMetadata, warnings: List[str]) -> Optional[Tuple[str, str]]:
    if not metadata.is_node_static_site:
        return None
    return AMPLIFY, STATIC_SITE_REASON


def rule_nextjs_server(metadata: ProjectMetadata, warnings: List[str]) -> Optional[Tuple[str, str]]:
    if metadata.normalized_language != "node" or not metadata.is_nextjs or metadata.has_dockerfile:
        return None
    warnings.extend(_overridden_signals(metadata, "Next.js server rendering"))
    return ECS, "Next.js app. ECS Fargate is used for Next.js deployments."


def rule_eb_language(metadata: ProjectMetadata, warnings: List[str]) -> Optional[Tuple[str, str]]:
    if not metadata.is_eb_language or metadata.has_dockerfile:
        return None
    language = metadata.normalized_language
    return ELASTIC_BEANSTALK, f"Simple {language} app. Elastic Beanstalk for easy deployment and auto-scaling."


def rule_dockerfile(metadata: ProjectMetadata, warnings: List[str]) -> Optional[Tuple[str, str]]:
    if not metadata.has_dockerfile:
        return None
    if metadata.is_eb_language:
        warnings.append(
            f"{metadata.normalized_language} is supported by Elastic Beanstalk but the custom Dockerfile "
            "runs on EC2 instead"
        )
    return EC2, "Dockerfile present. EC2 runs the container with full control over the host."


def rule_rust(metadata: ProjectMetadata, warnings: List[str]) -> Optional[Tuple[str, str]]:
    if metadata.normalized_language != "rust":
        return None
    warnings.append("Rust is not supported by Elastic Beanstalk. A Dockerfile may be generated.")
    return ECS, "Rust app requires containerization. ECS Fargate will handle the deployment."


# Evaluated top to bottom, first match wins. Callers may pass their own ordering.
DEFAULT_POLICY: List[Rule] = [
    rule_multi_service,
    rule_database,
    rule_websockets,
    rule_static_site,
    rule_nextjs_server,
    rule_eb_language,
    rule_dockerfile,
    rule_rust,
]


def apply_policy(metadata: ProjectMetadata, policy: List[Rule], warnings: List[str]) -> Optional[TargetDecision]:
    for rule in policy:
        # Rules only keep their warnings when they match
        scratch: List[str] = []
        matched = rule(metadata, scratch)
        if matched:
            target, reason = matched
            warnings.extend(scratch)
            return TargetDecision(target=target, reason=reason, warnings=warnings)
    return None


def default_decision(metadata: ProjectMetadata, warnings: List[str]) -> TargetDecision:
    if not metadata.normalized_language:
        warnings.append("Could not detect language. EC2 provides maximum flexibility.")
    return TargetDecision(
        target=EC2,
        reason="Complex or unknown requirements. EC2 provides full control.",
        warnings=warnings,
    )
