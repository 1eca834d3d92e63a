from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


EB_SUPPORTED_LANGUAGES = ["node", "python", "java", "go", "dotnet", "php", "ruby"]

STATIC_SPA_FRAMEWORKS = ["vite", "angular", "vue", "svelte"]

_LANGUAGE_ALIASES = {
    "typescript": "node",
    "javascript": "node",
    "node": "node",
    "nodejs": "node",
    "python": "python",
    "java": "java",
    "go": "go",
    "golang": "go",
    "c#": "dotnet",
    "csharp": "dotnet",
    ".net": "dotnet",
    "dotnet": "dotnet",
    "php": "php",
    "ruby": "ruby",
    "rust": "rust",
}


def normalize_language(language: Optional[str], framework: Optional[str] = None) -> Optional[str]:
    """Map a scanner-reported language onto a runtime family, or None when unknown."""
    if language:
        lang = _LANGUAGE_ALIASES.get(language.lower().strip())
        if lang:
            return lang
    if framework and "next" in framework.lower():
        return "node"
    return None


@dataclass
class ProjectMetadata:
    # Core identity
    language: Optional[str] = None
    framework: Optional[str] = None

    # Execution
    install_cmd: Optional[str] = None
    build_cmd: Optional[str] = None
    run_cmd: Optional[str] = None
    workdir: Optional[str] = None
    port: Optional[int] = None

    # Features
    is_library: bool = False
    uses_mobile: bool = False
    uses_server: bool = False
    uses_websockets: bool = False
    uses_cron: bool = False
    requires_build_but_missing_cmd: bool = False

    # Topology hints
    monorepo_services: List[str] = field(default_factory=list)
    is_multi_service: bool = False
    has_database: bool = False
    has_dockerfile: bool = False
    nextjs_static_export: bool = False

    # Prior per-target analysis (e.g. from an AI scan), keyed amplify/elastic_beanstalk/cloud_run/ecs/ec2
    service_compatibility: Optional[Dict[str, Optional[bool]]] = None

    @property
    def normalized_language(self) -> Optional[str]:
        return normalize_language(self.language, self.framework)

    @property
    def multi_service(self) -> bool:
        return self.is_multi_service or len(self.monorepo_services) > 1

    @property
    def is_nextjs(self) -> bool:
        return bool(self.framework and re.search(r"next\.?js", self.framework, re.IGNORECASE))

    @property
    def is_static_spa(self) -> bool:
        """Node front-end framework that builds to static assets (CRA, Vite, Angular, Vue, Svelte)."""
        framework = (self.framework or "").lower()
        if "react" in framework and not self.is_nextjs:
            return True
        return any(name in framework for name in STATIC_SPA_FRAMEWORKS)

    @property
    def is_node_static_site(self) -> bool:
        """Node app with a build step and no server process."""
        if self.normalized_language != "node" or self.has_dockerfile:
            return False
        if not self.build_cmd or self.run_cmd:
            return False
        return not self.is_nextjs or self.nextjs_static_export

    @property
    def is_eb_language(self) -> bool:
        return self.normalized_language in EB_SUPPORTED_LANGUAGES

    @property
    def has_server_entry_point(self) -> bool:
        return self.uses_server or bool(self.run_cmd)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectMetadata":
        """
        Build metadata from either the flat shape or the scanner's nested shape.

        The nested shape groups fields under core_deployment_info,
        features_infrastructure, deployment_hints and service_compatibility.
        Flat keys win over nested ones when both are present.
        """
        if not isinstance(data, dict):
            raise ValueError(f"project metadata must be a mapping, got {type(data).__name__}")

        merged: Dict[str, Any] = {}
        for section in ("core_deployment_info", "features_infrastructure", "deployment_hints"):
            nested = data.get(section)
            if isinstance(nested, dict):
                merged.update(nested)
        merged.update({k: v for k, v in data.items() if not isinstance(v, dict) or k == "service_compatibility"})

        services = merged.get("monorepo_services") or merged.get("services") or []
        services = [s.get("name", "") if isinstance(s, dict) else str(s) for s in services]

        compat = merged.get("service_compatibility")
        if compat is not None and not isinstance(compat, dict):
            raise ValueError("service_compatibility must be a mapping of target -> bool")

        port = merged.get("port")
        return cls(
            language=merged.get("language") or None,
            framework=merged.get("framework") or None,
            install_cmd=merged.get("install_cmd") or None,
            build_cmd=merged.get("build_cmd") or None,
            run_cmd=merged.get("run_cmd") or None,
            workdir=merged.get("workdir") or None,
            port=int(port) if port not in (None, "") else None,
            is_library=bool(merged.get("is_library", False)),
            uses_mobile=bool(merged.get("uses_mobile", False)),
            uses_server=bool(merged.get("uses_server", False)),
            uses_websockets=bool(merged.get("uses_websockets", False)),
            uses_cron=bool(merged.get("uses_cron", False)),
            requires_build_but_missing_cmd=bool(merged.get("requires_build_but_missing_cmd", False)),
            monorepo_services=services,
            is_multi_service=bool(merged.get("is_multi_service", False)),
            has_database=bool(merged.get("has_database", False)),
            has_dockerfile=bool(merged.get("has_dockerfile", False)),
            nextjs_static_export=bool(merged.get("nextjs_static_export", False)),
            service_compatibility=dict(compat) if compat is not None else None,
        )
