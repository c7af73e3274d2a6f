from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from .settings import settings


SERVICE_WEIGHTS_SUFFIX = "/service-weights"


def service_weights_key(prefix: str | None = None) -> str:
    """Annotation key Traefik reads the per-service traffic split from."""
    return f"{prefix or settings.traefik_annotation_prefix}{SERVICE_WEIGHTS_SUFFIX}"


def service_weights_value(canary_service: str, weight: int) -> str:
    return f"|\n{canary_service}: {int(weight)}%"


@dataclass(frozen=True)
class IngressBackend:
    service_name: str
    service_port: int | str
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IngressBackend:
        extra = {k: copy.deepcopy(v) for k, v in data.items() if k not in {"serviceName", "servicePort"}}
        return cls(service_name=data.get("serviceName", ""), service_port=data.get("servicePort", 0), extra=extra)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"serviceName": self.service_name, "servicePort": self.service_port}
        out.update(copy.deepcopy(self.extra))
        return out


@dataclass(frozen=True)
class IngressPath:
    backend: IngressBackend
    path: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IngressPath:
        extra = {k: copy.deepcopy(v) for k, v in data.items() if k not in {"path", "backend"}}
        return cls(
            backend=IngressBackend.from_dict(data.get("backend") or {}),
            path=data.get("path", ""),
            extra=extra,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.path:
            out["path"] = self.path
        out.update(copy.deepcopy(self.extra))
        out["backend"] = self.backend.to_dict()
        return out


@dataclass(frozen=True)
class IngressRule:
    """One Ingress rule.

    ``paths`` is None when the rule carries no ``http`` section. Everything
    besides ``host`` and ``http.paths`` is kept in ``extra`` and written back
    untouched.
    """

    host: str = ""
    paths: tuple[IngressPath, ...] | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IngressRule:
        extra = {k: copy.deepcopy(v) for k, v in data.items() if k not in {"host", "http"}}
        http = data.get("http")
        paths = None
        if http is not None:
            paths = tuple(IngressPath.from_dict(p) for p in http.get("paths") or [])
        return cls(host=data.get("host", ""), paths=paths, extra=extra)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.host:
            out["host"] = self.host
        out.update(copy.deepcopy(self.extra))
        if self.paths is not None:
            out["http"] = {"paths": [p.to_dict() for p in self.paths]}
        return out


@dataclass(frozen=True)
class Ingress:
    namespace: str
    name: str
    annotations: dict[str, str] = field(default_factory=dict)
    rules: tuple[IngressRule, ...] = ()
    resource_version: str = ""

    @classmethod
    def from_dict(cls, obj: dict[str, Any]) -> Ingress:
        meta = obj.get("metadata") or {}
        spec = obj.get("spec") or {}
        return cls(
            namespace=meta.get("namespace", "default"),
            name=meta.get("name", ""),
            annotations=dict(meta.get("annotations") or {}),
            rules=tuple(IngressRule.from_dict(r) for r in spec.get("rules") or []),
            resource_version=str(meta.get("resourceVersion", "")),
        )

    def rules_to_list(self) -> list[dict[str, Any]]:
        return rules_to_list(self.rules)


def rules_to_list(rules: tuple[IngressRule, ...] | list[IngressRule]) -> list[dict[str, Any]]:
    return [r.to_dict() for r in rules]


def has_rule_with_service(ingress: Ingress, service: str) -> bool:
    for rule in ingress.rules:
        for path in rule.paths or ():
            if path.backend.service_name == service:
                return True
    return False
