from __future__ import annotations

import copy
from dataclasses import dataclass, replace
from typing import Protocol

from . import db
from .diff import create_two_way_merge_patch
from .errors import Misconfigured, PatchError
from .events import EVENT_TYPE_NORMAL
from .ingress import (
    Ingress,
    IngressPath,
    IngressRule,
    has_rule_with_service,
    rules_to_list,
    service_weights_key,
    service_weights_value,
)
from .rollout import Rollout, traefik_weight_spec
from .store import IngressGetter, IngressPatcher


# Type holds this controller type
TYPE = "Traefik"


class Recorder(Protocol):
    def event(self, rollout: Rollout, event_type: str, reason: str, message: str) -> None: ...


@dataclass(frozen=True)
class ReconcilerConfig:
    rollout: Rollout
    lister: IngressGetter
    client: IngressPatcher
    recorder: Recorder


class Reconciler:
    """Brings a Traefik Ingress to the desired stable/canary split."""

    def __init__(self, cfg: ReconcilerConfig):
        self.cfg = cfg

    def type(self) -> str:
        return TYPE

    def _log(self, level: str, message: str, ingress: str | None = None) -> None:
        db.log_event(level, message, rollout=self.cfg.rollout.name, ingress=ingress)

    def reconcile(self, desired_weight: int) -> None:
        desired_weight = int(desired_weight)
        if not 0 <= desired_weight <= 100:
            raise ValueError(f"desired weight must be within 0..100, got {desired_weight}")

        rollout = self.cfg.rollout
        routing = rollout.canary.traffic_routing
        if routing is None or routing.traefik is None:
            raise Misconfigured(f"rollout `{rollout.name}` has no Traefik traffic routing configured")
        ingress_name = routing.traefik.ingress
        spec = traefik_weight_spec(rollout, desired_weight)

        ingress = self.cfg.lister.get(rollout.namespace, ingress_name)
        if not has_rule_with_service(ingress, spec.action_service):
            raise Misconfigured(f"ingress does not have service `{spec.action_service}` in rules", ingress=ingress_name)

        desired_annotations = get_desired_annotations(ingress, spec.canary_service, spec.desired_weight)
        desired_rules = get_desired_rules(ingress, spec.action_service, spec.canary_service, spec.canary_port)

        patch, modified = calculate_patch(ingress, desired_annotations, desired_rules)
        if not modified:
            self._log("INFO", "no changes to the Traefik Ingress", ingress=ingress_name)
            return

        self._log("DEBUG", f"applying Traefik Ingress patch: {patch.decode('utf-8')}", ingress=ingress_name)
        self._log("INFO", f"updating Traefik ingress (desiredWeight={desired_weight})", ingress=ingress_name)
        try:
            self.cfg.client.patch(ingress.namespace, ingress.name, patch)
        except PatchError as e:
            self._log("ERROR", f"error patching traefik ingress: {e}", ingress=ingress_name)
            raise type(e)(f"error patching traefik ingress `{ingress_name}`: {e}", ingress=ingress_name) from e

        self.cfg.recorder.event(
            rollout,
            EVENT_TYPE_NORMAL,
            "PatchingTraefikIngress",
            f"Updating Ingress `{ingress_name}` to desiredWeight '{desired_weight}'",
        )


def calculate_patch(
    current: Ingress,
    desired_annotations: dict[str, str],
    desired_rules: tuple[IngressRule, ...],
) -> tuple[bytes, bool]:
    # Only annotations and rules take part in the comparison.
    return create_two_way_merge_patch(
        {"metadata": {"annotations": dict(current.annotations)}, "spec": {"rules": current.rules_to_list()}},
        {"metadata": {"annotations": dict(desired_annotations)}, "spec": {"rules": rules_to_list(desired_rules)}},
    )


def get_desired_annotations(current: Ingress, canary_service: str, desired_weight: int) -> dict[str, str]:
    desired = dict(current.annotations)
    desired[service_weights_key()] = service_weights_value(canary_service, desired_weight)
    return desired


def _canary_path_index(paths: list[IngressPath], canary_service: str, path: str, claimed: set[int]) -> int | None:
    for i, p in enumerate(paths):
        if i in claimed:
            continue
        if p.backend.service_name == canary_service and p.path == path:
            return i
    return None


def get_desired_rules(
    current: Ingress,
    action_service: str,
    canary_service: str,
    port: int | str,
) -> tuple[IngressRule, ...]:
    """Pair every path routed to ``action_service`` with a canary path.

    An existing canary path for the same path string is updated in place;
    otherwise the canary path is appended after the rule's original paths.
    """
    rules = copy.deepcopy(current.rules)
    if canary_service == action_service:
        return rules

    desired: list[IngressRule] = []
    for rule in rules:
        if rule.paths is None:
            desired.append(rule)
            continue
        paths = list(rule.paths)
        claimed: set[int] = set()
        for p in rule.paths:
            if p.backend.service_name != action_service:
                continue
            canary_path = replace(
                copy.deepcopy(p),
                backend=replace(copy.deepcopy(p.backend), service_name=canary_service, service_port=port),
            )
            idx = _canary_path_index(paths, canary_service, p.path, claimed)
            if idx is None:
                paths.append(canary_path)
                idx = len(paths) - 1
            else:
                paths[idx] = canary_path
            claimed.add(idx)
        desired.append(replace(rule, paths=tuple(paths)))
    return tuple(desired)
