from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TraefikTrafficRouting:
    ingress: str
    service_port: int | str
    # Overrides the stable service as the backend currently taking all traffic.
    root_service: str = ""


@dataclass(frozen=True)
class TrafficRouting:
    traefik: TraefikTrafficRouting | None = None


@dataclass(frozen=True)
class CanaryStrategy:
    stable_service: str
    canary_service: str
    traffic_routing: TrafficRouting | None = None


@dataclass(frozen=True)
class Rollout:
    name: str
    namespace: str
    canary: CanaryStrategy


@dataclass(frozen=True)
class WeightSpec:
    action_service: str
    canary_service: str
    canary_port: int | str
    desired_weight: int


def traefik_weight_spec(rollout: Rollout, desired_weight: int) -> WeightSpec:
    routing = rollout.canary.traffic_routing.traefik  # type: ignore[union-attr]
    action_service = routing.root_service or rollout.canary.stable_service
    return WeightSpec(
        action_service=action_service,
        canary_service=rollout.canary.canary_service,
        canary_port=routing.service_port,
        desired_weight=int(desired_weight),
    )
