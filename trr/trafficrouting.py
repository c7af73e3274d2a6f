from __future__ import annotations

from typing import Callable, Protocol

from . import traefik
from .errors import Misconfigured
from .rollout import Rollout
from .store import IngressGetter, IngressPatcher


class TrafficRoutingReconciler(Protocol):
    def type(self) -> str: ...

    def reconcile(self, desired_weight: int) -> None: ...


Factory = Callable[[Rollout, IngressGetter, IngressPatcher, traefik.Recorder], TrafficRoutingReconciler]


def _new_traefik(
    rollout: Rollout,
    lister: IngressGetter,
    client: IngressPatcher,
    recorder: traefik.Recorder,
) -> TrafficRoutingReconciler:
    return traefik.Reconciler(traefik.ReconcilerConfig(rollout=rollout, lister=lister, client=client, recorder=recorder))


RECONCILERS: dict[str, Factory] = {
    traefik.TYPE: _new_traefik,
}


def routing_type(rollout: Rollout) -> str | None:
    routing = rollout.canary.traffic_routing
    if routing is None:
        return None
    if routing.traefik is not None:
        return traefik.TYPE
    return None


def new_traffic_routing_reconciler(
    rollout: Rollout,
    lister: IngressGetter,
    client: IngressPatcher,
    recorder: traefik.Recorder,
) -> TrafficRoutingReconciler:
    """Pick the reconciler matching the rollout's configured traffic routing."""
    kind = routing_type(rollout)
    factory = RECONCILERS.get(kind) if kind else None
    if factory is None:
        raise Misconfigured(f"rollout `{rollout.name}` has no supported traffic routing configured")
    return factory(rollout, lister, client, recorder)
