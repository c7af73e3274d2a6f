from __future__ import annotations

from pydantic import BaseModel, Field

from .rollout import CanaryStrategy, Rollout, TraefikTrafficRouting, TrafficRouting


class ReconcileRequest(BaseModel):
    ingress: str = Field(..., description="Ingress managed by Traefik")
    stable_service: str = Field(..., description="Service receiving stable traffic")
    canary_service: str = Field(..., description="Service receiving canary traffic")
    service_port: int | str = Field(..., description="Canary backend port (number or name)")
    root_service: str = Field("", description="Overrides stable_service as the backend to split")
    desired_weight: int = Field(..., ge=0, le=100, description="Canary weight (percentage)")

    def to_rollout(self, namespace: str, name: str) -> Rollout:
        return Rollout(
            name=name,
            namespace=namespace,
            canary=CanaryStrategy(
                stable_service=self.stable_service,
                canary_service=self.canary_service,
                traffic_routing=TrafficRouting(
                    traefik=TraefikTrafficRouting(
                        ingress=self.ingress,
                        service_port=self.service_port,
                        root_service=self.root_service,
                    )
                ),
            ),
        )


class ReconcileResponse(BaseModel):
    rollout: str
    ingress: str
    type: str
    desired_weight: int
