from __future__ import annotations

import secrets
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from trr import db
from trr.api_models import ReconcileRequest, ReconcileResponse
from trr.errors import Misconfigured, NotFound, TrafficRoutingError, WriteConflict, WriteFailure
from trr.events import EventRecorder
from trr.settings import Settings, settings
from trr.store import KubeIngressClient
from trr.trafficrouting import new_traffic_routing_reconciler


security = HTTPBasic()


def _status_for(err: TrafficRoutingError) -> int:
    if isinstance(err, NotFound):
        return 404
    if isinstance(err, Misconfigured):
        return 422
    if isinstance(err, WriteConflict):
        return 409
    if isinstance(err, WriteFailure):
        return 502
    return 500


def create_app(store=None, recorder=None, auth_settings: Settings | None = None) -> FastAPI:
    """Build the API. ``store`` must provide both get() and patch().

    ``auth_settings`` only supplies the Basic auth credentials; the annotation
    prefix and the events DB path always come from the module-level settings.
    """
    cfg = auth_settings or settings
    store = store if store is not None else KubeIngressClient.from_settings()
    recorder = recorder if recorder is not None else EventRecorder()

    app = FastAPI(title="Traffic Routing Reconciler")

    def current_username(credentials: HTTPBasicCredentials = Depends(security)) -> str:
        ok = cfg.admin_password is not None and (
            secrets.compare_digest(credentials.username, cfg.admin_user)
            and secrets.compare_digest(credentials.password, cfg.admin_password)
        )
        if not ok:
            raise HTTPException(status_code=401, detail="Invalid credentials", headers={"WWW-Authenticate": "Basic"})
        return credentials.username

    @app.on_event("startup")
    def startup() -> None:
        db.init_db()

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "healthy"}

    @app.get("/ingresses/{namespace}/{name}")
    def get_ingress(namespace: str, name: str) -> dict[str, Any]:
        try:
            ing = store.get(namespace, name)
        except TrafficRoutingError as e:
            raise HTTPException(status_code=_status_for(e), detail=str(e))
        return {
            "namespace": ing.namespace,
            "name": ing.name,
            "resourceVersion": ing.resource_version,
            "annotations": ing.annotations,
            "rules": ing.rules_to_list(),
        }

    @app.post("/rollouts/{namespace}/{rollout}/weight", response_model=ReconcileResponse)
    def reconcile_weight(
        namespace: str,
        rollout: str,
        req: ReconcileRequest,
        username: str = Depends(current_username),
    ) -> ReconcileResponse:
        ro = req.to_rollout(namespace, rollout)
        try:
            reconciler = new_traffic_routing_reconciler(ro, store, store, recorder)
            reconciler.reconcile(req.desired_weight)
        except TrafficRoutingError as e:
            db.log_event("ERROR", f"reconcile requested by {username} failed: {e}", rollout=rollout, ingress=req.ingress)
            raise HTTPException(status_code=_status_for(e), detail=str(e))
        return ReconcileResponse(
            rollout=rollout,
            ingress=req.ingress,
            type=reconciler.type(),
            desired_weight=req.desired_weight,
        )

    @app.get("/events")
    def events(limit: int = 100, rollout: str | None = None) -> list[dict[str, Any]]:
        return db.latest_events(limit=max(1, min(1000, limit)), rollout=rollout)

    return app


app = create_app()
