import base64

import pytest
from fastapi.testclient import TestClient

import main
from trr.settings import Settings
from trr.store import InMemoryIngressStore


WEIGHTS_KEY = "traefik.ingress.kubernetes.io/service-weights"


def _basic_auth(user: str, password: str) -> dict:
    token = base64.b64encode(f"{user}:{password}".encode()).decode()
    return {"Authorization": f"Basic {token}"}


AUTH = _basic_auth("admin", "s3cret")


def _ingress():
    return {
        "metadata": {"name": "web", "namespace": "default", "annotations": {}},
        "spec": {"rules": [{"http": {"paths": [{"backend": {"serviceName": "web-stable", "servicePort": 80}}]}}]},
    }


def _payload(weight=10, **overrides):
    body = {
        "ingress": "web",
        "stable_service": "web-stable",
        "canary_service": "web-canary",
        "service_port": 80,
        "desired_weight": weight,
    }
    body.update(overrides)
    return body


@pytest.fixture
def store():
    return InMemoryIngressStore([_ingress()])


@pytest.fixture
def client(store, recorder):
    app = main.create_app(store=store, recorder=recorder, auth_settings=Settings(admin_password="s3cret"))
    with TestClient(app) as c:
        yield c


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "healthy"}


def test_reconcile_requires_basic_auth(client, store):
    r = client.post("/rollouts/default/web/weight", json=_payload())
    assert r.status_code == 401
    r = client.post("/rollouts/default/web/weight", json=_payload(), headers=_basic_auth("admin", "wrong"))
    assert r.status_code == 401
    assert store.actions == []


def test_reconcile_refused_without_configured_password(store, recorder):
    app = main.create_app(store=store, recorder=recorder, auth_settings=Settings(admin_password=None))
    with TestClient(app) as c:
        r = c.post("/rollouts/default/web/weight", json=_payload(), headers=AUTH)
    assert r.status_code == 401


def test_reconcile_patches_once(client, store, recorder):
    r = client.post("/rollouts/default/web/weight", json=_payload(10), headers=AUTH)
    assert r.status_code == 200
    assert r.json() == {"rollout": "web", "ingress": "web", "type": "Traefik", "desired_weight": 10}
    assert len(store.actions) == 1

    r = client.post("/rollouts/default/web/weight", json=_payload(10), headers=AUTH)
    assert r.status_code == 200
    assert len(store.actions) == 1
    assert len(recorder.events) == 1

    r = client.get("/ingresses/default/web")
    assert r.status_code == 200
    body = r.json()
    assert body["annotations"][WEIGHTS_KEY] == "|\nweb-canary: 10%"
    assert [p["backend"]["serviceName"] for p in body["rules"][0]["http"]["paths"]] == ["web-stable", "web-canary"]


def test_reconcile_named_port(client, store):
    r = client.post("/rollouts/default/web/weight", json=_payload(5, service_port="http"), headers=AUTH)
    assert r.status_code == 200
    paths = store.raw("default", "web")["spec"]["rules"][0]["http"]["paths"]
    assert paths[1]["backend"] == {"serviceName": "web-canary", "servicePort": "http"}


def test_reconcile_error_mapping(client, store):
    r = client.post("/rollouts/default/web/weight", json=_payload(ingress="missing"), headers=AUTH)
    assert r.status_code == 404

    r = client.post("/rollouts/default/web/weight", json=_payload(stable_service="nope"), headers=AUTH)
    assert r.status_code == 422
    assert "nope" in r.json()["detail"]

    r = client.post("/rollouts/default/web/weight", json=_payload(101), headers=AUTH)
    assert r.status_code == 422
    assert store.actions == []


def test_get_missing_ingress(client):
    assert client.get("/ingresses/default/missing").status_code == 404


def test_events_endpoint(client):
    client.post("/rollouts/default/web/weight", json=_payload(stable_service="nope"), headers=AUTH)
    r = client.get("/events", params={"rollout": "web"})
    assert r.status_code == 200
    assert any("nope" in e["message"] and e["level"] == "ERROR" for e in r.json())


def test_auth_settings_only_cover_credentials(store, recorder):
    auth = Settings(admin_password="s3cret", traefik_annotation_prefix="other.example.io")
    app = main.create_app(store=store, recorder=recorder, auth_settings=auth)
    with TestClient(app) as c:
        r = c.post("/rollouts/default/web/weight", json=_payload(10), headers=AUTH)
    assert r.status_code == 200
    annotations = store.raw("default", "web")["metadata"]["annotations"]
    assert annotations == {WEIGHTS_KEY: "|\nweb-canary: 10%"}
