import json

import cli


class _Resp:
    def __init__(self, payload, ok=True):
        self._payload = payload
        self.ok = ok

    def json(self):
        return self._payload


def test_reconcile_posts_weight(monkeypatch, capsys):
    seen = {}

    def fake_post(url, json=None, auth=None, timeout=None):
        seen.update(url=url, json=json, auth=auth)
        return _Resp({"rollout": "web", "desired_weight": 25})

    monkeypatch.setattr(cli.requests, "post", fake_post)
    rc = cli.main(
        [
            "--api", "http://trr:8000/",
            "--password", "pw",
            "reconcile",
            "--rollout", "web",
            "--ingress", "web-ing",
            "--stable-service", "web-stable",
            "--canary-service", "web-canary",
            "--service-port", "443",
            "--weight", "25",
        ]
    )
    assert rc == 0
    assert seen["url"] == "http://trr:8000/rollouts/default/web/weight"
    assert seen["auth"] == ("admin", "pw")
    assert seen["json"] == {
        "ingress": "web-ing",
        "stable_service": "web-stable",
        "canary_service": "web-canary",
        "service_port": 443,
        "root_service": "",
        "desired_weight": 25,
    }
    assert json.loads(capsys.readouterr().out)["desired_weight"] == 25


def test_reconcile_named_port_and_failure(monkeypatch):
    seen = {}

    def fake_post(url, json=None, auth=None, timeout=None):
        seen.update(json=json)
        return _Resp({"detail": "ingress does not have service `x` in rules"}, ok=False)

    monkeypatch.setattr(cli.requests, "post", fake_post)
    rc = cli.main(
        [
            "reconcile",
            "--rollout", "web",
            "--ingress", "web-ing",
            "--stable-service", "x",
            "--canary-service", "web-canary",
            "--service-port", "https",
            "--weight", "5",
        ]
    )
    assert rc == 1
    assert seen["json"]["service_port"] == "https"


def test_events(monkeypatch, capsys):
    def fake_get(url, params=None, timeout=None):
        assert url == "http://localhost:8000/events"
        assert params == {"limit": 5, "rollout": "web"}
        return _Resp([{"message": "hello"}])

    monkeypatch.setattr(cli.requests, "get", fake_get)
    assert cli.main(["events", "--limit", "5", "--rollout", "web"]) == 0
    assert json.loads(capsys.readouterr().out) == [{"message": "hello"}]


def test_ingress(monkeypatch, capsys):
    def fake_get(url, timeout=None):
        assert url == "http://localhost:8000/ingresses/prod/web"
        return _Resp({"name": "web", "annotations": {}, "rules": []})

    monkeypatch.setattr(cli.requests, "get", fake_get)
    assert cli.main(["ingress", "--namespace", "prod", "--name", "web"]) == 0
    assert json.loads(capsys.readouterr().out)["name"] == "web"


def test_ingress_not_found(monkeypatch):
    monkeypatch.setattr(cli.requests, "get", lambda url, timeout=None: _Resp({"detail": "not found"}, ok=False))
    assert cli.main(["ingress", "--name", "missing"]) == 1
