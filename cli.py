from __future__ import annotations

import argparse
import json
import os
import sys

import requests


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def _port(raw: str) -> int | str:
    return int(raw) if raw.isdigit() else raw


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Traffic Routing Reconciler CLI")
    p.add_argument("--api", default="http://localhost:8000", help="API base URL")
    p.add_argument("--user", default=os.getenv("TRR_ADMIN_USER", "admin"))
    p.add_argument("--password", default=os.getenv("TRR_ADMIN_PASSWORD"))
    sub = p.add_subparsers(dest="cmd", required=True)

    s_ev = sub.add_parser("events", help="Show events")
    s_ev.add_argument("--limit", type=int, default=20)
    s_ev.add_argument("--rollout")

    s_ing = sub.add_parser("ingress", help="Show the annotations and rules of an Ingress")
    s_ing.add_argument("--namespace", default="default")
    s_ing.add_argument("--name", required=True)

    s_rec = sub.add_parser("reconcile", help="Set the canary weight on a Traefik Ingress")
    s_rec.add_argument("--namespace", default="default")
    s_rec.add_argument("--rollout", required=True)
    s_rec.add_argument("--ingress", required=True)
    s_rec.add_argument("--stable-service", required=True)
    s_rec.add_argument("--canary-service", required=True)
    s_rec.add_argument("--service-port", type=_port, required=True, help="Canary port number or name")
    s_rec.add_argument("--root-service", default="", help="Split this service instead of the stable one")
    s_rec.add_argument("--weight", type=int, required=True, help="Canary weight 0..100")

    args = p.parse_args(argv)

    base = args.api.rstrip("/")

    if args.cmd == "events":
        params = {"limit": args.limit}
        if args.rollout:
            params["rollout"] = args.rollout
        _print(requests.get(f"{base}/events", params=params, timeout=10).json())
        return 0

    if args.cmd == "ingress":
        r = requests.get(f"{base}/ingresses/{args.namespace}/{args.name}", timeout=10)
        _print(r.json())
        return 0 if r.ok else 1

    if args.cmd == "reconcile":
        payload = {
            "ingress": args.ingress,
            "stable_service": args.stable_service,
            "canary_service": args.canary_service,
            "service_port": args.service_port,
            "root_service": args.root_service,
            "desired_weight": args.weight,
        }
        r = requests.post(
            f"{base}/rollouts/{args.namespace}/{args.rollout}/weight",
            json=payload,
            auth=(args.user, args.password or ""),
            timeout=30,
        )
        _print(r.json())
        return 0 if r.ok else 1

    return 2


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
