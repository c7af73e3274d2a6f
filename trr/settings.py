from __future__ import annotations

import os
from dataclasses import dataclass


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    # Core
    db_path: str = os.getenv("TRR_DB_PATH", "trr.db")
    log_debug: bool = _env_bool("TRR_LOG_DEBUG", False)
    traefik_annotation_prefix: str = os.getenv("TRR_TRAEFIK_ANNOTATION_PREFIX", "traefik.ingress.kubernetes.io")

    # Kubernetes API access
    # Used only when not running in-cluster.
    kube_context: str = os.getenv("TRR_KUBE_CONTEXT", "")
    kube_timeout_s: int = _env_int("TRR_KUBE_TIMEOUT_S", 10)

    # HTTP API basic auth. Writes are refused while no password is configured.
    admin_user: str = os.getenv("TRR_ADMIN_USER", "admin")
    admin_password: str | None = os.getenv("TRR_ADMIN_PASSWORD")


settings = Settings()
