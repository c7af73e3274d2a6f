from __future__ import annotations

import copy
import json
from dataclasses import dataclass
from threading import Lock
from typing import Any, Iterable, Protocol

import urllib3
from kubernetes import client, config, dynamic
from kubernetes.client.rest import ApiException
from kubernetes.dynamic.exceptions import ResourceNotFoundError

from .diff import apply_merge_patch
from .errors import NotFound, TrafficRoutingError, WriteConflict, WriteFailure
from .ingress import Ingress
from .settings import settings


MERGE_PATCH_CONTENT_TYPE = "application/merge-patch+json"
# Only the serviceName/servicePort backend shape is modelled.
INGRESS_API_VERSION = "extensions/v1beta1"


class IngressGetter(Protocol):
    def get(self, namespace: str, name: str) -> Ingress: ...


class IngressPatcher(Protocol):
    def patch(self, namespace: str, name: str, merge_patch: bytes) -> None: ...


@dataclass(frozen=True)
class Action:
    verb: str
    namespace: str
    name: str
    patch: bytes | None = None


class InMemoryIngressStore:
    """Ingress store backed by raw JSON objects.

    Patches are applied with merge-patch semantics and bump
    ``metadata.resourceVersion``. A patch that pins a stale resourceVersion
    is rejected with WriteConflict. Writes are recorded in ``actions``.
    """

    def __init__(self, objects: Iterable[dict[str, Any]] = ()) -> None:
        self._lock = Lock()
        self._objects: dict[tuple[str, str], dict[str, Any]] = {}
        self.actions: list[Action] = []
        for obj in objects:
            self.add(obj)

    def add(self, obj: dict[str, Any]) -> None:
        obj = copy.deepcopy(obj)
        meta = obj.setdefault("metadata", {})
        meta.setdefault("namespace", "default")
        meta.setdefault("resourceVersion", "1")
        with self._lock:
            self._objects[(meta["namespace"], meta["name"])] = obj

    def raw(self, namespace: str, name: str) -> dict[str, Any]:
        with self._lock:
            obj = self._objects.get((namespace, name))
            if obj is None:
                raise NotFound(f'ingresses "{name}" not found', ingress=name)
            return copy.deepcopy(obj)

    def get(self, namespace: str, name: str) -> Ingress:
        return Ingress.from_dict(self.raw(namespace, name))

    def patch(self, namespace: str, name: str, merge_patch: bytes) -> None:
        with self._lock:
            self.actions.append(Action("patch", namespace, name, merge_patch))
            current = self._objects.get((namespace, name))
            if current is None:
                raise WriteFailure(f'ingresses "{name}" not found', ingress=name)
            try:
                doc = json.loads(merge_patch)
            except ValueError as e:
                raise WriteFailure(f"invalid merge patch: {e}", ingress=name) from e
            if not isinstance(doc, dict):
                raise WriteFailure("invalid merge patch: body must be a JSON object", ingress=name)

            pinned = (doc.get("metadata") or {}).get("resourceVersion")
            version = current["metadata"].get("resourceVersion", "1")
            if pinned is not None and str(pinned) != str(version):
                raise WriteConflict(
                    f'Operation cannot be fulfilled on ingresses "{name}": the object has been modified',
                    ingress=name,
                )

            updated = apply_merge_patch(current, doc)
            updated["metadata"]["resourceVersion"] = str(int(version) + 1)
            self._objects[(namespace, name)] = updated


class KubeIngressClient:
    """Reads and merge-patches Ingresses through the Kubernetes API server.

    Credentials come from the in-cluster service account, falling back to the
    local kubeconfig. Discovery of the Ingress resource is deferred to the
    first call.
    """

    def __init__(self, dynamic_client: Any = None, timeout_s: float | None = None):
        self._dynamic = dynamic_client
        self._resource: Any = None
        self.timeout_s = timeout_s if timeout_s is not None else settings.kube_timeout_s

    @classmethod
    def from_settings(cls) -> KubeIngressClient:
        return cls()

    def _load_dynamic_client(self) -> Any:
        try:
            config.load_incluster_config()
        except config.ConfigException:
            config.load_kube_config(context=settings.kube_context or None)
        return dynamic.DynamicClient(client.ApiClient())

    def _ingresses(self, name: str) -> Any:
        if self._resource is not None:
            return self._resource
        try:
            if self._dynamic is None:
                self._dynamic = self._load_dynamic_client()
            self._resource = self._dynamic.resources.get(api_version=INGRESS_API_VERSION, kind="Ingress")
        except (config.ConfigException, ResourceNotFoundError, ApiException, urllib3.exceptions.HTTPError) as e:
            raise TrafficRoutingError(
                f"cannot reach {INGRESS_API_VERSION} Ingress API: {type(e).__name__}: {e}",
                ingress=name,
            ) from e
        return self._resource

    def get(self, namespace: str, name: str) -> Ingress:
        ingresses = self._ingresses(name)
        try:
            obj = ingresses.get(name=name, namespace=namespace, _request_timeout=self.timeout_s)
        except ApiException as e:
            if e.status == 404:
                raise NotFound(f'ingresses "{name}" not found', ingress=name) from e
            raise TrafficRoutingError(f"error getting ingress `{name}`: HTTP {e.status}: {e.reason}", ingress=name) from e
        except urllib3.exceptions.HTTPError as e:
            raise TrafficRoutingError(f"error getting ingress `{name}`: {type(e).__name__}: {e}", ingress=name) from e
        return Ingress.from_dict(obj.to_dict())

    def patch(self, namespace: str, name: str, merge_patch: bytes) -> None:
        ingresses = self._ingresses(name)
        try:
            ingresses.patch(
                body=json.loads(merge_patch),
                name=name,
                namespace=namespace,
                content_type=MERGE_PATCH_CONTENT_TYPE,
                _request_timeout=self.timeout_s,
            )
        except ApiException as e:
            if e.status == 409:
                raise WriteConflict(f"HTTP 409: {e.reason}", ingress=name) from e
            raise WriteFailure(f"HTTP {e.status}: {e.reason}", ingress=name) from e
        except urllib3.exceptions.HTTPError as e:
            raise WriteFailure(f"{type(e).__name__}: {e}", ingress=name) from e
