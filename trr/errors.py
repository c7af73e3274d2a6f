from __future__ import annotations


class TrafficRoutingError(Exception):
    """Base class for every failure a reconciliation pass can report."""

    def __init__(self, message: str, ingress: str | None = None):
        super().__init__(message)
        self.ingress = ingress


class NotFound(TrafficRoutingError):
    pass


class Misconfigured(TrafficRoutingError):
    """The rollout points at an Ingress it cannot manage."""


class PatchError(TrafficRoutingError):
    """The merge patch write was rejected or never reached the store."""


class WriteConflict(PatchError):
    pass


class WriteFailure(PatchError):
    pass
