"""Traffic Routing Reconciler (TRR).

Moves a Traefik-managed Kubernetes Ingress towards a requested
stable/canary traffic split:
 - resolves the Ingress and checks it routes to the stable service
 - derives the service-weights annotation and the canary backend paths
 - computes a JSON merge patch restricted to annotations and rules
 - applies it once, or not at all when nothing changed

Each call is self-contained; nothing is cached between reconciliations.
"""
