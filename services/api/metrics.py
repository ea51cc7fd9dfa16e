from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge


REGISTRY = CollectorRegistry()
HEALTH_HITS = Counter("gs_api_healthz_hits", "Health endpoint hits", registry=REGISTRY)
READY_GAUGE = Gauge("gs_api_ready", "Readiness status (1=ready, 0=not)", registry=REGISTRY)
GENERATIONS = Counter(
    "gs_generation",
    "Generation requests by adapter and outcome (ok, demo or error code)",
    ["provider", "outcome"],
    registry=REGISTRY,
)
CLEANUP_DELETED = Counter("gs_cleanup_deleted_files", "Generated files removed by cleanup", registry=REGISTRY)
CLEANUP_FREED = Counter("gs_cleanup_freed_bytes", "Bytes freed by cleanup", registry=REGISTRY)
