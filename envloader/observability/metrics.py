"""Prometheus metrics recorded while resolving secrets."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

BACKEND_CALLS = Counter(
    "envloader_backend_calls_total",
    "Number of live API calls issued to a secret backend",
    labelnames=("backend",),
)
CACHE_LOOKUPS = Counter(
    "envloader_cache_lookups_total",
    "Cache store lookups by kind and outcome",
    labelnames=("kind", "result"),
)
LOAD_DURATION = Histogram(
    "envloader_load_duration_seconds",
    "Duration of a full resolution pass in seconds",
    buckets=(
        0.001,
        0.005,
        0.01,
        0.05,
        0.1,
        0.25,
        0.5,
        1.0,
        2.5,
        5.0,
    ),
)


def record_backend_call(backend: str) -> None:
    BACKEND_CALLS.labels(backend).inc()


def record_cache_lookup(kind: str, *, hit: bool) -> None:
    CACHE_LOOKUPS.labels(kind, "hit" if hit else "miss").inc()


__all__ = [
    "BACKEND_CALLS",
    "CACHE_LOOKUPS",
    "LOAD_DURATION",
    "record_backend_call",
    "record_cache_lookup",
]
