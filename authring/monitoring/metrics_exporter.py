"""Prometheus metrics for the authentication rings.

Counters are registered once per ``CollectorRegistry``; ``get_registry()``
returns the process wide instance bound to the default Prometheus registry.
Tests can build their own ``MetricsRegistry(CollectorRegistry())``.
"""
from __future__ import annotations

from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter


class MetricsRegistry:
    def __init__(self, registry: Optional[CollectorRegistry] = None):
        registry = registry if registry is not None else REGISTRY
        self.signatures_created = Counter(
            "authring_signatures_created_total", "Key attestations signed", ["key_type"], registry=registry
        )
        self.verifications = Counter(
            "authring_signature_verifications_total",
            "Key attestation verifications by outcome",
            ["key_type", "outcome"],
            registry=registry,
        )
        self.records_set = Counter(
            "authring_trust_records_set_total", "Trust records written", ["key_type"], registry=registry
        )
        self.ring_saves = Counter(
            "authring_ring_saves_total", "Ring persistence attempts", ["key_type", "status"], registry=registry
        )

    def observe_signature(self, key_type: str) -> None:
        self.signatures_created.labels(key_type=key_type).inc()

    def observe_verification(self, key_type: str, outcome: str) -> None:
        self.verifications.labels(key_type=key_type, outcome=outcome).inc()

    def observe_record_set(self, key_type: str) -> None:
        self.records_set.labels(key_type=key_type).inc()

    def observe_save(self, key_type: str, ok: bool) -> None:
        self.ring_saves.labels(key_type=key_type, status="ok" if ok else "error").inc()


_registry: Optional[MetricsRegistry] = None


def get_registry() -> MetricsRegistry:
    global _registry
    if _registry is None:
        _registry = MetricsRegistry()
    return _registry


__all__ = ["get_registry", "MetricsRegistry"]
