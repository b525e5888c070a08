"""Runtime configuration for the Memcached Operator."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Mapping

DEFAULT_MEMCACHED_IMAGE = "quay.io/podified-antelope-centos9/openstack-memcached:current-podified"


@dataclass(frozen=True)
class OperatorConfig:
    """Operator settings read from the environment."""

    metrics_port: int = 8080
    resync_interval: float = 300.0
    requeue_after: float = 5.0
    request_timeout: float = 30.0
    k8s_rate_limit_per_second: float = 10.0
    watch_namespaces: tuple[str, ...] = field(default_factory=tuple)
    default_image: str = DEFAULT_MEMCACHED_IMAGE
    traces_enabled: bool = False
    service_name: str = "memcached-operator"
    otlp_endpoint: str = "http://localhost:4317"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> OperatorConfig:
        """Build the configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Returns:
            OperatorConfig instance

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        env = os.environ if environ is None else environ
        namespaces = tuple(
            ns.strip() for ns in env.get("WATCH_NAMESPACE", "").split(",") if ns.strip()
        )
        return cls(
            metrics_port=int(env.get("METRICS_PORT", "8080")),
            resync_interval=float(env.get("RESYNC_INTERVAL_SECONDS", "300")),
            requeue_after=float(env.get("REQUEUE_AFTER_SECONDS", "5")),
            request_timeout=float(env.get("K8S_REQUEST_TIMEOUT_SECONDS", "30")),
            k8s_rate_limit_per_second=float(env.get("K8S_RATE_LIMIT_PER_SECOND", "10.0")),
            watch_namespaces=namespaces,
            default_image=env.get("RELATED_IMAGE_MEMCACHED_IMAGE_URL_DEFAULT", DEFAULT_MEMCACHED_IMAGE),
            traces_enabled=env.get("OTEL_TRACES_ENABLED", "false").lower() == "true",
            service_name=env.get("OTEL_SERVICE_NAME", "memcached-operator"),
            otlp_endpoint=env.get("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317"),
        )


@lru_cache(maxsize=1)
def get_config() -> OperatorConfig:
    """Return the process-wide configuration."""
    return OperatorConfig.from_env()
