"""Main entry point for the Memcached Operator."""

from __future__ import annotations

import logging
from typing import Any

import kopf

from . import handlers  # noqa: F401  # registers the kopf handlers
from . import health
from . import logging as structured_logging
from .config import get_config
from .constants import API_GROUP, KIND_MEMCACHED
from .handlers.memcached import get_handler
from .handlers.watches import router
from .tracing import initialize_tracing

logger = logging.getLogger(__name__)


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    cfg = get_config()

    # Set up structured JSON logging
    structured_logging.setup_structured_logging()
    initialize_tracing(cfg)

    # Use annotations so kopf's bookkeeping never collides with our status commits
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage(prefix=API_GROUP)
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage(prefix=API_GROUP)

    settings.posting.level = logging.WARNING
    settings.networking.request_timeout = cfg.request_timeout
    settings.execution.max_workers = 4
    # Backoff between failed watch stream reconnects
    settings.queueing.error_delays = [1, 2, 4, 8, 16, 32, 60]

    # Start metrics HTTP server with health check endpoints
    health.start_metrics_server(cfg.metrics_port)

    # Seed the secret reference indexes before the first secret event arrives
    store = get_handler().store
    instances = []
    for namespace in cfg.watch_namespaces or (None,):
        instances.extend(store.list(KIND_MEMCACHED, namespace))
    router.rebuild(instances)
    logger.info(f"Indexed secret references of {len(instances)} Memcached instance(s)")


def main() -> None:
    """Run the operator."""
    cfg = get_config()
    kopf.run(
        standalone=True,
        clusterwide=not cfg.watch_namespaces,
        namespaces=list(cfg.watch_namespaces),
    )


if __name__ == "__main__":
    main()
