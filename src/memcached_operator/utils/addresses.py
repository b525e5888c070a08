"""Client-facing memcached server address lists."""

from __future__ import annotations

from ..constants import MEMCACHED_PORT, MEMCACHED_TLS_PORT
from ..models import Memcached

IPV6_FAMILY = "IPv6"


def service_ip_family(service: dict) -> str:
    """Return the primary IP family assigned to a service, empty if none yet."""
    families = (service.get("spec") or {}).get("ipFamilies") or []
    return families[0] if families else ""


def server_lists(instance: Memcached, ip_family: str) -> tuple[list[str], list[str]]:
    """Build the memcached server lists without and with the address family prefix.

    Some clients (python-memcached) need the ``inet``/``inet6`` prefix that
    matches the IP version the server listens on. The prefixed list always
    targets the plain listener.

    Args:
        instance: Memcached instance
        ip_family: Primary IP family of the headless service

    Returns:
        Tuple of (server list, server list with address family prefix)
    """
    prefix = "inet6" if ip_family == IPV6_FAMILY else "inet"
    port = MEMCACHED_TLS_PORT if instance.spec.tls.enabled() else MEMCACHED_PORT

    server_list = []
    server_list_with_inet = []
    for ordinal in range(instance.spec.replicas):
        server = f"{instance.name}-{ordinal}.{instance.name}.{instance.namespace}.svc"
        server_list.append(f"{server}:{port}")
        server_list_with_inet.append(f"{prefix}:{server}:{MEMCACHED_PORT}")

    return server_list, server_list_with_inet
