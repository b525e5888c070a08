"""Typed views of the Memcached custom resource."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .config import get_config


class TLSSpec(BaseModel):
    """TLS settings of a Memcached instance."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    ca_bundle_secret_name: str | None = Field(
        None, alias="caBundleSecretName", description="Secret holding the CA bundle"
    )
    secret_name: str | None = Field(
        None, alias="secretName", description="Secret holding the server certificate and key"
    )

    def enabled(self) -> bool:
        """TLS is served only when a server certificate secret is referenced."""
        return bool(self.secret_name)


class MemcachedSpec(BaseModel):
    """Desired state of a Memcached instance."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    replicas: int = Field(1, ge=0, description="Number of memcached pods")
    container_image: str = Field(
        default_factory=lambda: get_config().default_image,
        alias="containerImage",
        description="Memcached container image",
    )
    tls: TLSSpec = Field(default_factory=TLSSpec)


class Memcached:
    """A Memcached object as read from the API server.

    Only ``status`` is mutated by the reconciler; everything else is the
    snapshot fetched at the start of the pass.
    """

    def __init__(self, body: dict[str, Any]):
        self.body = body
        meta = body.get("metadata", {})
        self.name: str = meta["name"]
        self.namespace: str = meta["namespace"]
        self.uid: str = meta.get("uid", "")
        self.generation: int = meta.get("generation", 0)
        self.resource_version: str | None = meta.get("resourceVersion")
        self.spec = MemcachedSpec.model_validate(body.get("spec") or {})
        self.status: dict[str, Any] = dict(body.get("status") or {})

    @property
    def meta(self) -> dict[str, Any]:
        return self.body.get("metadata", {})
