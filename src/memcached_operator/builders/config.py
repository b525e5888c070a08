"""Rendering of the memcached configuration files and their ConfigMap."""

from __future__ import annotations

from typing import Any, Protocol

import jinja2
from pydantic import BaseModel, ConfigDict, Field

from ..constants import KIND_CONFIG_MAP, MEMCACHED_PORT, MEMCACHED_TLS_PORT
from ..models import Memcached
from ..utils.errors import ConfigRenderError
from .common import object_meta

CERT_PATH = "/etc/pki/tls/certs/memcached.crt"
KEY_PATH = "/etc/pki/tls/private/memcached.key"
CA_PATH = "/etc/pki/ca-trust/extracted/pem/tls-ca-bundle.pem"


class ConfigParameters(BaseModel):
    """Every parameter the configuration templates understand.

    Unknown keys are rejected so that a typo cannot silently change the
    rendered configuration.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    port: int = Field(MEMCACHED_PORT, description="Port the main listener binds to")
    plain_port: int = Field(MEMCACHED_PORT, description="Port of the always-on plain text listener")
    tls: bool = Field(False, description="Serve TLS on the main listener")
    cert_path: str = Field(CERT_PATH, description="Server certificate chain")
    key_path: str = Field(KEY_PATH, description="Server private key")
    ca_path: str = Field(CA_PATH, description="CA bundle used to verify clients")
    max_connections: int = Field(8192, gt=0, description="Maximum simultaneous connections")
    cache_size_mb: int = Field(64, gt=0, description="Item memory in megabytes")

    @classmethod
    def for_instance(cls, instance: Memcached) -> ConfigParameters:
        if instance.spec.tls.enabled():
            return cls(port=MEMCACHED_TLS_PORT, tls=True)
        return cls()


class ConfigRenderer(Protocol):
    """Turns configuration parameters into file contents."""

    def render(self, params: ConfigParameters) -> dict[str, str]:
        ...


MEMCACHED_TEMPLATE = """\
PORT="{{ params.port }}"
USER="memcached"
MAXCONN="{{ params.max_connections }}"
CACHESIZE="{{ params.cache_size_mb }}"
{% if params.tls -%}
OPTIONS="-l 0.0.0.0:{{ params.port }} -l notls:0.0.0.0:{{ params.plain_port }} -Z -o ssl_chain_cert={{ params.cert_path }} -o ssl_key={{ params.key_path }} -o ssl_ca_cert={{ params.ca_path }}"
{% else -%}
OPTIONS="-l 0.0.0.0:{{ params.port }}"
{% endif -%}
"""

CONFIG_JSON_TEMPLATE = """\
{
  "command": "/usr/bin/memcached -p {{ params.port }} -u memcached -m {{ params.cache_size_mb }} -c {{ params.max_connections }}",
  "config_files": [
    {
      "source": "/var/lib/kolla/config_files/src/memcached",
      "dest": "/etc/sysconfig/memcached",
      "owner": "memcached",
      "perm": "0644"
    }
  ]
}
"""

TEMPLATES = {
    "memcached": MEMCACHED_TEMPLATE,
    "config.json": CONFIG_JSON_TEMPLATE,
}


class TemplateRenderer:
    """Default renderer backed by Jinja2 templates."""

    def __init__(self, templates: dict[str, str] | None = None):
        self.env = jinja2.Environment(
            loader=jinja2.DictLoader(templates or TEMPLATES),
            undefined=jinja2.StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )

    def render(self, params: ConfigParameters) -> dict[str, str]:
        files = {}
        for name in sorted(self.env.list_templates()):
            try:
                files[name] = self.env.get_template(name).render(params=params)
            except jinja2.TemplateError as e:
                raise ConfigRenderError(f"failed to render {name}: {e}") from e
        return files


def config_map_name(instance: Memcached) -> str:
    return f"{instance.name}-config-data"


def config_map(instance: Memcached, files: dict[str, str]) -> dict[str, Any]:
    """Create the ConfigMap that carries the rendered configuration files."""
    return {
        "apiVersion": "v1",
        "kind": KIND_CONFIG_MAP,
        "metadata": object_meta(instance, config_map_name(instance)),
        "data": dict(files),
    }
