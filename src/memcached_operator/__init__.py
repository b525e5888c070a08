"""Kubernetes operator running memcached for OpenStack control planes."""

__version__ = "0.1.0"
