"""Handler modules for CRD resources."""

# Import handlers to register them - all handlers register themselves via @kopf decorators
from . import memcached  # noqa: F401
from . import watches  # noqa: F401
