"""Error types and sanitization utilities."""

import re


class SecretNotFoundError(LookupError):
    """A referenced secret does not exist (yet)."""

    def __init__(self, namespace: str, name: str):
        super().__init__(f"Secret {namespace}/{name} not found")
        self.namespace = namespace
        self.name = name


class SecretValidationError(ValueError):
    """A referenced secret exists but is missing required data."""

    def __init__(self, namespace: str, name: str, missing: list[str]):
        super().__init__(
            f"Secret {namespace}/{name} is missing required field(s): {', '.join(missing)}"
        )
        self.namespace = namespace
        self.name = name
        self.missing = missing


class ConfigRenderError(RuntimeError):
    """Rendering the service configuration failed."""


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"-----BEGIN [A-Z ]*PRIVATE KEY-----[\s\S]*?-----END [A-Z ]*PRIVATE KEY-----",
    r"-----BEGIN CERTIFICATE-----[\s\S]*?-----END CERTIFICATE-----",
    r"(?i)bearer\s+[A-Za-z0-9\-_\.=]+",
]

# Fields to redact completely
SENSITIVE_FIELDS = {
    "password",
    "token",
    "tls.key",
    "private_key",
}


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message

    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(pattern, "[REDACTED]", sanitized)

    for field in SENSITIVE_FIELDS:
        sanitized = re.sub(
            rf"{re.escape(field)}[\"']?[:=\s]+[\"']?([^\s,;\)\"']+)",
            f"{field}: [REDACTED]",
            sanitized,
            flags=re.IGNORECASE,
        )

    return sanitized


def sanitize_exception(error: Exception) -> str:
    """Sanitize exception message.

    Args:
        error: Exception object

    Returns:
        Sanitized error message
    """
    return sanitize_error_message(str(error))

