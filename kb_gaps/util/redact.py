"""Redaction of credentials from provider error text before it is logged or exported."""

import re

SENSITIVE_PATTERNS = [
    (r'(api[_-]?key|token|auth|secret|password)[=:"\s]+\S+', 'REDACTED'),
    (r'Bearer\s+\S+', 'Bearer REDACTED'),
    (r'sk-ant-[a-zA-Z0-9\-]+', 'sk-ant-REDACTED'),
    (r'sk-(proj-)?[a-zA-Z0-9_\-]{20,}', 'sk-REDACTED'),
    # Pinecone keys
    (r'pcsk_[a-zA-Z0-9_]+', 'pcsk_REDACTED'),
]


def redact_sensitive(text: str) -> str:
    """
    Replace API keys and tokens in ``text`` with REDACTED markers.

    Example:
        >>> redact_sensitive("Incorrect API key provided: sk-abcdefghijklmnopqrstuvwx")
        'Incorrect API key provided: sk-REDACTED'
    """
    result = text
    for pattern, replacement in SENSITIVE_PATTERNS:
        result = re.sub(pattern, replacement, result, flags=re.IGNORECASE)
    return result
