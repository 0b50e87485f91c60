"""
Utility functions and helpers.

Modules:
- config: Config section defaults
- files: File writing helpers
- hashing: Stable hashing
- progress: rich progress bars and summaries
- redact: Credential redaction
- retry: Exponential backoff and error classification
- templates: Jinja2 template loading
"""
