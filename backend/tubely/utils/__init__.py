"""
Utilities Package for the Tubely backend.

Modules:
--------
assets:
    Local assets root: staging paths for uploads, thumbnail URLs.

file_validator:
    Declared size and media type checks for uploads, media type to
    extension table.

logger:
    JSONFormatter / StandardFormatter, setup_logging for application-wide
    configuration, add_log_context for per-request context fields.

security:
    JWT generation and validation, random file names.
"""
