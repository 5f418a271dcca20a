"""
Core infrastructure for the Tubely backend.

- auth: bearer token verification and the current-user dependency
- database: MongoDB async client (Motor) with connection pooling
- errors: TubelyError hierarchy mapped to HTTP status codes
- storage: S3-compatible object store client (AWS S3 or MinIO)
"""
