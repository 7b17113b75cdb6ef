"""Infrastructure layer for files app.

This package contains integrations with external systems:
- Per-file key derivation and random tokens
- Encrypted S3 storage backend (SSE-C, presigned URLs)
- Metadata helpers (MIME type guessing, name validation)

Keep infrastructure concerns separate from business logic.
"""
