"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- storage: Object storage (S3-compatible endpoint of the storage project)
- records: Database tables over the REST API
- http: Source image downloads and existence probes

These wrappers translate between external formats and our domain models.
"""
