"""
Object storage integration for migrated images.

Supports any S3-compatible endpoint via boto3.
Includes mock mode for local development without credentials.
"""
