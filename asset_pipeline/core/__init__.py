"""
Core pipeline logic for hotel images.

This module is framework-agnostic - it doesn't import boto3, httpx, or any
infrastructure concerns. Storage, catalog and HTTP access are reached
through protocols, so the logic can be tested in isolation.
"""
