"""
Infrastructure abstraction layer for certificate storage.

This module provides repository interfaces and implementations for:
- Issued bundles (secret store with optimistic concurrency)
- Declared certificates
- Certificate status

Supports multiple providers via factory pattern:
- memory: Process-local storage
- local: File-based storage for development
- aws: DynamoDB secret store
"""

from certsteward.infrastructure.factory import InfrastructureFactory

__all__ = ["InfrastructureFactory"]
