"""
API v1 endpoints.

Route prefix constants for consistent API versioning.
"""

API_V1_PREFIX: str = "/api/v1"

# Module-specific prefixes
CERTIFICATES_PREFIX: str = f"{API_V1_PREFIX}/certificates"

__all__ = [
    "API_V1_PREFIX",
    "CERTIFICATES_PREFIX",
]
