"""
Models package.

Contains shared Pydantic models used across multiple modules.
Module-specific models are located in their respective module directories.
"""

from certsteward.models.errors import ProblemDetail, ValidationErrorDetail

__all__ = [
    "ProblemDetail",
    "ValidationErrorDetail",
]
