"""
Models package - Pydantic models for type-safe resource handling.

Defines data models for:
- Installation specifications and status
- Product phases shared by every reconciliation step
"""

from .installation import (
    Installation,
    InstallationSpec,
    InstallationStatus,
    ProductStatus,
    StatusPhase,
)

__all__ = [
    "Installation",
    "InstallationSpec",
    "InstallationStatus",
    "ProductStatus",
    "StatusPhase",
]
