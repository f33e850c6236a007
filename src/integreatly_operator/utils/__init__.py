"""
Utils package - Helper modules for Integreatly operator functionality.

Contains helper modules for:
- Typed access to cluster resources
- Credential and rendered secrets
- Template rendering
- OLM operator installation
- Event recording
"""

from integreatly_operator.utils.cluster import (
    ClusterClient,
    ResourceAccessor,
    ResourceKind,
    not_found_message,
)

__all__ = [
    "ClusterClient",
    "ResourceAccessor",
    "ResourceKind",
    "not_found_message",
]
