"""
Error handling module for the Integreatly operator.

This module provides a comprehensive error hierarchy that integrates with kopf
and provides clear categorization for different types of failures.
"""

from .operator_errors import (
    ConfigurationError,
    InvalidDependencyError,
    KubernetesAPIError,
    MissingDependencyError,
    OperatorError,
    OwnershipConflictError,
    PermanentError,
    SubscriptionFailedError,
    TemporaryError,
)

__all__ = [
    "OperatorError",
    "TemporaryError",
    "PermanentError",
    "MissingDependencyError",
    "InvalidDependencyError",
    "OwnershipConflictError",
    "KubernetesAPIError",
    "SubscriptionFailedError",
    "ConfigurationError",
]
