"""
Operator error hierarchy with categorization and retry logic.

This module defines the error types used throughout the Integreatly operator,
providing clear categorization and integration with kopf's retry mechanisms.
Every error is terminal for the current reconciliation pass only; the next
pass re-probes the cluster and starts again from the first step.
"""

import kopf

from integreatly_operator.constants import DEFAULT_ERROR_RETRY_DELAY


class OperatorError(Exception):
    """
    Base error class for all operator-related exceptions.

    Provides categorization, retry behavior, and user guidance for resolution.
    """

    def __init__(
        self,
        message: str,
        category: str,
        retryable: bool = True,
        delay: int = DEFAULT_ERROR_RETRY_DELAY,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        """
        Initialize operator error.

        Args:
            message: Human-readable error description
            category: Error category (dependency, ownership, api, configuration)
            retryable: Whether kopf should retry this operation
            delay: Suggested retry delay in seconds
            user_action: What user should do to resolve the issue
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.category = category
        self.retryable = retryable
        self.delay = delay
        self.user_action = user_action
        self.cause = cause

    def as_kopf_error(self):
        """Convert to appropriate kopf exception type."""
        if self.retryable:
            return kopf.TemporaryError(str(self), delay=self.delay)
        else:
            return kopf.PermanentError(str(self))

    def __str__(self) -> str:
        """Enhanced string representation with user guidance."""
        base_msg = super().__str__()
        if self.user_action:
            return f"{base_msg}\nAction required: {self.user_action}"
        return base_msg


class TemporaryError(OperatorError):
    """Temporary error that should be retried."""

    def __init__(self, message: str, delay: int = DEFAULT_ERROR_RETRY_DELAY):
        super().__init__(
            message=message,
            category="temporary",
            retryable=True,
            delay=delay,
        )


class PermanentError(OperatorError):
    """Permanent error that should not be retried."""

    def __init__(self, message: str, user_action: str | None = None):
        super().__init__(
            message=message,
            category="permanent",
            retryable=False,
            user_action=user_action or "Manual intervention required to resolve",
        )


class MissingDependencyError(OperatorError):
    """A required external secret or route does not exist (yet)."""

    def __init__(self, dependency: str, message: str):
        super().__init__(message=message, category="dependency")
        self.dependency = dependency


class InvalidDependencyError(OperatorError):
    """A required external secret exists but lacks a required field."""

    def __init__(self, field: str, message: str):
        super().__init__(message=message, category="dependency")
        self.field = field


class OwnershipConflictError(OperatorError):
    """A namespace is labeled as owned by a different installation."""

    def __init__(self, namespace: str, owner: str, expected_owner: str):
        super().__init__(
            message=(
                f"namespace {namespace} is owned by installation {owner}, "
                f"not {expected_owner}"
            ),
            category="ownership",
        )
        self.namespace = namespace
        self.owner = owner
        self.expected_owner = expected_owner


class KubernetesAPIError(OperatorError):
    """A get, list, create or update against the cluster API failed."""

    def __init__(
        self,
        message: str,
        reason: str | None = None,
        status: int | None = None,
        cause: Exception | None = None,
    ):
        # 4xx errors other than conflicts will not fix themselves
        retryable = status is None or status >= 500 or status in (409, 429)
        super().__init__(
            message=message,
            category="api",
            retryable=retryable,
            cause=cause,
        )
        self.reason = reason
        self.status = status


class SubscriptionFailedError(OperatorError):
    """An install plan for a product operator reported failure."""

    def __init__(self, install_plan: str, message: str):
        super().__init__(message=message, category="subscription")
        self.install_plan = install_plan


class ConfigurationError(OperatorError):
    """Error in operator or product configuration."""

    def __init__(
        self,
        message: str,
        retryable: bool = True,
        cause: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category="configuration",
            retryable=retryable,
            cause=cause,
        )
