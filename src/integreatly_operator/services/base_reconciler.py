"""
Base reconciler class providing common patterns for resource reconciliation.

This module defines the BaseReconciler class that implements standard
patterns for status management, error handling, and metrics. Subclasses
compute the whole status of a pass; it is written to the resource only once
the pass has finished, so a cancelled pass leaves the status untouched.
"""

import time
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any, Protocol

from ..constants import (
    CONDITION_DEGRADED,
    CONDITION_FALSE,
    CONDITION_PROGRESSING,
    CONDITION_READY,
    CONDITION_TRUE,
)
from ..errors import OperatorError, TemporaryError
from ..models import InstallationStatus, StatusPhase
from ..observability.logging import OperatorLogger
from ..settings import settings
from ..utils.cluster import ClusterClient


class StatusProtocol(Protocol):
    """Protocol for kopf Status objects that allow dynamic attribute assignment."""

    def __setattr__(self, name: str, value: Any) -> None: ...
    def __getattr__(self, name: str) -> Any: ...


class BaseReconciler(ABC):
    """
    Base class for resource reconcilers.

    Provides common patterns for:
    - Status management with conditions
    - Error handling and mapping to kopf retry semantics
    - Cluster client management
    - Reconciliation logging and metrics
    """

    def __init__(self, cluster: ClusterClient | None = None):
        """
        Initialize base reconciler.

        Args:
            cluster: Cluster client, will be created if not provided
        """
        self._cluster = cluster
        self.logger = OperatorLogger(self.__class__.__name__)

    @property
    def cluster(self) -> ClusterClient:
        """Get or create the cluster client."""
        if self._cluster is None:
            self._cluster = ClusterClient(
                request_timeout=settings.api_request_timeout_seconds
            )
        return self._cluster

    async def reconcile(
        self,
        spec: dict[str, Any],
        name: str,
        namespace: str,
        status: StatusProtocol,
        **kwargs,
    ) -> InstallationStatus:
        """
        Main reconciliation entry point with metrics tracking.

        Args:
            spec: Resource specification
            name: Resource name
            namespace: Resource namespace
            status: Status object the final status is written to
            **kwargs: Additional handler arguments; ``current_status`` holds
                the status the resource had when the pass started

        Returns:
            The status computed for this pass

        Raises:
            kopf.TemporaryError: If the pass was aborted by a retryable error
            kopf.PermanentError: If the pass was aborted by a permanent error
        """
        from ..observability.metrics import metrics_collector

        resource_type = self.__class__.__name__.replace("Reconciler", "").lower()
        start_time = time.time()
        generation = kwargs.get("meta", {}).get("generation", 0)
        current_status = kwargs.get("current_status") or {}
        previous_conditions = current_status.get("conditions") or []

        self.logger.log_reconciliation_start(
            resource_type=resource_type, resource_name=name, namespace=namespace
        )

        async with metrics_collector.track_reconciliation(
            resource_type=resource_type, namespace=namespace, name=name
        ):
            try:
                result = await self.do_reconcile(spec, name, namespace, **kwargs)
            except OperatorError as e:
                self._fail(
                    status, e, resource_type, name, namespace, start_time,
                    generation, previous_conditions,
                )
                raise e.as_kopf_error() from e
            except Exception as e:
                # Wrap unexpected errors as temporary to allow retry
                error = TemporaryError(
                    f"Unexpected error during reconciliation: {str(e)}"
                )
                self._fail(
                    status, error, resource_type, name, namespace, start_time,
                    generation, previous_conditions,
                )
                raise error.as_kopf_error() from e

        self.set_phase_conditions(result, generation)
        self.apply_status(status, result, current_status)
        metrics_collector.update_installation_phase(name, namespace, result.phase)

        self.logger.log_reconciliation_success(
            resource_type=resource_type,
            resource_name=name,
            namespace=namespace,
            duration=time.time() - start_time,
            phase=result.phase.value,
        )
        return result

    @abstractmethod
    async def do_reconcile(
        self,
        spec: dict[str, Any],
        name: str,
        namespace: str,
        **kwargs,
    ) -> InstallationStatus:
        """
        Perform the actual reconciliation logic.

        Args:
            spec: Resource specification
            name: Resource name
            namespace: Resource namespace
            **kwargs: Additional handler arguments

        Returns:
            Status computed for this pass
        """
        raise NotImplementedError("Subclasses must implement do_reconcile method")

    def _fail(
        self,
        status: StatusProtocol,
        error: OperatorError,
        resource_type: str,
        name: str,
        namespace: str,
        start_time: float,
        generation: int,
        previous_conditions: list[dict[str, Any]],
    ) -> None:
        from ..observability.metrics import metrics_collector

        self.logger.log_reconciliation_error(
            resource_type=resource_type,
            resource_name=name,
            namespace=namespace,
            error=error,
            duration=time.time() - start_time,
        )
        failed = InstallationStatus(
            phase=StatusPhase.FAILED,
            message=str(error),
            last_error=str(error),
            last_reconcile_time=datetime.now(UTC).isoformat(),
            conditions=list(previous_conditions),
        )
        self.set_phase_conditions(failed, generation)
        self.apply_status(status, failed)
        metrics_collector.update_installation_phase(name, namespace, StatusPhase.FAILED)

    def apply_status(
        self,
        status: StatusProtocol,
        result: InstallationStatus,
        current_status: dict[str, Any] | None = None,
    ) -> None:
        """
        Write every status field of the pass to the status object.

        The status is merge-patched, so products listed in ``current_status``
        but no longer reported by the pass are patched to ``None`` to remove
        them.
        """
        fields = result.to_patch()
        previous_products = (current_status or {}).get("products") or {}
        for product in previous_products:
            fields["products"].setdefault(product, None)
        for key, value in fields.items():
            setattr(status, key, value)

    def set_phase_conditions(
        self, result: InstallationStatus, generation: int = 0
    ) -> None:
        """Derive Ready, Progressing and Degraded conditions from the phase."""
        message = result.message
        if result.phase is StatusPhase.COMPLETED:
            self._add_condition(
                result, CONDITION_READY, CONDITION_TRUE, "InstallationCompleted",
                message, generation,
            )
            self._remove_condition(result, CONDITION_PROGRESSING)
            self._remove_condition(result, CONDITION_DEGRADED)
        elif result.phase is StatusPhase.FAILED:
            self._add_condition(
                result, CONDITION_READY, CONDITION_FALSE, "ReconciliationFailed",
                message, generation,
            )
            self._add_condition(
                result, CONDITION_DEGRADED, CONDITION_TRUE, "ReconciliationFailed",
                f"Installation degraded: {message}", generation,
            )
            self._remove_condition(result, CONDITION_PROGRESSING)
        else:
            self._add_condition(
                result, CONDITION_READY, CONDITION_FALSE, "InstallationInProgress",
                message, generation,
            )
            self._add_condition(
                result, CONDITION_PROGRESSING, CONDITION_TRUE, "InstallationInProgress",
                f"Installation is progressing: {message}", generation,
            )
            self._remove_condition(result, CONDITION_DEGRADED)

    def _add_condition(
        self,
        status: StatusProtocol,
        condition_type: str,
        condition_status: str,
        reason: str,
        message: str,
        generation: int = 0,
    ) -> None:
        """Add or update a status condition with observedGeneration tracking."""
        existing = [
            c
            for c in (getattr(status, "conditions", None) or [])
            if isinstance(c, dict)
        ]
        previous = next((c for c in existing if c.get("type") == condition_type), None)

        # lastTransitionTime only moves when the condition status flips
        transition_time = datetime.now(UTC).isoformat()
        if previous and previous.get("status") == condition_status:
            transition_time = previous.get("lastTransitionTime", transition_time)

        conditions = [c for c in existing if c.get("type") != condition_type]
        conditions.append(
            {
                "type": condition_type,
                "status": condition_status,
                "reason": reason,
                "message": message,
                "lastTransitionTime": transition_time,
                "observedGeneration": generation,
            }
        )
        status.conditions = conditions

    def _remove_condition(self, status: StatusProtocol, condition_type: str) -> None:
        """Remove a status condition."""
        existing = getattr(status, "conditions", None)
        if not existing:
            return
        status.conditions = [
            c for c in existing if isinstance(c, dict) and c.get("type") != condition_type
        ]

    def get_condition(
        self, status: StatusProtocol, condition_type: str
    ) -> dict[str, Any] | None:
        """Get a specific status condition."""
        for condition in getattr(status, "conditions", None) or []:
            if condition.get("type") == condition_type:
                return condition
        return None

