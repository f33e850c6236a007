"""
Namespace phase of a product reconciliation.

Namespaces are created asynchronously by the API server and may linger in
``Terminating`` during a reinstall, so both states report ``IN_PROGRESS``
and leave the retry to the next pass.
"""

import logging

from ..constants import (
    MONITORING_LABEL_KEY,
    MONITORING_LABEL_VALUE,
    NAMESPACE_ACTIVE,
    NAMESPACE_TERMINATING,
    OWNER_LABEL_KEY,
)
from ..errors import OwnershipConflictError
from ..models import Installation, StatusPhase
from ..utils.cluster import ClusterClient

logger = logging.getLogger(__name__)


class NamespaceReconciler:
    """Ensures product namespaces exist and belong to the installation."""

    def __init__(self, cluster: ClusterClient):
        self.cluster = cluster

    def desired_labels(self, installation: Installation) -> dict[str, str]:
        return {
            **installation.owner_labels(),
            MONITORING_LABEL_KEY: MONITORING_LABEL_VALUE,
        }

    async def reconcile_namespace(
        self, name: str, installation: Installation
    ) -> StatusPhase:
        """
        Drive one namespace toward Active and owned by the installation.

        Returns:
            COMPLETED when the namespace is Active and owned, IN_PROGRESS
            while it is being created or terminated

        Raises:
            OwnershipConflictError: If another installation owns the namespace
            KubernetesAPIError: If reading or writing the namespace fails
        """
        accessor = self.cluster.namespaces
        namespace = await accessor.get(name)

        if namespace is None:
            body = {
                "apiVersion": "v1",
                "kind": "Namespace",
                "metadata": {"name": name, "labels": self.desired_labels(installation)},
            }
            await accessor.create(body)
            logger.info(
                f"Created namespace {name}",
                extra={"installation": installation.name, "namespace": name},
            )
            return StatusPhase.IN_PROGRESS

        phase = (namespace.get("status") or {}).get("phase", "")
        if phase == NAMESPACE_TERMINATING:
            logger.info(f"Namespace {name} is terminating, waiting")
            return StatusPhase.IN_PROGRESS
        if phase != NAMESPACE_ACTIVE:
            return StatusPhase.IN_PROGRESS

        metadata = namespace.setdefault("metadata", {})
        labels = metadata.get("labels") or {}
        owner = labels.get(OWNER_LABEL_KEY)

        if owner and owner != installation.uid:
            raise OwnershipConflictError(name, owner, installation.uid)

        if not owner:
            metadata["labels"] = {**labels, **self.desired_labels(installation)}
            await accessor.replace(name, namespace)
            logger.info(
                f"Claimed unlabeled namespace {name}",
                extra={"installation": installation.name, "namespace": name},
            )

        return StatusPhase.COMPLETED
