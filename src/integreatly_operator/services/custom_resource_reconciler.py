"""
Custom-resource phase of a product reconciliation.

Creates the product's declarative custom resource or brings its managed
fields back in line. Readiness of the product behind the resource is not
awaited here.
"""

import logging
from typing import Any

from ..errors import KubernetesAPIError
from ..models import StatusPhase
from ..utils.cluster import ClusterClient, ResourceKind

logger = logging.getLogger(__name__)


def diff_fields(
    existing: dict[str, Any], desired_spec: dict[str, Any], labels: dict[str, str]
) -> list[str]:
    """List the managed spec fields and labels that differ from desired."""
    current_spec = existing.get("spec") or {}
    current_labels = (existing.get("metadata") or {}).get("labels") or {}
    changed = [
        f"spec.{key}"
        for key, value in desired_spec.items()
        if current_spec.get(key) != value
    ]
    changed.extend(
        f"metadata.labels.{key}"
        for key, value in labels.items()
        if current_labels.get(key) != value
    )
    return changed


class CustomResourceReconciler:
    """Create-or-update of a single custom resource."""

    def __init__(self, cluster: ClusterClient):
        self.cluster = cluster

    async def reconcile(
        self,
        kind: ResourceKind,
        name: str,
        namespace: str,
        desired_spec: dict[str, Any],
        labels: dict[str, str] | None = None,
    ) -> StatusPhase:
        """
        Ensure the custom resource exists with the desired fields.

        Returns:
            COMPLETED once the resource exists with matching fields

        Raises:
            KubernetesAPIError: If the create or update fails
        """
        labels = labels or {}
        accessor = self.cluster.for_kind(kind)
        error_message = f"failed to create/update {kind.kind.lower()} custom resource"

        try:
            existing = await accessor.get(name, namespace)
            if existing is None:
                body = {
                    "metadata": {"name": name, "namespace": namespace, "labels": labels},
                    "spec": desired_spec,
                }
                await accessor.create(body, namespace)
                logger.info(
                    f"Created {kind.kind} {namespace}/{name}", extra={"kind": kind.kind}
                )
                return StatusPhase.COMPLETED

            changed = diff_fields(existing, desired_spec, labels)
            if not changed:
                return StatusPhase.COMPLETED

            metadata = existing.setdefault("metadata", {})
            metadata["labels"] = {**(metadata.get("labels") or {}), **labels}
            existing["spec"] = {**(existing.get("spec") or {}), **desired_spec}
            # resourceVersion stays on the body so a concurrent write conflicts
            await accessor.replace(name, existing, namespace)
            logger.info(
                f"Updated {kind.kind} {namespace}/{name}: {', '.join(changed)}",
                extra={"kind": kind.kind},
            )
            return StatusPhase.COMPLETED
        except KubernetesAPIError as e:
            raise KubernetesAPIError(
                error_message, reason=e.reason, status=e.status, cause=e
            ) from e
