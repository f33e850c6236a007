"""
Operator Lifecycle Manager (OLM) helpers.

Product operators are installed by creating an ``OperatorGroup`` and a
``Subscription`` in the product's operator namespace. OLM then creates an
``InstallPlan`` and reports its progress on the subscription status.
"""

import logging
from dataclasses import dataclass
from typing import Any

from ..constants import (
    APPROVAL_AUTOMATIC,
    DEFAULT_CATALOG_SOURCE,
    DEFAULT_CATALOG_SOURCE_NAMESPACE,
    OPERATOR_GROUP_NAME,
)
from ..models import Installation
from .cluster import INSTALL_PLAN, OPERATOR_GROUP, SUBSCRIPTION, ClusterClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Target:
    """Where and from which catalog channel an operator package is installed."""

    package: str
    namespace: str
    channel: str
    catalog_source: str = DEFAULT_CATALOG_SOURCE
    catalog_source_namespace: str = DEFAULT_CATALOG_SOURCE_NAMESPACE


def install_plan_reference(subscription: dict[str, Any]) -> str | None:
    """Name of the install plan a subscription currently points at."""
    status = subscription.get("status") or {}
    for key in ("installplan", "installPlanRef"):
        name = (status.get(key) or {}).get("name")
        if name:
            return name
    return None


class MarketplaceManager:
    """Idempotent installation of product operators through OLM."""

    def __init__(self, cluster: ClusterClient):
        self.cluster = cluster

    async def install_operator(
        self,
        owner: Installation,
        target: Target,
        operator_group_namespaces: list[str],
        approval_strategy: str = APPROVAL_AUTOMATIC,
    ) -> None:
        """
        Ensure an OperatorGroup and a Subscription exist for the target.

        Both resources carry the owner's labels. Existing resources are only
        replaced when one of the fields managed here differs.

        Raises:
            KubernetesAPIError: If any read or write against the cluster fails
        """
        labels = owner.owner_labels()

        await self._upsert(
            self.cluster.for_kind(OPERATOR_GROUP),
            OPERATOR_GROUP_NAME,
            target.namespace,
            {"targetNamespaces": list(operator_group_namespaces)},
            labels,
        )
        await self._upsert(
            self.cluster.for_kind(SUBSCRIPTION),
            target.package,
            target.namespace,
            {
                "name": target.package,
                "channel": target.channel,
                "source": target.catalog_source,
                "sourceNamespace": target.catalog_source_namespace,
                "installPlanApproval": approval_strategy,
            },
            labels,
        )

    async def get_subscription_install_plans(
        self, name: str, namespace: str
    ) -> tuple[list[dict[str, Any]], dict[str, Any] | None]:
        """
        Fetch a subscription and the install plans in its namespace.

        Returns:
            Tuple of (install plans, subscription). The subscription is None
            and the plan list empty when the subscription does not exist.
        """
        subscription = await self.cluster.for_kind(SUBSCRIPTION).get(name, namespace)
        if subscription is None:
            return [], None
        plans = await self.cluster.for_kind(INSTALL_PLAN).list(namespace)
        return plans, subscription

    async def _upsert(
        self,
        accessor,
        name: str,
        namespace: str,
        spec: dict[str, Any],
        labels: dict[str, str],
    ) -> None:
        existing = await accessor.get(name, namespace)
        if existing is None:
            body = {
                "metadata": {"name": name, "namespace": namespace, "labels": labels},
                "spec": spec,
            }
            await accessor.create(body, namespace)
            logger.info(f"Created {accessor.kind.kind} {namespace}/{name}")
            return

        current_spec = existing.get("spec") or {}
        metadata = existing.setdefault("metadata", {})
        current_labels = metadata.get("labels") or {}
        if all(current_spec.get(k) == v for k, v in spec.items()) and all(
            current_labels.get(k) == v for k, v in labels.items()
        ):
            return

        existing["spec"] = {**current_spec, **spec}
        metadata["labels"] = {**current_labels, **labels}
        await accessor.replace(name, existing, namespace)
        logger.info(f"Updated {accessor.kind.kind} {namespace}/{name}")
