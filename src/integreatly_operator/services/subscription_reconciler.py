"""
Subscription phase of a product reconciliation.

The referenced install plan reaching ``Complete`` is the only success signal.
Every other non-failed plan phase keeps the product ``IN_PROGRESS`` for as
long as it takes; there is no stuck-install timeout.
"""

import logging

from ..constants import APPROVAL_AUTOMATIC, INSTALL_PLAN_COMPLETE, INSTALL_PLAN_FAILED
from ..errors import SubscriptionFailedError
from ..models import Installation, StatusPhase
from ..utils.marketplace import MarketplaceManager, Target, install_plan_reference

logger = logging.getLogger(__name__)


def install_plan_failure_message(plan: dict) -> str:
    """Message of the plan's last condition, or a generic fallback."""
    conditions = (plan.get("status") or {}).get("conditions") or []
    for condition in reversed(conditions):
        if condition.get("message"):
            return condition["message"]
    name = plan.get("metadata", {}).get("name", "")
    return f"install plan {name} failed"


class SubscriptionReconciler:
    """Installs a product operator and waits for its install plan."""

    def __init__(self, marketplace: MarketplaceManager):
        self.marketplace = marketplace

    async def reconcile_subscription(
        self,
        installation: Installation,
        target: Target,
        operator_group_namespaces: list[str],
        approval_strategy: str = APPROVAL_AUTOMATIC,
    ) -> StatusPhase:
        """
        Ensure the operator subscription exists and its install plan completed.

        Raises:
            SubscriptionFailedError: If the referenced install plan failed
            KubernetesAPIError: If the install call or a read fails
        """
        await self.marketplace.install_operator(
            installation, target, operator_group_namespaces, approval_strategy
        )

        plans, subscription = await self.marketplace.get_subscription_install_plans(
            target.package, target.namespace
        )
        if subscription is None:
            logger.debug(f"Subscription {target.namespace}/{target.package} not found yet")
            return StatusPhase.IN_PROGRESS

        plan_name = install_plan_reference(subscription)
        if not plan_name:
            return StatusPhase.IN_PROGRESS

        plan = next(
            (p for p in plans if p.get("metadata", {}).get("name") == plan_name),
            None,
        )
        if plan is None:
            return StatusPhase.IN_PROGRESS

        phase = (plan.get("status") or {}).get("phase", "")
        if phase == INSTALL_PLAN_COMPLETE:
            return StatusPhase.COMPLETED
        if phase == INSTALL_PLAN_FAILED:
            raise SubscriptionFailedError(plan_name, install_plan_failure_message(plan))

        logger.debug(
            f"Install plan {plan_name} in phase '{phase}'",
            extra={"namespace": target.namespace, "phase": phase},
        )
        return StatusPhase.IN_PROGRESS
