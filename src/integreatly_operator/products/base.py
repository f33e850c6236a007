"""
Product reconciliation pipeline.

A product is installed by running a fixed sequence of idempotent steps:
namespaces, operator subscription, components. The first step that does not
report ``COMPLETED`` ends the pass and its phase becomes the product phase.
No step marker is persisted; every pass starts again from the namespaces and
re-probes the cluster, so a crash between any two steps is harmless.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from ..config import ProductConfig
from ..constants import (
    APPROVAL_AUTOMATIC,
    CONFIG_KEY_NAMESPACE,
    CONFIG_KEY_OPERATOR_NAMESPACE,
    OPERATOR_NAMESPACE_SUFFIX,
)
from ..errors import OperatorError
from ..models import Installation, StatusPhase
from ..services.custom_resource_reconciler import CustomResourceReconciler
from ..services.namespace_reconciler import NamespaceReconciler
from ..services.subscription_reconciler import SubscriptionReconciler
from ..utils.cluster import ClusterClient, ResourceKind
from ..utils.marketplace import MarketplaceManager, Target

logger = logging.getLogger(__name__)

SpecBuilder = Callable[[ProductConfig, Installation], dict[str, Any]]
Step = Callable[[Installation], Awaitable[StatusPhase]]


@dataclass(frozen=True)
class ProductDefinition:
    """Static description of an installable product."""

    name: str
    package: str
    channel: str
    namespace_suffix: str
    resource_kind: ResourceKind
    resource_name: str
    build_spec: SpecBuilder = field(default=lambda config, installation: {})
    # Some operators only watch their own namespace
    resource_in_operator_namespace: bool = False
    approval_strategy: str = APPROVAL_AUTOMATIC


@dataclass
class ReconcileResult:
    """Phase a product reached in one pass, plus the error that stopped it."""

    phase: StatusPhase
    error: OperatorError | None = None

    @property
    def message(self) -> str:
        return str(self.error) if self.error else ""


class ProductReconciler:
    """Runs the ordered installation steps for one product."""

    def __init__(
        self,
        definition: ProductDefinition,
        config: ProductConfig,
        cluster: ClusterClient,
        marketplace: MarketplaceManager | None = None,
    ):
        self.definition = definition
        self.config = config
        self.cluster = cluster
        self.namespaces = NamespaceReconciler(cluster)
        self.subscriptions = SubscriptionReconciler(
            marketplace or MarketplaceManager(cluster)
        )
        self.custom_resources = CustomResourceReconciler(cluster)

    def apply_defaults(self, installation: Installation) -> None:
        """Fill in namespaces the stored config does not set yet."""
        self.config.set_default(
            CONFIG_KEY_NAMESPACE,
            installation.spec.namespace_prefix + self.definition.namespace_suffix,
        )
        self.config.set_default(
            CONFIG_KEY_OPERATOR_NAMESPACE,
            self.config.namespace + OPERATOR_NAMESPACE_SUFFIX,
        )

    def steps(self) -> list[tuple[str, Step]]:
        return [
            ("namespaces", self.reconcile_namespaces),
            ("subscription", self.reconcile_subscription),
            ("components", self.reconcile_components),
        ]

    async def reconcile(self, installation: Installation) -> ReconcileResult:
        """
        Run one pass of the product pipeline.

        Expected transitional states come back as a phase. Any OperatorError
        ends the pass with FAILED and is returned rather than raised, so the
        caller can record it and move on to the next product.
        """
        self.apply_defaults(installation)

        try:
            for step_name, step in self.steps():
                phase = await step(installation)
                if phase is not StatusPhase.COMPLETED:
                    logger.debug(
                        f"Product {self.definition.name} waiting at step {step_name}",
                        extra={"product": self.definition.name, "phase": phase.value},
                    )
                    return ReconcileResult(phase)
        except OperatorError as e:
            return ReconcileResult(StatusPhase.FAILED, e)

        return ReconcileResult(StatusPhase.COMPLETED)

    async def reconcile_namespaces(self, installation: Installation) -> StatusPhase:
        for name in (self.config.operator_namespace, self.config.namespace):
            phase = await self.namespaces.reconcile_namespace(name, installation)
            if phase is not StatusPhase.COMPLETED:
                return phase
        return StatusPhase.COMPLETED

    async def reconcile_subscription(self, installation: Installation) -> StatusPhase:
        target = Target(
            package=self.definition.package,
            namespace=self.config.operator_namespace,
            channel=self.definition.channel,
        )
        return await self.subscriptions.reconcile_subscription(
            installation,
            target,
            [self.components_namespace],
            self.definition.approval_strategy,
        )

    async def reconcile_components(self, installation: Installation) -> StatusPhase:
        return await self.custom_resources.reconcile(
            self.definition.resource_kind,
            self.definition.resource_name,
            self.components_namespace,
            self.definition.build_spec(self.config, installation),
            installation.owner_labels(),
        )

    @property
    def components_namespace(self) -> str:
        if self.definition.resource_in_operator_namespace:
            return self.config.operator_namespace
        return self.config.namespace
