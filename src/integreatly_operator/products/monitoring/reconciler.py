"""Monitoring product: application-monitoring operator plus alerting config."""

from typing import Any

from ...config import ProductConfig
from ...models import Installation, StatusPhase
from ...utils.cluster import APPLICATION_MONITORING, ClusterClient
from ...utils.marketplace import MarketplaceManager
from ..base import ProductDefinition, ProductReconciler, Step
from .alertmanager import AlertmanagerConfigReconciler, AlertmanagerConfigRequest


def build_application_monitoring_spec(
    config: ProductConfig, installation: Installation
) -> dict[str, Any]:
    return {
        "labelSelector": "middleware",
        "additionalScrapeConfigSecretName": "integreatly-additional-scrape-configs",
        "prometheusRetention": config.get("PROMETHEUS_RETENTION", "15d"),
        "prometheusStorageRequest": config.get("PROMETHEUS_STORAGE_REQUEST", "10Gi"),
    }


MONITORING = ProductDefinition(
    name="monitoring",
    package="integreatly-monitoring",
    channel="integreatly",
    namespace_suffix="middleware-monitoring",
    resource_kind=APPLICATION_MONITORING,
    resource_name="middleware-monitoring",
    build_spec=build_application_monitoring_spec,
    resource_in_operator_namespace=True,
)


class MonitoringReconciler(ProductReconciler):
    """Adds the alertmanager configuration step after the components."""

    def __init__(
        self,
        definition: ProductDefinition,
        config: ProductConfig,
        cluster: ClusterClient,
        marketplace: MarketplaceManager | None = None,
        alert_address_override: str | None = None,
    ):
        super().__init__(definition, config, cluster, marketplace)
        self.alert_address_override = alert_address_override

    def steps(self) -> list[tuple[str, Step]]:
        return [
            *super().steps(),
            ("alertmanager", self.reconcile_alertmanager_config),
        ]

    async def reconcile_alertmanager_config(
        self, installation: Installation
    ) -> StatusPhase:
        request = AlertmanagerConfigRequest(
            installation_namespace=installation.namespace,
            smtp_secret=installation.spec.smtp_secret,
            pagerduty_secret=installation.spec.pagerduty_secret,
            deadmanssnitch_secret=installation.spec.deadmanssnitch_secret,
            monitoring_namespace=self.config.operator_namespace,
            alert_address_override=self.alert_address_override,
        )
        alertmanager = AlertmanagerConfigReconciler(
            self.cluster, installation.owner_labels()
        )
        return await alertmanager.render_and_persist(request)
