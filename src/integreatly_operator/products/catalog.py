"""
Catalogue of installable products.

Each entry maps a product name, as it appears in ``spec.products`` of an
Installation, to its definition and the reconciler class that drives it.
"""

from typing import Any

from ..config import ProductConfig
from ..errors import ConfigurationError
from ..models import Installation
from ..utils.cluster import CHE_CLUSTER, KAFKA, ClusterClient
from ..utils.marketplace import MarketplaceManager
from .base import ProductDefinition, ProductReconciler
from .monitoring import MONITORING, MonitoringReconciler


def _storage(installation: Installation) -> dict[str, Any]:
    # "false" opts out of cluster storage; anything else keeps it
    if installation.spec.use_cluster_storage.lower() == "false":
        return {"type": "ephemeral"}
    return {"type": "persistent-claim", "size": "10Gi", "deleteClaim": False}


def build_kafka_spec(config: ProductConfig, installation: Installation) -> dict[str, Any]:
    return {
        "kafka": {
            "version": config.get("KAFKA_VERSION", "2.5.0"),
            "replicas": 3,
            "listeners": {"plain": {}, "tls": {}},
            "config": {
                "offsets.topic.replication.factor": 3,
                "transaction.state.log.replication.factor": 3,
                "transaction.state.log.min.isr": 2,
                "log.message.format.version": "2.5",
            },
            "storage": _storage(installation),
        },
        "zookeeper": {"replicas": 3, "storage": _storage(installation)},
        "entityOperator": {"topicOperator": {}, "userOperator": {}},
    }


def build_che_cluster_spec(
    config: ProductConfig, installation: Installation
) -> dict[str, Any]:
    return {
        "server": {
            "cheFlavor": "codeready",
            "tlsSupport": True,
            "selfSignedCert": False,
        },
        "database": {"externalDb": False},
        "auth": {"openShiftoAuth": True, "externalIdentityProvider": False},
        "storage": {
            "pvcStrategy": "per-workspace",
            "pvcClaimSize": config.get("PVC_CLAIM_SIZE", "1Gi"),
            "preCreateSubPaths": True,
        },
    }


AMQ_STREAMS = ProductDefinition(
    name="amqstreams",
    package="amq-streams",
    channel="stable",
    namespace_suffix="amq-streams",
    resource_kind=KAFKA,
    resource_name="rhmi-cluster",
    build_spec=build_kafka_spec,
)

CODEREADY_WORKSPACES = ProductDefinition(
    name="codeready-workspaces",
    package="codeready-workspaces",
    channel="latest",
    namespace_suffix="codeready-workspaces",
    resource_kind=CHE_CLUSTER,
    resource_name="rhmi-workspaces",
    build_spec=build_che_cluster_spec,
)

PRODUCTS: dict[str, tuple[ProductDefinition, type[ProductReconciler]]] = {
    MONITORING.name: (MONITORING, MonitoringReconciler),
    AMQ_STREAMS.name: (AMQ_STREAMS, ProductReconciler),
    CODEREADY_WORKSPACES.name: (CODEREADY_WORKSPACES, ProductReconciler),
}


def build_product_reconciler(
    name: str,
    config: ProductConfig,
    cluster: ClusterClient,
    marketplace: MarketplaceManager | None = None,
    alert_address_override: str | None = None,
) -> ProductReconciler:
    """
    Create the reconciler for a product.

    Raises:
        ConfigurationError: If the product name is not in the catalogue
    """
    try:
        definition, reconciler_class = PRODUCTS[name]
    except KeyError:
        raise ConfigurationError(
            f"unknown product {name}, expected one of {', '.join(sorted(PRODUCTS))}",
            retryable=False,
        ) from None

    if reconciler_class is MonitoringReconciler:
        return MonitoringReconciler(
            definition, config, cluster, marketplace, alert_address_override
        )
    return reconciler_class(definition, config, cluster, marketplace)
