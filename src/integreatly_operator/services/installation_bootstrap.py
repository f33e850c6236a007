"""
Creation of the default Installation at operator startup.

With auto-install enabled, a fresh cluster gets an Installation without an
administrator applying one by hand. Nothing is created when the namespace
already holds an Installation, whatever its name.
"""

import logging
from typing import Any

from ..constants import DEFAULT_INSTALLATION_NAME
from ..errors import ConfigurationError
from ..utils.cluster import INSTALLATION, ClusterClient

logger = logging.getLogger(__name__)


def build_installation_body(
    name: str, namespace: str, use_cluster_storage: str
) -> dict[str, Any]:
    return {
        "metadata": {"name": name, "namespace": namespace},
        "spec": {"useClusterStorage": use_cluster_storage},
    }


async def create_installation_cr(
    cluster: ClusterClient,
    namespace: str,
    use_cluster_storage: str = "",
    name: str = DEFAULT_INSTALLATION_NAME,
) -> dict[str, Any] | None:
    """
    Create the default Installation unless one already exists.

    Args:
        cluster: Cluster client
        namespace: Watch namespace the Installation is created in
        use_cluster_storage: Value for ``spec.useClusterStorage``
        name: Name of the Installation

    Returns:
        The created Installation, or None if one already existed

    Raises:
        ConfigurationError: If no namespace is given
        KubernetesAPIError: If listing or creating fails
    """
    if not namespace:
        raise ConfigurationError(
            "WATCH_NAMESPACE must be set to create an Installation at startup",
            retryable=False,
        )

    accessor = cluster.for_kind(INSTALLATION)
    existing = await accessor.list(namespace)
    if existing:
        logger.debug(
            f"Installation already present in {namespace}, skipping bootstrap"
        )
        return None

    created = await accessor.create(
        build_installation_body(name, namespace, use_cluster_storage), namespace
    )
    logger.info(f"Created Installation {namespace}/{name}")
    return created
