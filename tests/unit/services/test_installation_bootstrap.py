"""Unit tests for creating the default Installation at startup."""

import pytest

from integreatly_operator.errors import ConfigurationError, KubernetesAPIError
from integreatly_operator.services.installation_bootstrap import create_installation_cr
from integreatly_operator.utils.cluster import INSTALLATION

WATCH_NAMESPACE = "redhat-rhmi-operator"


class TestCreateInstallationCR:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("use_cluster_storage", ["true", "false", ""])
    async def test_creates_installation_with_storage_flag(
        self, cluster, use_cluster_storage
    ):
        created = await create_installation_cr(
            cluster, WATCH_NAMESPACE, use_cluster_storage
        )

        assert created is not None
        stored = cluster.stored(INSTALLATION, "rhmi", WATCH_NAMESPACE)
        assert stored["spec"] == {"useClusterStorage": use_cluster_storage}
        assert stored["metadata"]["namespace"] == WATCH_NAMESPACE

    @pytest.mark.asyncio
    async def test_existing_installation_is_left_alone(self, cluster):
        cluster.add(
            INSTALLATION,
            {"metadata": {"name": "custom", "namespace": WATCH_NAMESPACE}, "spec": {}},
        )

        created = await create_installation_cr(cluster, WATCH_NAMESPACE, "true")

        assert created is None
        assert cluster.mutations == []
        assert cluster.stored(INSTALLATION, "rhmi", WATCH_NAMESPACE) is None

    @pytest.mark.asyncio
    async def test_installation_in_other_namespace_does_not_count(self, cluster):
        cluster.add(
            INSTALLATION,
            {"metadata": {"name": "rhmi", "namespace": "elsewhere"}, "spec": {}},
        )

        created = await create_installation_cr(cluster, WATCH_NAMESPACE)

        assert created is not None

    @pytest.mark.asyncio
    async def test_missing_namespace_is_a_configuration_error(self, cluster):
        with pytest.raises(ConfigurationError) as exc_info:
            await create_installation_cr(cluster, "")

        assert exc_info.value.retryable is False
        assert "WATCH_NAMESPACE" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_list_failure_propagates(self, cluster):
        cluster.fail("list", INSTALLATION, KubernetesAPIError("forbidden", status=403))

        with pytest.raises(KubernetesAPIError):
            await create_installation_cr(cluster, WATCH_NAMESPACE)
