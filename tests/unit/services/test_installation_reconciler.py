"""
Unit tests for InstallationReconciler.

A pass reads the product configs, reconciles every declared product in
order and folds the product phases into the Installation status. Product
failures are reported in the status; only a config read failure aborts the
whole pass.
"""

import copy
from unittest.mock import patch

import kopf
import pytest
import yaml

from integreatly_operator.config import ConfigManager
from integreatly_operator.constants import (
    ALERTMANAGER_CONFIG_SECRET_KEY,
    ALERTMANAGER_CONFIG_SECRET_NAME,
    EVENT_REASON_CONFIG_FAILED,
    EVENT_REASON_PRODUCT_FAILED,
    EVENT_REASON_STAGE_COMPLETE,
)
from integreatly_operator.errors import KubernetesAPIError
from integreatly_operator.handlers.installation import StatusWrapper
from integreatly_operator.models import StatusPhase
from integreatly_operator.services.installation_reconciler import (
    InstallationReconciler,
    aggregate_phase,
)
from integreatly_operator.settings import settings
from integreatly_operator.utils.cluster import CONFIG_MAP, SECRET, decode_secret_data
from tests.fixtures.installation_resources import (
    INSTALLATION_BODY,
    INSTALLATION_NAME,
    INSTALLATION_NAMESPACE,
    MONITORING_NAMESPACE,
    MONITORING_OPERATOR_NAMESPACE,
    SMTP_DATA,
    SMTP_SECRET,
    seed_monitoring_ready,
)

CONFIG_MAP_NAME = "installation-config"

C = StatusPhase.COMPLETED
P = StatusPhase.IN_PROGRESS
F = StatusPhase.FAILED


@pytest.mark.parametrize(
    "phases, expected",
    [
        ([], C),
        ([C, C], C),
        ([C, P], P),
        ([StatusPhase.NOT_INSTALLED, C], P),
        ([C, P, F], F),
        ([F, C], F),
    ],
)
def test_aggregate_phase(phases, expected):
    assert aggregate_phase(phases) is expected


@pytest.fixture
def events():
    with patch("kopf.event") as mock_event:
        yield mock_event


@pytest.fixture
def reconciler(cluster):
    return InstallationReconciler(
        cluster=cluster,
        config_manager=ConfigManager(cluster, INSTALLATION_NAMESPACE, CONFIG_MAP_NAME),
    )


async def run_pass(reconciler, current_status=None, **spec_overrides):
    body = copy.deepcopy(INSTALLATION_BODY)
    body["spec"].update(spec_overrides)
    patch_status: dict = {}
    await reconciler.reconcile(
        spec=body["spec"],
        name=INSTALLATION_NAME,
        namespace=INSTALLATION_NAMESPACE,
        status=StatusWrapper(patch_status),
        meta=body["metadata"],
        body=body,
        current_status=current_status or {},
    )
    return patch_status


def event_reasons(events) -> list[str]:
    return [c.kwargs["reason"] for c in events.call_args_list]


def conditions_by_type(status: dict) -> dict[str, dict]:
    return {c["type"]: c for c in status["conditions"]}


class TestFirstPass:
    @pytest.mark.asyncio
    async def test_empty_cluster_is_in_progress(self, cluster, reconciler, events):
        status = await run_pass(reconciler)

        assert status["phase"] == "in progress"
        assert status["products"]["monitoring"] == {"phase": "in progress", "message": ""}
        assert status["message"] == "0 of 1 products installed"
        assert status["lastError"] == ""
        assert status["lastReconcileTime"]
        conditions = conditions_by_type(status)
        assert conditions["Ready"]["status"] == "False"
        assert conditions["Progressing"]["status"] == "True"
        assert "Degraded" not in conditions
        assert events.call_count == 0

    @pytest.mark.asyncio
    async def test_derived_namespaces_are_persisted(self, cluster, reconciler, events):
        await run_pass(reconciler)

        config_map = cluster.stored(CONFIG_MAP, CONFIG_MAP_NAME, INSTALLATION_NAMESPACE)
        stored = yaml.safe_load(config_map["data"]["monitoring"])
        assert stored == {
            "NAMESPACE": MONITORING_NAMESPACE,
            "OPERATOR_NAMESPACE": MONITORING_OPERATOR_NAMESPACE,
        }

    @pytest.mark.asyncio
    async def test_stored_config_is_used(self, cluster, reconciler, events):
        cluster.add_config_map(
            CONFIG_MAP_NAME,
            INSTALLATION_NAMESPACE,
            {"monitoring": "NAMESPACE: mon\nOPERATOR_NAMESPACE: mon-operator\n"},
        )

        await run_pass(reconciler)

        assert ("create", "Namespace", None, "mon-operator") in cluster.mutations
        # Nothing new to persist
        assert not any(m[1] == "ConfigMap" for m in cluster.mutations)


class TestCompletedPass:
    @pytest.mark.asyncio
    async def test_all_products_completed(self, cluster, reconciler, events):
        seed_monitoring_ready(cluster)

        status = await run_pass(reconciler)

        assert status["phase"] == "completed"
        assert status["message"] == "All products installed"
        assert status["products"]["monitoring"]["phase"] == "completed"
        conditions = conditions_by_type(status)
        assert conditions["Ready"]["status"] == "True"
        assert conditions["Ready"]["observedGeneration"] == 1
        assert "Progressing" not in conditions
        assert event_reasons(events) == [EVENT_REASON_STAGE_COMPLETE]
        assert events.call_args.kwargs["message"] == "monitoring installation completed"

    @pytest.mark.asyncio
    async def test_completion_event_is_posted_once(self, cluster, reconciler, events):
        seed_monitoring_ready(cluster)
        first = await run_pass(reconciler)
        events.reset_mock()

        second = await run_pass(reconciler, current_status=first)

        assert second["phase"] == "completed"
        assert events.call_count == 0
        # Ready did not flip, so its transition time is carried over
        assert (
            conditions_by_type(second)["Ready"]["lastTransitionTime"]
            == conditions_by_type(first)["Ready"]["lastTransitionTime"]
        )

    @pytest.mark.asyncio
    async def test_removed_product_is_dropped_from_status(
        self, cluster, reconciler, events
    ):
        seed_monitoring_ready(cluster)
        first = await run_pass(reconciler, products=["monitoring", "amqstreams"])

        second = await run_pass(reconciler, current_status=first)

        assert second["products"]["amqstreams"] is None
        assert second["products"]["monitoring"]["phase"] == "completed"
        assert second["phase"] == "completed"

    @pytest.mark.asyncio
    async def test_repeated_pass_writes_nothing(self, cluster, reconciler, events):
        seed_monitoring_ready(cluster)
        await run_pass(reconciler)
        cluster.mutations.clear()

        await run_pass(reconciler)

        assert cluster.mutations == []

    @pytest.mark.asyncio
    async def test_alerting_address_override(
        self, cluster, reconciler, events, monkeypatch
    ):
        monkeypatch.setattr(settings, "alerting_email_address", "test")
        seed_monitoring_ready(cluster)

        await run_pass(reconciler)

        secret = cluster.stored(
            SECRET, ALERTMANAGER_CONFIG_SECRET_NAME, MONITORING_OPERATOR_NAMESPACE
        )
        rendered = yaml.safe_load(
            decode_secret_data(secret)[ALERTMANAGER_CONFIG_SECRET_KEY]
        )
        receivers = {r["name"]: r for r in rendered["receivers"]}
        assert receivers["default"]["email_configs"][0]["to"] == "test"


class TestProductFailures:
    @pytest.mark.asyncio
    async def test_failed_product_is_reported_not_raised(
        self, cluster, reconciler, events
    ):
        seed_monitoring_ready(cluster)
        del cluster.for_kind(SECRET).objects[(INSTALLATION_NAMESPACE, "test-smtp")]

        status = await run_pass(reconciler)

        error = 'could not obtain smtp credentials secret: secrets "test-smtp" not found'
        assert status["phase"] == "failed"
        assert status["products"]["monitoring"] == {"phase": "failed", "message": error}
        assert status["lastError"] == f"monitoring: {error}"
        assert status["message"] == f"1 product(s) failed; monitoring: {error}"
        conditions = conditions_by_type(status)
        assert conditions["Degraded"]["status"] == "True"
        assert event_reasons(events) == [EVENT_REASON_PRODUCT_FAILED]
        assert events.call_args.kwargs["type"] == "Warning"

    @pytest.mark.asyncio
    async def test_unchanged_failure_is_not_posted_again(
        self, cluster, reconciler, events
    ):
        seed_monitoring_ready(cluster)
        del cluster.for_kind(SECRET).objects[(INSTALLATION_NAMESPACE, "test-smtp")]
        first = await run_pass(reconciler)
        events.reset_mock()

        await run_pass(reconciler, current_status=first)

        assert events.call_count == 0

    @pytest.mark.asyncio
    async def test_unknown_product_does_not_block_others(
        self, cluster, reconciler, events
    ):
        seed_monitoring_ready(cluster)

        status = await run_pass(reconciler, products=["fuse", "monitoring"])

        assert status["products"]["fuse"]["phase"] == "failed"
        assert "unknown product fuse" in status["products"]["fuse"]["message"]
        assert status["products"]["monitoring"]["phase"] == "completed"
        assert status["phase"] == "failed"
        assert list(status["products"]) == ["fuse", "monitoring"]

    @pytest.mark.asyncio
    async def test_config_write_failure_fails_product(
        self, cluster, reconciler, events
    ):
        seed_monitoring_ready(cluster)
        cluster.fail(
            "create", CONFIG_MAP, KubernetesAPIError("denied", reason="Forbidden", status=403)
        )

        status = await run_pass(reconciler)

        assert status["products"]["monitoring"]["phase"] == "failed"
        assert status["products"]["monitoring"]["message"] == "denied"

    @pytest.mark.asyncio
    async def test_binary_key_in_credentials_secret_does_not_abort_pass(
        self, cluster, reconciler, events
    ):
        seed_monitoring_ready(cluster)
        cluster.add_secret(
            SMTP_SECRET,
            INSTALLATION_NAMESPACE,
            {**SMTP_DATA, "ca.der": b"\x30\x82\xff\xfe"},
        )

        status = await run_pass(reconciler, products=["monitoring", "amqstreams"])

        assert status["products"]["monitoring"]["phase"] == "completed"
        assert "amqstreams" in status["products"]
        assert any(
            m[1] == "Namespace" and "amq-streams" in m[3]
            for m in cluster.mutations
        )

    @pytest.mark.asyncio
    async def test_binary_smtp_host_fails_only_monitoring(
        self, cluster, reconciler, events
    ):
        seed_monitoring_ready(cluster)
        cluster.add_secret(
            SMTP_SECRET, INSTALLATION_NAMESPACE, {**SMTP_DATA, "host": b"\x30\x82\xff"}
        )

        status = await run_pass(reconciler, products=["monitoring", "amqstreams"])

        assert status["products"]["monitoring"] == {
            "phase": "failed",
            "message": "host in credentials secret is not valid text",
        }
        assert status["products"]["amqstreams"]["phase"] == "in progress"


class TestAbortedPass:
    @pytest.mark.asyncio
    async def test_config_read_failure_aborts_before_products(
        self, cluster, reconciler, events
    ):
        cluster.fail("get", CONFIG_MAP, KubernetesAPIError("unavailable", status=503))
        patch_status: dict = {}

        with pytest.raises(kopf.TemporaryError):
            await reconciler.reconcile(
                spec=INSTALLATION_BODY["spec"],
                name=INSTALLATION_NAME,
                namespace=INSTALLATION_NAMESPACE,
                status=StatusWrapper(patch_status),
                meta=INSTALLATION_BODY["metadata"],
                body=INSTALLATION_BODY,
            )

        assert cluster.mutations == []
        assert patch_status["phase"] == "failed"
        assert "could not read product config" in patch_status["lastError"]
        assert patch_status["products"] == {}
        assert conditions_by_type(patch_status)["Degraded"]["status"] == "True"
        assert event_reasons(events) == [EVENT_REASON_CONFIG_FAILED]

    @pytest.mark.asyncio
    async def test_failure_flips_previous_conditions(self, cluster, reconciler, events):
        seed_monitoring_ready(cluster)
        first = await run_pass(reconciler)
        cluster.fail("get", CONFIG_MAP, KubernetesAPIError("unavailable", status=503))
        patch_status: dict = {}

        with pytest.raises(kopf.TemporaryError):
            await reconciler.reconcile(
                spec=INSTALLATION_BODY["spec"],
                name=INSTALLATION_NAME,
                namespace=INSTALLATION_NAMESPACE,
                status=StatusWrapper(patch_status),
                meta=INSTALLATION_BODY["metadata"],
                current_status=first,
            )

        conditions = conditions_by_type(patch_status)
        assert conditions["Ready"]["status"] == "False"
        assert conditions["Ready"]["reason"] == "ReconciliationFailed"
        assert conditions["Degraded"]["status"] == "True"

    @pytest.mark.asyncio
    async def test_invalid_spec_is_permanent(self, cluster, reconciler, events):
        with pytest.raises(kopf.PermanentError):
            await run_pass(reconciler, products=["monitoring", "monitoring"])

        assert cluster.mutations == []
