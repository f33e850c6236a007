"""
Installation reconciler - Drives every product of an Installation.

One pass reads the product configs, reconciles the products one after the
other in declared order, writes back changed configs and folds the product
phases into the Installation status.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from ..config import ConfigManager, ProductConfig
from ..constants import EVENT_REASON_CONFIG_FAILED, EVENT_REASON_PRODUCT_FAILED
from ..errors import ConfigurationError, OperatorError, PermanentError
from ..models import Installation, InstallationStatus, ProductStatus, StatusPhase
from ..products import ReconcileResult, build_product_reconciler
from ..settings import settings
from ..utils.cluster import ClusterClient
from ..utils.events import EventRecorder
from ..utils.marketplace import MarketplaceManager
from .base_reconciler import BaseReconciler


def aggregate_phase(phases: list[StatusPhase]) -> StatusPhase:
    """
    Fold product phases into the installation phase.

    Failed wins over everything, Completed requires every product to be
    Completed, and anything else is still in progress.
    """
    if any(phase is StatusPhase.FAILED for phase in phases):
        return StatusPhase.FAILED
    if all(phase is StatusPhase.COMPLETED for phase in phases):
        return StatusPhase.COMPLETED
    return StatusPhase.IN_PROGRESS


class InstallationReconciler(BaseReconciler):
    """Reconciles an Installation by reconciling each of its products."""

    def __init__(
        self,
        cluster: ClusterClient | None = None,
        config_manager: ConfigManager | None = None,
        marketplace: MarketplaceManager | None = None,
    ):
        super().__init__(cluster)
        self._config_manager = config_manager
        self._marketplace = marketplace

    @property
    def config_manager(self) -> ConfigManager:
        if self._config_manager is None:
            self._config_manager = ConfigManager(
                self.cluster, settings.operator_namespace, settings.config_map_name
            )
        return self._config_manager

    @property
    def marketplace(self) -> MarketplaceManager:
        if self._marketplace is None:
            self._marketplace = MarketplaceManager(self.cluster)
        return self._marketplace

    async def do_reconcile(
        self,
        spec: dict[str, Any],
        name: str,
        namespace: str,
        **kwargs,
    ) -> InstallationStatus:
        """
        Run one pass over all products of the Installation.

        Product failures are recorded in the returned status and do not
        abort the pass. Only problems that prevent every product from
        running raise.

        Raises:
            PermanentError: If the spec does not validate
            ConfigurationError: If the product configs cannot be read
        """
        previous = kwargs.get("current_status") or {}
        body = kwargs.get("body")
        events = EventRecorder(body) if body is not None else None

        try:
            installation = Installation.from_resource(
                name, namespace, kwargs.get("meta", {}), spec
            )
        except ValidationError as e:
            raise PermanentError(
                f"Invalid Installation spec: {e}",
                user_action="Fix the Installation spec and re-apply it",
            ) from e

        try:
            configs = await self.config_manager.read_config()
        except ConfigurationError as e:
            if events:
                events.record_error(EVENT_REASON_CONFIG_FAILED, str(e))
            raise

        # Resolved once so every product in the pass sees the same value
        alert_address_override = settings.alerting_email_address or None

        status = InstallationStatus(
            conditions=list(previous.get("conditions") or []),
        )
        previous_products = previous.get("products") or {}

        for product in installation.spec.products:
            config = configs.get(product) or ProductConfig(product)
            result = await self._reconcile_product(
                installation, product, config, alert_address_override
            )

            status.products[product] = ProductStatus(
                phase=result.phase, message=result.message
            )
            self._report_product(
                installation, product, result, previous_products.get(product), events
            )

        phases = [p.phase for p in status.products.values()]
        status.phase = aggregate_phase(phases)
        status.last_reconcile_time = datetime.now(UTC).isoformat()

        failures = [
            f"{product}: {p.message}"
            for product, p in status.products.items()
            if p.phase is StatusPhase.FAILED
        ]
        if failures:
            status.last_error = failures[0]
            status.message = f"{len(failures)} product(s) failed; " + "; ".join(failures)
        elif status.phase is StatusPhase.COMPLETED:
            status.message = "All products installed"
        else:
            completed = sum(1 for phase in phases if phase is StatusPhase.COMPLETED)
            status.message = f"{completed} of {len(phases)} products installed"

        return status

    async def _reconcile_product(
        self,
        installation: Installation,
        product: str,
        config: ProductConfig,
        alert_address_override: str | None,
    ) -> ReconcileResult:
        try:
            reconciler = build_product_reconciler(
                product,
                config,
                self.cluster,
                self.marketplace,
                alert_address_override,
            )
        except ConfigurationError as e:
            return ReconcileResult(StatusPhase.FAILED, e)

        result = await reconciler.reconcile(installation)

        if config.changed:
            try:
                await self.config_manager.write_config(config)
            except OperatorError as e:
                if result.error is None:
                    result = ReconcileResult(StatusPhase.FAILED, e)
        return result

    def _report_product(
        self,
        installation: Installation,
        product: str,
        result: ReconcileResult,
        previous: dict[str, Any] | None,
        events: EventRecorder | None,
    ) -> None:
        from ..observability.metrics import metrics_collector

        self.logger.log_product_result(
            installation.name, product, result.phase.value, result.error
        )
        metrics_collector.update_product_phase(installation.name, product, result.phase)

        if events is None:
            return
        previous = previous or {}
        # Only transitions are worth an event; the timer re-runs passes constantly
        if result.phase is StatusPhase.COMPLETED:
            if previous.get("phase") != StatusPhase.COMPLETED.value:
                events.record_stage_complete(product)
        elif result.phase is StatusPhase.FAILED:
            if previous.get("message") != result.message:
                events.record_error(
                    EVENT_REASON_PRODUCT_FAILED, f"{product}: {result.message}"
                )
