"""
Alertmanager configuration for the monitoring product.

The configuration is rendered from three administrator-provided credential
secrets and the host of the alertmanager route, then stored in the secret
alertmanager mounts. It is regenerated in full on every pass: the output
depends only on those inputs and the optional to-address override.
"""

import logging
from dataclasses import dataclass

from ...constants import (
    ALERTMANAGER_CONFIG_SECRET_KEY,
    ALERTMANAGER_CONFIG_SECRET_NAME,
    ALERTMANAGER_CONFIG_TEMPLATE_PATH,
    ALERTMANAGER_ROUTE_NAME,
    DEADMANSSNITCH_URL_FIELD,
    PAGERDUTY_SERVICE_KEY_FIELD,
    SMTP_HOST_FIELD,
    SMTP_PASSWORD_FIELD,
    SMTP_PORT_FIELD,
    SMTP_USERNAME_FIELD,
)
from ...errors import MissingDependencyError
from ...models import StatusPhase
from ...utils.cluster import ROUTE, ClusterClient, not_found_message
from ...utils.secrets import (
    read_dependency_secret,
    require_field,
    secret_field,
    upsert_secret,
)
from ...utils.templating import TemplateHelper

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlertmanagerConfigRequest:
    """Inputs of one alertmanager configuration render."""

    installation_namespace: str
    smtp_secret: str
    pagerduty_secret: str
    deadmanssnitch_secret: str
    monitoring_namespace: str
    alert_address_override: str | None = None


class AlertmanagerConfigReconciler:
    """Renders and stores the alertmanager configuration secret."""

    def __init__(self, cluster: ClusterClient, labels: dict[str, str] | None = None):
        self.cluster = cluster
        self.labels = labels or {}

    async def build_parameters(self, request: AlertmanagerConfigRequest) -> dict[str, str]:
        """
        Collect template parameters, validating each dependency in turn.

        Dependencies are checked in a fixed order and the first problem
        raises, so with several missing inputs the SMTP secret is reported
        before PagerDuty, PagerDuty before Dead Man's Snitch, and all of
        them before the route.

        Raises:
            MissingDependencyError: If a secret or the route does not exist
            InvalidDependencyError: If a secret lacks its required field or a
                field read from it is not text
        """
        namespace = request.installation_namespace

        smtp = await read_dependency_secret(
            self.cluster, request.smtp_secret, namespace, "smtp", "smtp"
        )
        smtp_parameters = {
            "SMTPHost": secret_field(smtp, SMTP_HOST_FIELD),
            "SMTPPort": secret_field(smtp, SMTP_PORT_FIELD),
            "SMTPUsername": secret_field(smtp, SMTP_USERNAME_FIELD),
            "SMTPPassword": secret_field(smtp, SMTP_PASSWORD_FIELD),
        }

        pagerduty = await read_dependency_secret(
            self.cluster, request.pagerduty_secret, namespace, "pagerduty", "pagerduty"
        )
        service_key = require_field(
            pagerduty,
            PAGERDUTY_SERVICE_KEY_FIELD,
            "serviceKey is undefined in pager duty secret",
        )

        snitch = await read_dependency_secret(
            self.cluster,
            request.deadmanssnitch_secret,
            namespace,
            "deadmanssnitch",
            "dead mans snitch",
        )
        snitch_url = require_field(
            snitch, DEADMANSSNITCH_URL_FIELD, "url is undefined in dead mans switch secret"
        )

        route = await self.cluster.routes.get(
            ALERTMANAGER_ROUTE_NAME, request.monitoring_namespace
        )
        if route is None:
            raise MissingDependencyError(
                "route",
                "could not obtain alert manager route: "
                f"{not_found_message(ROUTE, ALERTMANAGER_ROUTE_NAME)}",
            )
        route_host = (route.get("spec") or {}).get("host", "")

        return {
            **smtp_parameters,
            "AlertManagerRoute": route_host,
            "PagerDutyServiceKey": service_key,
            "DeadMansSnitchURL": snitch_url,
            "SMTPToAddress": request.alert_address_override or f"noreply@{route_host}",
        }

    async def render_and_persist(self, request: AlertmanagerConfigRequest) -> StatusPhase:
        """
        Render the alertmanager configuration and upsert its secret.

        Returns:
            COMPLETED once the secret holds the rendered configuration

        Raises:
            MissingDependencyError: If a credential secret or the route is absent
            InvalidDependencyError: If a credential secret lacks its field
            ConfigurationError: If the template cannot be rendered
            KubernetesAPIError: If reading or writing a resource fails
        """
        parameters = await self.build_parameters(request)
        rendered = TemplateHelper(parameters).load_template(
            ALERTMANAGER_CONFIG_TEMPLATE_PATH
        )

        updated = await upsert_secret(
            self.cluster,
            ALERTMANAGER_CONFIG_SECRET_NAME,
            request.monitoring_namespace,
            {ALERTMANAGER_CONFIG_SECRET_KEY: rendered},
            self.labels,
        )
        if updated:
            logger.info(
                "Alertmanager configuration updated",
                extra={"namespace": request.monitoring_namespace},
            )
        return StatusPhase.COMPLETED
