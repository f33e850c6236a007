"""Centralized operator settings using pydantic-settings.

This module provides a single source of truth for all operator configuration
loaded from environment variables. Uses pydantic for automatic validation,
type coercion, and documentation.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from integreatly_operator.constants import (
    DEFAULT_API_REQUEST_TIMEOUT,
    DEFAULT_CONFIG_MAP_NAME,
    DEFAULT_RECONCILE_INTERVAL,
)


class Settings(BaseSettings):
    """Operator configuration loaded from environment variables.

    All settings have sensible defaults for production use. Override via
    environment variables as documented per field.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Operator identification
    operator_namespace: str = Field(
        default="redhat-rhmi-operator",
        description="Namespace where the operator is deployed",
        validation_alias="OPERATOR_NAMESPACE",
    )
    watch_namespace: str = Field(
        default="",
        description="Namespace watched for Installation resources (empty = all namespaces)",
        validation_alias="WATCH_NAMESPACE",
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        validation_alias="JSON_LOGS",
        description="Enable JSON formatted logging for structured log aggregation",
    )
    correlation_ids: bool = Field(
        default=True,
        validation_alias="CORRELATION_IDS",
        description="Enable correlation IDs in logs for request tracing",
    )

    # Metrics and observability
    metrics_port: int = Field(
        default=8081,
        validation_alias="METRICS_PORT",
        description="Port for Prometheus metrics endpoint",
    )
    metrics_host: str = Field(
        default="0.0.0.0",
        validation_alias="METRICS_HOST",
        description="Host address to bind metrics server",
    )

    # Reconciliation behavior
    reconcile_interval_seconds: float = Field(
        default=DEFAULT_RECONCILE_INTERVAL,
        validation_alias="RECONCILE_INTERVAL_SECONDS",
        description="Interval between reconciliation passes for each Installation",
    )
    api_request_timeout_seconds: float = Field(
        default=DEFAULT_API_REQUEST_TIMEOUT,
        validation_alias="API_REQUEST_TIMEOUT_SECONDS",
        description="Timeout applied to every Kubernetes API request",
    )

    # Product configuration
    config_map_name: str = Field(
        default=DEFAULT_CONFIG_MAP_NAME,
        validation_alias="CONFIG_MAP_NAME",
        description="ConfigMap in the operator namespace holding per-product config",
    )
    template_path: str = Field(
        default="",
        validation_alias="TEMPLATE_PATH",
        description="Directory containing product templates (empty = bundled templates)",
    )
    alerting_email_address: str = Field(
        default="",
        validation_alias="ALERTING_EMAIL_ADDRESS",
        description="Overrides the alertmanager to-address (empty = noreply@<route host>)",
    )

    # Installation bootstrap
    auto_install_at_startup: bool = Field(
        default=True,
        validation_alias="AUTO_INSTALL_AT_STARTUP",
        description="Create an Installation resource on startup when none exists",
    )
    use_cluster_storage: str = Field(
        default="",
        validation_alias="USE_CLUSTER_STORAGE",
        description="Value copied into spec.useClusterStorage of a bootstrapped Installation",
    )

    @property
    def watched_namespaces(self) -> list[str] | None:
        """Parse watched namespaces from comma-separated string.

        Returns:
            List of namespace names, or None to watch all namespaces
        """
        if self.watch_namespace:
            return [
                ns.strip() for ns in self.watch_namespace.split(",") if ns.strip()
            ]
        return None


# Global settings instance - initialized once at module import
settings = Settings()
