#!/usr/bin/env python3
"""
Integreatly Operator - Main entry point for the Kopf-based installation operator.

The operator watches Installation resources and installs the declared
products (monitoring, AMQ Streams, CodeReady Workspaces) through OLM
subscriptions and product custom resources.

Usage:
    python -m integreatly_operator.operator
    # Or with kopf directly:
    kopf run -m integreatly_operator.operator --namespace redhat-rhmi-operator

Environment Variables:
    WATCH_NAMESPACE: Comma-separated list of namespaces to watch
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
    AUTO_INSTALL_AT_STARTUP: Set to 'false' to skip creating the default Installation
"""

import logging
import sys

import kopf

# Import all handler modules to register them with kopf
from integreatly_operator.handlers import installation  # noqa: F401
from integreatly_operator.errors import OperatorError
from integreatly_operator.observability.logging import setup_structured_logging
from integreatly_operator.observability.metrics import MetricsServer
from integreatly_operator.services.installation_bootstrap import create_installation_cr
from integreatly_operator.settings import settings as operator_settings
from integreatly_operator.utils.cluster import ClusterClient, get_kubernetes_client

# Global reference to metrics server for cleanup
_global_metrics_server: MetricsServer | None = None


def configure_logging() -> None:
    """Configure structured logging for the operator based on operator_settings."""
    setup_structured_logging(
        log_level=operator_settings.log_level.upper(),
        enable_json_formatting=operator_settings.json_logs,
        correlation_id_enabled=operator_settings.correlation_ids,
    )


def get_watched_namespaces() -> list[str] | None:
    """
    Get the list of namespaces to watch from operator_settings.

    Returns:
        List of namespace names, or None to watch all namespaces
    """
    return operator_settings.watched_namespaces


async def bootstrap_installation(cluster: ClusterClient | None = None) -> None:
    """Create the default Installation when auto-install is enabled."""
    if not operator_settings.auto_install_at_startup:
        logging.info("AUTO_INSTALL_AT_STARTUP is disabled, not creating an Installation")
        return

    namespaces = get_watched_namespaces() or []
    cluster = cluster or ClusterClient(
        request_timeout=operator_settings.api_request_timeout_seconds
    )
    try:
        await create_installation_cr(
            cluster,
            namespaces[0] if namespaces else "",
            operator_settings.use_cluster_storage,
        )
    except OperatorError as e:
        # The operator still serves Installations created by hand
        logging.error(f"Failed to create Installation at startup: {e}")


@kopf.on.startup()
async def startup_handler(settings: kopf.OperatorSettings, **_) -> None:
    """
    Operator startup configuration.

    This handler runs once when the operator starts up and:
    - Tunes kopf's watching and posting behavior
    - Loads the Kubernetes configuration
    - Starts the metrics endpoint
    - Creates the default Installation if requested
    """
    logging.info("Starting Integreatly Operator...")
    settings.watching.reconnect_backoff = 1.0
    settings.posting.level = logging.WARNING

    watched_namespaces = get_watched_namespaces()
    if watched_namespaces:
        logging.info(f"Watching namespaces: {', '.join(watched_namespaces)}")
    else:
        logging.info("Watching all namespaces (cluster-wide mode)")

    cluster = ClusterClient(
        get_kubernetes_client(),
        request_timeout=operator_settings.api_request_timeout_seconds,
    )

    try:
        metrics_server = MetricsServer(
            port=operator_settings.metrics_port, host=operator_settings.metrics_host
        )
        await metrics_server.start()

        # Store server reference for cleanup in a global variable
        # since OperatorSettings doesn't support custom attributes
        global _global_metrics_server
        _global_metrics_server = metrics_server

    except OSError as e:
        logging.error(f"Failed to start metrics server: {e}")
        logging.warning("Continuing without metrics server")

    await bootstrap_installation(cluster)


@kopf.on.cleanup()
async def cleanup_handler(**_) -> None:
    """Stop the metrics server when the operator shuts down."""
    logging.info("Shutting down Integreatly Operator...")

    global _global_metrics_server
    if _global_metrics_server:
        await _global_metrics_server.stop()
        _global_metrics_server = None


def main() -> None:
    """
    Main entry point for the operator.

    This function:
    1. Configures logging
    2. Determines namespace scope
    3. Runs the kopf operator
    """
    configure_logging()

    watched_namespaces = get_watched_namespaces()

    try:
        if watched_namespaces:
            kopf.run(namespaces=watched_namespaces)
        else:
            kopf.run(clusterwide=True)
    except KeyboardInterrupt:
        logging.info("Received shutdown signal")
        sys.exit(0)
    except Exception as e:
        logging.error(f"Operator failed with error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
