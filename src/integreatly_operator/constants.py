"""
Constants used throughout the Integreatly operator.

This module defines all constant values used by the operator including:
- API group and resource identifiers
- Resource labels used for ownership tracking
- Names of secrets, routes and templates owned by the monitoring product
- Event reasons and status messages
"""

# API group for the Installation resource
API_GROUP = "integreatly.org"
API_VERSION = "v1alpha1"
INSTALLATION_KIND = "Installation"
INSTALLATION_PLURAL = "installations"
DEFAULT_INSTALLATION_NAME = "rhmi"

# Label constants for resource identification and ownership
OWNER_LABEL_KEY = "integreatly.org/installation-uid"
OPERATOR_LABEL_KEY = "integreatly.org/managed-by"
OPERATOR_LABEL_VALUE = "integreatly-operator"
MONITORING_LABEL_KEY = "monitoring-key"
MONITORING_LABEL_VALUE = "middleware"

# Namespace phases as reported by the Kubernetes API
NAMESPACE_ACTIVE = "Active"
NAMESPACE_TERMINATING = "Terminating"

# Install plan phases as reported by OLM
INSTALL_PLAN_COMPLETE = "Complete"
INSTALL_PLAN_FAILED = "Failed"

# Operator catalog defaults
DEFAULT_NAMESPACE_PREFIX = "redhat-rhmi-"
DEFAULT_CATALOG_SOURCE = "redhat-operators"
DEFAULT_CATALOG_SOURCE_NAMESPACE = "openshift-marketplace"
OPERATOR_GROUP_NAME = "rhmi-operator-group"
APPROVAL_AUTOMATIC = "Automatic"
APPROVAL_MANUAL = "Manual"

# Product config keys shared between the orchestrator and products
CONFIG_KEY_NAMESPACE = "NAMESPACE"
CONFIG_KEY_OPERATOR_NAMESPACE = "OPERATOR_NAMESPACE"
OPERATOR_NAMESPACE_SUFFIX = "-operator"
DEFAULT_CONFIG_MAP_NAME = "installation-config"

# Monitoring product resources
ALERTMANAGER_ROUTE_NAME = "alertmanager-route"
ALERTMANAGER_CONFIG_SECRET_NAME = "alertmanager-application-monitoring"
ALERTMANAGER_CONFIG_SECRET_KEY = "alertmanager.yaml"
ALERTMANAGER_CONFIG_TEMPLATE_PATH = (
    "alertmanager/alertmanager-application-monitoring.yaml"
)

# Required fields of externally provided credential secrets
SMTP_HOST_FIELD = "host"
SMTP_PORT_FIELD = "port"
SMTP_USERNAME_FIELD = "username"
SMTP_PASSWORD_FIELD = "password"
PAGERDUTY_SERVICE_KEY_FIELD = "serviceKey"
DEADMANSSNITCH_URL_FIELD = "url"

# Event types and reasons
EVENT_TYPE_NORMAL = "Normal"
EVENT_TYPE_WARNING = "Warning"
EVENT_REASON_STAGE_COMPLETE = "InstallationCompleted"
EVENT_REASON_PRODUCT_FAILED = "ProductReconcileFailed"
EVENT_REASON_CONFIG_FAILED = "ConfigReadFailed"

# Status condition types (following Kubernetes conventions)
CONDITION_READY = "Ready"
CONDITION_PROGRESSING = "Progressing"
CONDITION_DEGRADED = "Degraded"

# Condition status constants
CONDITION_TRUE = "True"
CONDITION_FALSE = "False"

# Timing defaults (in seconds)
DEFAULT_RECONCILE_INTERVAL = 30
DEFAULT_API_REQUEST_TIMEOUT = 30
DEFAULT_ERROR_RETRY_DELAY = 30
