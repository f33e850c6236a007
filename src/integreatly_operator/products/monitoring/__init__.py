"""Monitoring product."""

from .alertmanager import AlertmanagerConfigReconciler, AlertmanagerConfigRequest
from .reconciler import MONITORING, MonitoringReconciler

__all__ = [
    "MONITORING",
    "AlertmanagerConfigReconciler",
    "AlertmanagerConfigRequest",
    "MonitoringReconciler",
]
