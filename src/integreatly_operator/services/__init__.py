"""
Service layer for the Integreatly operator.

This module provides the phase handlers that product pipelines are built
from, separated from the kopf handler layer. The Installation reconciler
lives in ``services.installation_reconciler``; it depends on the products
package, which in turn depends on the handlers exported here.
"""

from .custom_resource_reconciler import CustomResourceReconciler
from .namespace_reconciler import NamespaceReconciler
from .subscription_reconciler import SubscriptionReconciler

__all__ = [
    "CustomResourceReconciler",
    "NamespaceReconciler",
    "SubscriptionReconciler",
]
