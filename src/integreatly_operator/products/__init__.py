"""
Products package - Installation pipelines for each supported product.

Every product runs the shared namespace, subscription and custom-resource
steps; products with extra configuration append their own steps.
"""

from .base import ProductDefinition, ProductReconciler, ReconcileResult
from .catalog import PRODUCTS, build_product_reconciler

__all__ = [
    "PRODUCTS",
    "ProductDefinition",
    "ProductReconciler",
    "ReconcileResult",
    "build_product_reconciler",
]
