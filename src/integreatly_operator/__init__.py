"""
Integreatly Operator - A Kopf-based operator that installs a set of product operators.

This operator converges a cluster toward the products declared on an
Installation resource:
- Namespace creation with installation ownership labels
- Operator catalog subscriptions and install plan tracking
- Product custom resources and rendered configuration secrets
- Coarse per-product phases aggregated into the Installation status
"""

__version__ = "0.1.0"
