"""
Secret handling utilities for credential secrets and rendered configuration.

Credential secrets (SMTP, PagerDuty, Dead Man's Snitch) are created by an
administrator and only ever read. They may carry keys the operator never
uses, including binary ones, so only the fields that are read get decoded.
Rendered secrets are owned by the operator and fully regenerated on every
pass.
"""

import binascii
import logging
from typing import Any

from ..errors import InvalidDependencyError, MissingDependencyError
from .cluster import SECRET, ClusterClient, decode_secret_field, encode_secret_data
from .cluster import not_found_message

logger = logging.getLogger(__name__)


async def read_dependency_secret(
    cluster: ClusterClient,
    name: str,
    namespace: str,
    dependency: str,
    description: str,
) -> dict[str, str]:
    """
    Fetch a required credential secret.

    Args:
        cluster: Cluster client
        name: Secret name
        namespace: Secret namespace
        dependency: Identifier reported on the error when the secret is absent
        description: Human-readable name used in the error message

    Returns:
        The secret's base64 ``data`` map; read values with ``secret_field``

    Raises:
        MissingDependencyError: If no secret name is set or the secret does
            not exist
        KubernetesAPIError: If the read fails for reasons other than 404
    """
    if not name:
        raise MissingDependencyError(
            dependency,
            f"could not obtain {description} credentials secret: "
            "secret name is not set",
        )
    secret = await cluster.secrets.get(name, namespace)
    if secret is None:
        raise MissingDependencyError(
            dependency,
            f"could not obtain {description} credentials secret: "
            f"{not_found_message(SECRET, name)}",
        )
    return secret.get("data") or {}


def secret_field(data: dict[str, str], field: str) -> str:
    """Decode one field of a credential secret, empty when absent."""
    try:
        return decode_secret_field(data, field)
    except (binascii.Error, UnicodeDecodeError) as e:
        raise InvalidDependencyError(
            field, f"{field} in credentials secret is not valid text"
        ) from e


def require_field(data: dict[str, str], field: str, message: str) -> str:
    """Return a non-empty secret field or raise InvalidDependencyError."""
    value = secret_field(data, field)
    if not value:
        raise InvalidDependencyError(field, message)
    return value


async def upsert_secret(
    cluster: ClusterClient,
    name: str,
    namespace: str,
    data: dict[str, bytes | str],
    labels: dict[str, str] | None = None,
) -> bool:
    """
    Create a secret or overwrite its data.

    The whole ``data`` map is replaced, so keys absent from ``data`` are
    dropped from an existing secret. No write is made when the stored data
    and labels already match.

    Returns:
        True if the secret was created or updated, False if unchanged
    """
    encoded = encode_secret_data(data)
    existing = await cluster.secrets.get(name, namespace)

    if existing is None:
        body: dict[str, Any] = {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": {"name": name, "namespace": namespace, "labels": labels or {}},
            "type": "Opaque",
            "data": encoded,
        }
        await cluster.secrets.create(body, namespace)
        logger.info(f"Created secret {namespace}/{name}")
        return True

    metadata = existing.setdefault("metadata", {})
    current_labels = metadata.get("labels") or {}
    merged_labels = {**current_labels, **(labels or {})}
    if existing.get("data") == encoded and merged_labels == current_labels:
        logger.debug(f"Secret {namespace}/{name} is up to date")
        return False

    metadata["labels"] = merged_labels
    existing["data"] = encoded
    await cluster.secrets.replace(name, existing, namespace)
    logger.info(f"Updated secret {namespace}/{name}")
    return True
