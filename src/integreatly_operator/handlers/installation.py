"""
Installation handlers - Drive product installation for Installation resources.

Every handler runs the same full reconciliation pass. Create, resume and
update react to changes of the resource itself; the timer re-runs the pass
periodically so that namespaces, subscriptions and credential secrets that
converge on their own are picked up without any change to the Installation.
Deletion only forgets the Installation's pass lock and never blocks on a
finalizer.
"""

import asyncio
import logging
from typing import Any

import kopf

from integreatly_operator.constants import API_GROUP, API_VERSION, INSTALLATION_PLURAL
from integreatly_operator.services.installation_reconciler import (
    InstallationReconciler,
)
from integreatly_operator.settings import settings

logger = logging.getLogger(__name__)

# kopf runs timers beside change handlers; one pass per Installation at a time
_pass_locks: dict[str, asyncio.Lock] = {}


class StatusWrapper:
    """Wrapper to make kopf patch.status compatible with StatusProtocol.

    This wrapper provides both attribute and dict-like access to patch.status,
    ensuring all updates are written directly to the underlying patch object.
    """

    def __init__(self, patch_status: Any):
        object.__setattr__(self, "_patch_status", patch_status)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
            return
        self._patch_status[name] = value

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            return object.__getattribute__(self, name)
        try:
            return self._patch_status[name]
        except (KeyError, TypeError):
            return None


def _lock_key(name: str, namespace: str, meta: dict[str, Any] | None) -> str:
    return (meta or {}).get("uid") or f"{namespace}/{name}"


def _lock_for(uid: str) -> asyncio.Lock:
    lock = _pass_locks.get(uid)
    if lock is None:
        lock = _pass_locks[uid] = asyncio.Lock()
    return lock


async def run_installation_pass(
    spec: dict[str, Any],
    name: str,
    namespace: str,
    status: dict[str, Any],
    patch: kopf.Patch,
    reconciler: InstallationReconciler | None = None,
    **kwargs: Any,
) -> None:
    """Run one reconciliation pass, serialised per Installation."""
    uid = _lock_key(name, namespace, kwargs.get("meta"))
    reconciler = reconciler or InstallationReconciler()
    async with _lock_for(uid):
        await reconciler.reconcile(
            spec=spec,
            name=name,
            namespace=namespace,
            status=StatusWrapper(patch.status),
            current_status=status,
            **kwargs,
        )


@kopf.on.create(INSTALLATION_PLURAL, group=API_GROUP, version=API_VERSION)
@kopf.on.resume(INSTALLATION_PLURAL, group=API_GROUP, version=API_VERSION)
async def ensure_installation(
    spec: dict[str, Any],
    name: str,
    namespace: str,
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """
    Reconcile a new or resumed Installation.

    Args:
        spec: Installation resource specification
        name: Name of the Installation resource
        namespace: Namespace where the Installation exists
        status: Current status of the resource
        patch: Kopf patch object the status is written to
    """
    logger.info(f"Ensuring Installation {name} in namespace {namespace}")
    await run_installation_pass(spec, name, namespace, status, patch, **kwargs)
    # Return None to avoid Kopf creating status subpaths
    return None


@kopf.on.update(INSTALLATION_PLURAL, group=API_GROUP, version=API_VERSION)
async def update_installation(
    spec: dict[str, Any],
    name: str,
    namespace: str,
    status: dict[str, Any],
    patch: kopf.Patch,
    diff: kopf.Diff,
    **kwargs: Any,
) -> None:
    """Reconcile an Installation after its spec changed."""
    logger.info(
        f"Installation {name} changed ({len(list(diff))} field(s)), reconciling"
    )
    await run_installation_pass(spec, name, namespace, status, patch, **kwargs)
    return None


@kopf.timer(
    INSTALLATION_PLURAL,
    group=API_GROUP,
    version=API_VERSION,
    interval=settings.reconcile_interval_seconds,
    initial_delay=settings.reconcile_interval_seconds,
)
async def reconcile_installation_periodically(
    spec: dict[str, Any],
    name: str,
    namespace: str,
    status: dict[str, Any],
    patch: kopf.Patch,
    **kwargs: Any,
) -> None:
    """Re-run the pass so asynchronously converging resources are picked up."""
    logger.debug(f"Periodic reconciliation of Installation {namespace}/{name}")
    await run_installation_pass(spec, name, namespace, status, patch, **kwargs)


@kopf.on.delete(INSTALLATION_PLURAL, group=API_GROUP, version=API_VERSION, optional=True)
async def forget_installation(
    name: str, namespace: str, meta: dict[str, Any], **kwargs: Any
) -> None:
    """Drop the pass lock of a deleted Installation."""
    _pass_locks.pop(_lock_key(name, namespace, meta), None)
    logger.info(f"Installation {namespace}/{name} deleted")
