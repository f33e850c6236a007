"""Unit tests for the kopf handler layer of Installation resources."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from integreatly_operator.handlers import installation as handlers
from integreatly_operator.handlers.installation import (
    StatusWrapper,
    forget_installation,
    run_installation_pass,
)


class TestStatusWrapper:
    def test_attribute_writes_go_to_patch(self):
        patch_status: dict = {}
        wrapper = StatusWrapper(patch_status)

        wrapper.phase = "completed"

        assert patch_status == {"phase": "completed"}
        assert wrapper.phase == "completed"

    def test_missing_attribute_reads_none(self):
        assert StatusWrapper({}).conditions is None


def make_patch() -> SimpleNamespace:
    return SimpleNamespace(status={})


class TestRunInstallationPass:
    @pytest.mark.asyncio
    async def test_delegates_to_reconciler(self):
        reconciler = MagicMock()
        reconciler.reconcile = AsyncMock()
        patch = make_patch()
        current = {"phase": "in progress"}

        await run_installation_pass(
            {"products": ["monitoring"]},
            "rhmi",
            "redhat-rhmi-operator",
            current,
            patch,
            reconciler=reconciler,
            meta={"uid": "uid-1"},
        )

        kwargs = reconciler.reconcile.await_args.kwargs
        assert kwargs["spec"] == {"products": ["monitoring"]}
        assert kwargs["current_status"] is current
        assert kwargs["meta"] == {"uid": "uid-1"}
        kwargs["status"].phase = "completed"
        assert patch.status == {"phase": "completed"}

    @pytest.mark.asyncio
    async def test_passes_for_one_installation_do_not_overlap(self):
        running = 0
        overlaps = []

        async def slow_reconcile(**kwargs):
            nonlocal running
            running += 1
            overlaps.append(running)
            await asyncio.sleep(0.01)
            running -= 1

        reconciler = MagicMock()
        reconciler.reconcile = slow_reconcile

        await asyncio.gather(
            *(
                run_installation_pass(
                    {}, "rhmi", "ns", {}, make_patch(),
                    reconciler=reconciler, meta={"uid": "uid-serial"},
                )
                for _ in range(3)
            )
        )

        assert overlaps == [1, 1, 1]

    @pytest.mark.asyncio
    async def test_different_installations_run_concurrently(self):
        started = asyncio.Event()
        release = asyncio.Event()

        async def blocking_reconcile(**kwargs):
            if kwargs["name"] == "first":
                started.set()
                await release.wait()

        reconciler = MagicMock()
        reconciler.reconcile = blocking_reconcile

        first = asyncio.create_task(
            run_installation_pass(
                {}, "first", "ns", {}, make_patch(),
                reconciler=reconciler, meta={"uid": "uid-a"},
            )
        )
        await started.wait()
        # Would block forever if it shared the first installation's lock
        await asyncio.wait_for(
            run_installation_pass(
                {}, "second", "ns", {}, make_patch(),
                reconciler=reconciler, meta={"uid": "uid-b"},
            ),
            timeout=1,
        )
        release.set()
        await first


class TestForgetInstallation:
    @pytest.mark.asyncio
    async def test_delete_drops_pass_lock(self):
        reconciler = MagicMock()
        reconciler.reconcile = AsyncMock()
        await run_installation_pass(
            {}, "rhmi", "ns", {}, make_patch(),
            reconciler=reconciler, meta={"uid": "uid-deleted"},
        )
        assert "uid-deleted" in handlers._pass_locks

        await forget_installation(name="rhmi", namespace="ns", meta={"uid": "uid-deleted"})

        assert "uid-deleted" not in handlers._pass_locks

    @pytest.mark.asyncio
    async def test_delete_of_unknown_installation_is_harmless(self):
        await forget_installation(name="never", namespace="ns", meta={"uid": "uid-none"})

        assert "uid-none" not in handlers._pass_locks
