"""
Unit tests for the status conditions derived from an Installation phase.

Verifies that Ready, Progressing and Degraded follow the phase, and that
lastTransitionTime only moves when a condition's status actually changes.
"""

import pytest

from integreatly_operator.models import InstallationStatus, StatusPhase
from integreatly_operator.services.base_reconciler import BaseReconciler


class _ConditionsOnly(BaseReconciler):
    async def do_reconcile(self, spec, name, namespace, **kwargs):
        raise NotImplementedError


@pytest.fixture
def reconciler(cluster):
    return _ConditionsOnly(cluster)


def types(status: InstallationStatus) -> dict[str, str]:
    return {c["type"]: c["status"] for c in status.conditions}


class TestPhaseConditions:
    def test_completed(self, reconciler):
        status = InstallationStatus(phase=StatusPhase.COMPLETED)
        reconciler.set_phase_conditions(status, generation=3)

        assert types(status) == {"Ready": "True"}
        assert status.conditions[0]["observedGeneration"] == 3

    def test_in_progress(self, reconciler):
        status = InstallationStatus(phase=StatusPhase.IN_PROGRESS, message="0 of 1")
        reconciler.set_phase_conditions(status)

        assert types(status) == {"Ready": "False", "Progressing": "True"}
        progressing = reconciler.get_condition(status, "Progressing")
        assert progressing["message"] == "Installation is progressing: 0 of 1"

    def test_failed_clears_progressing(self, reconciler):
        status = InstallationStatus(phase=StatusPhase.IN_PROGRESS)
        reconciler.set_phase_conditions(status)

        status.phase = StatusPhase.FAILED
        reconciler.set_phase_conditions(status)

        assert types(status) == {"Ready": "False", "Degraded": "True"}

    def test_completed_clears_degraded(self, reconciler):
        status = InstallationStatus(phase=StatusPhase.FAILED)
        reconciler.set_phase_conditions(status)

        status.phase = StatusPhase.COMPLETED
        reconciler.set_phase_conditions(status)

        assert types(status) == {"Ready": "True"}


class TestTransitionTime:
    def test_unchanged_status_keeps_transition_time(self, reconciler):
        status = InstallationStatus(
            phase=StatusPhase.IN_PROGRESS,
            conditions=[
                {"type": "Ready", "status": "False", "lastTransitionTime": "earlier"}
            ],
        )

        reconciler.set_phase_conditions(status)

        assert reconciler.get_condition(status, "Ready")["lastTransitionTime"] == "earlier"

    def test_flipped_status_moves_transition_time(self, reconciler):
        status = InstallationStatus(
            phase=StatusPhase.COMPLETED,
            conditions=[
                {"type": "Ready", "status": "False", "lastTransitionTime": "earlier"}
            ],
        )

        reconciler.set_phase_conditions(status)

        ready = reconciler.get_condition(status, "Ready")
        assert ready["status"] == "True"
        assert ready["lastTransitionTime"] != "earlier"
