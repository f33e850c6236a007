"""Unit tests for the operator error hierarchy."""

import kopf
import pytest

from integreatly_operator.errors import (
    ConfigurationError,
    InvalidDependencyError,
    KubernetesAPIError,
    MissingDependencyError,
    OperatorError,
    OwnershipConflictError,
    PermanentError,
    SubscriptionFailedError,
    TemporaryError,
)


class TestKopfMapping:
    def test_retryable_error_becomes_temporary(self):
        error = MissingDependencyError("smtp", "secret missing")

        kopf_error = error.as_kopf_error()

        assert isinstance(kopf_error, kopf.TemporaryError)
        assert kopf_error.delay == error.delay

    def test_permanent_error_carries_user_action(self):
        error = PermanentError("bad spec", user_action="Fix it")

        kopf_error = error.as_kopf_error()

        assert isinstance(kopf_error, kopf.PermanentError)
        assert str(error) == "bad spec\nAction required: Fix it"

    def test_temporary_error_delay(self):
        assert TemporaryError("later", delay=5).as_kopf_error().delay == 5


class TestKubernetesAPIError:
    @pytest.mark.parametrize(
        "status, retryable",
        [(None, True), (500, True), (503, True), (409, True), (429, True),
         (400, False), (403, False), (404, False), (422, False)],
    )
    def test_retryable_by_status(self, status, retryable):
        assert KubernetesAPIError("x", status=status).retryable is retryable


def test_all_errors_share_the_base_class():
    errors = [
        MissingDependencyError("route", "m"),
        InvalidDependencyError("url", "m"),
        OwnershipConflictError("ns", "a", "b"),
        KubernetesAPIError("m"),
        SubscriptionFailedError("install-1", "m"),
        ConfigurationError("m"),
    ]
    assert all(isinstance(e, OperatorError) for e in errors)
    assert [e.category for e in errors] == [
        "dependency", "dependency", "ownership", "api", "subscription", "configuration",
    ]


def test_ownership_conflict_message():
    error = OwnershipConflictError("redhat-rhmi-amq-streams", "uid-a", "uid-b")
    assert str(error) == (
        "namespace redhat-rhmi-amq-streams is owned by installation uid-a, not uid-b"
    )
