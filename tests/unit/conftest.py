"""Shared pytest fixtures for unit tests."""

import pytest

from integreatly_operator.models import Installation
from tests.fixtures.cluster import FakeCluster
from tests.fixtures.installation_resources import make_installation


@pytest.fixture
def cluster() -> FakeCluster:
    """Empty in-memory cluster."""
    return FakeCluster()


@pytest.fixture
def installation() -> Installation:
    """Installation referencing the test credential secrets."""
    return make_installation()
