"""Tests for health check endpoints."""

import pytest
from fastapi import status
from fastapi.testclient import TestClient

from certsteward import __version__
from certsteward.application import create_app
from certsteward.controller import ControllerManager, Reconciler
from certsteward.infrastructure.implementations.memory import (
    InMemoryCertificateRepository,
    InMemorySecretStore,
    InMemoryStatusRepository,
)
from certsteward.issuers import IssuerRegistry

pytestmark = pytest.mark.integration


@pytest.fixture
def controller():
    reconciler = Reconciler(
        certificates=InMemoryCertificateRepository(),
        secrets=InMemorySecretStore(),
        statuses=InMemoryStatusRepository(),
        issuers=IssuerRegistry(),
    )
    return ControllerManager(reconciler, workers=1)


def test_health_check(controller):
    """Test health check endpoint while the controller runs."""
    with TestClient(create_app(controller=controller)) as client:
        response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "ok"
    assert data["version"] == __version__
    assert data["controller_running"] is True
    assert data["queued"] == 0


def test_health_check_degraded_without_workers(controller):
    """Test health reports degraded when the workers are not running."""
    # No context manager: the lifespan (and the workers) never start
    client = TestClient(create_app(controller=controller))

    response = client.get("/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "degraded"
    assert data["controller_running"] is False
    assert data["message"] == "Controller is not running"
