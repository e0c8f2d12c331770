# mypy: ignore-errors
# tests/test_health.py
"""Tests for the unauthenticated service endpoints."""

from fastapi import status


def test_health_check(client) -> None:
    """The health endpoint reports the service as up."""
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"status": "ok"}


def test_root_describes_service(client) -> None:
    """The root endpoint advertises the API metadata and docs locations."""
    response = client.get("/")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["name"] == "Group Board"
    assert data["docs"] == "/docs"
    assert data["redoc"] == "/redoc"
