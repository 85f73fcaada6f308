"""Smoke tests ensuring the API app imports and serves expected health metadata."""

from fastapi.testclient import TestClient

from stock_aggregator.services.api.main import app, settings


def test_health_endpoint() -> None:
    """Health endpoint should report an OK status."""

    client = TestClient(app)
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_version_endpoint() -> None:
    """Version endpoint should echo configured application metadata."""

    client = TestClient(app)
    response = client.get("/version")
    assert response.status_code == 200
    assert response.json() == {
        "name": settings.APP_NAME,
        "version": settings.VERSION,
        "env": settings.ENV,
    }
