"""Unit tests for the health check endpoint."""

from fastapi.testclient import TestClient

from granthub.main import create_app


def test_health_check():
    """The health endpoint answers without touching the database."""
    app = create_app()
    # No lifespan: the TestClient is not entered as a context manager
    client = TestClient(app)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}
    assert response.headers["X-Request-ID"]


def test_health_check_with_trailing_slash():
    client = TestClient(create_app())
    assert client.get("/health/").status_code == 200
