"""Test health check endpoint."""

from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)


def test_health_check():
    """Test that /health returns 200 with every service operational."""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["timestamp"]
    assert data["services"] == {"ai": "operational", "database": "operational", "analytics": "operational"}


def test_unknown_route():
    response = client.get("/v1/nowhere")
    assert response.status_code == 404
    assert response.json() == {"error": "Route not found"}
