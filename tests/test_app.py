"""
Tests for the root and health endpoints and the error body shape.
"""


class TestApp:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "running" in response.json()["message"]

    def test_health_always_answers(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_unknown_route_uses_error_body(self, client):
        response = client.get("/api/does-not-exist")
        assert response.status_code == 404
        assert "error" in response.json()
