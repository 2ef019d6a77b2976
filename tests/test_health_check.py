from unittest import mock


class TestHealthCheck:
    def test_health_check_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data

    def test_health_check_reports_database_status(self, client):
        database = client.get("/health").json()["services"]["database"]
        assert database["status"] == "up"
        assert database["vendor"]
        assert "response_time_ms" in database

    def test_health_check_reports_cache_status(self, client):
        cache_status = client.get("/health").json()["services"]["cache"]
        assert cache_status["status"] == "up"
        assert "response_time_ms" in cache_status

    def test_cache_outage_degrades_to_503(self, client):
        with mock.patch(
            "modules.core.views.cache.get", side_effect=ConnectionError("redis down")
        ):
            response = client.get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["services"]["cache"] == {"status": "down"}
        assert data["services"]["database"]["status"] == "up"
