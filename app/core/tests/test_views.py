"""
Tests for the project health check.
"""

from unittest.mock import patch

from django.db import OperationalError


class TestHealthCheck:
    def test_healthy(self, client, db):
        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "database": "connected",
            "cache": "connected",
        }

    def test_database_down(self, client, db):
        with patch("core.views.connection") as connection:
            connection.cursor.side_effect = OperationalError("no connection")
            response = client.get("/health/")

        assert response.status_code == 503
        assert response.json()["database"] == "disconnected"
