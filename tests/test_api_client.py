"""Tests del cliente HTTP de la API de colección."""

from unittest.mock import MagicMock

import pytest
import requests

from sensor_bridge.errors import ForwardError
from sensor_bridge.forwarding.api_client import APIClient

ENDPOINT = "http://collector.local/api/sensor-data"


@pytest.fixture
def session():
    s = MagicMock()
    s.headers = {}
    s.post.return_value = MagicMock(status_code=201, text="")
    return s


@pytest.fixture
def client(session):
    return APIClient(ENDPOINT, timeout=5.0, session=session)


class TestSend:
    def test_posts_json_reading(self, client, session):
        client.send("kitchen-01", 21.5, 1700000000000)

        session.post.assert_called_once_with(
            ENDPOINT,
            json={"sensorId": "kitchen-01", "value": 21.5, "timestamp": 1700000000000},
            timeout=5.0,
        )

    def test_sets_json_content_type(self, client, session):
        assert session.headers["Content-Type"] == "application/json"

    def test_extra_headers(self, session):
        APIClient(ENDPOINT, session=session, headers={"X-API-Key": "secret"})
        assert session.headers["X-API-Key"] == "secret"

    @pytest.mark.parametrize("status", [200, 201, 202, 204])
    def test_2xx_is_success(self, client, session, status):
        session.post.return_value = MagicMock(status_code=status, text="")
        client.send("s", 1.0, 1)

    @pytest.mark.parametrize("status", [301, 400, 404, 500, 503])
    def test_non_2xx_raises(self, client, session, status):
        session.post.return_value = MagicMock(status_code=status, text="upstream says no")

        with pytest.raises(ForwardError) as exc:
            client.send("s", 1.0, 1)

        assert exc.value.status_code == status
        assert "upstream says no" in str(exc.value)

    def test_error_body_truncated(self, client, session):
        session.post.return_value = MagicMock(status_code=500, text="x" * 5000)

        with pytest.raises(ForwardError) as exc:
            client.send("s", 1.0, 1)

        assert len(str(exc.value)) < 1000

    def test_timeout_raises(self, client, session):
        session.post.side_effect = requests.Timeout("read timed out")

        with pytest.raises(ForwardError) as exc:
            client.send("s", 1.0, 1)

        assert "timed out" in str(exc.value)
        assert exc.value.status_code is None

    def test_connection_error_raises(self, client, session):
        session.post.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(ForwardError) as exc:
            client.send("s", 1.0, 1)

        assert "connection refused" in str(exc.value)


class TestLifecycle:
    def test_close_closes_session(self, client, session):
        client.close()
        session.close.assert_called_once()

    def test_default_session(self):
        client = APIClient(ENDPOINT)
        try:
            assert isinstance(client._session, requests.Session)
            assert client.timeout == 10.0
        finally:
            client.close()
