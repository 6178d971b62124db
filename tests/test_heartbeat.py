from unittest.mock import MagicMock, patch

import httpx

from boss_alert.scheduler.heartbeat import ping

URL = "https://diablo-timer.paulgeorge.dev/api/subscription/push"


def mock_client_with(response=None, error=None):
    mock_client = MagicMock()
    mock_client.__enter__ = MagicMock(return_value=mock_client)
    mock_client.__exit__ = MagicMock(return_value=False)
    if error is not None:
        mock_client.get.side_effect = error
    else:
        mock_client.get.return_value = response
    return mock_client


class TestPing:
    def test_ping_success(self):
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.reason_phrase = "OK"
        mock_response.text = '{"sent": 3}'

        with patch("httpx.Client") as mock_client_cls:
            mock_client = mock_client_with(response=mock_response)
            mock_client_cls.return_value = mock_client

            status = ping(URL)

        assert status == 200
        mock_client.get.assert_called_once_with(URL)

    def test_ping_error_status_still_logged(self):
        mock_response = MagicMock()
        mock_response.status_code = 502
        mock_response.reason_phrase = "Bad Gateway"
        mock_response.text = "upstream down"

        with patch("httpx.Client") as mock_client_cls:
            mock_client_cls.return_value = mock_client_with(response=mock_response)
            status = ping(URL)

        assert status == 502

    def test_ping_network_error(self):
        with patch("httpx.Client") as mock_client_cls:
            mock_client_cls.return_value = mock_client_with(
                error=httpx.ConnectError("connection refused")
            )
            status = ping(URL)

        assert status is None

    def test_ping_timeout_passed_to_client(self):
        with patch("httpx.Client") as mock_client_cls:
            mock_client_cls.return_value = mock_client_with(
                error=httpx.ReadTimeout("timed out")
            )
            assert ping(URL, timeout=7) is None

        mock_client_cls.assert_called_once_with(timeout=7)

    def test_ping_invalid_url(self):
        assert ping("not a url") is None

    def test_ping_invalid_url_from_client(self):
        with patch("httpx.Client") as mock_client_cls:
            mock_client_cls.return_value = mock_client_with(
                error=httpx.InvalidURL("Request URL is missing an 'http://' or 'https://' protocol.")
            )
            assert ping("example.com/api") is None
