"""
Tests for the retrying HTTP client.
"""

from unittest.mock import patch

import pytest
import requests

from newsintel import httpclient


@pytest.fixture
def mock_request():
    with patch("newsintel.httpclient.requests.request") as mock:
        yield mock


@pytest.fixture
def mock_sleep():
    with patch("newsintel.httpclient.time.sleep") as mock:
        yield mock


class TestRequestWithRetry:

    def test_success_first_try(self, mock_request, mock_sleep, response_factory):
        mock_request.return_value = response_factory(200, {"ok": True})

        response = httpclient.get("https://api.example.com/x")

        assert response.json() == {"ok": True}
        assert mock_request.call_count == 1
        mock_sleep.assert_not_called()

    def test_sets_user_agent_and_timeout(self, mock_request, mock_sleep, response_factory):
        mock_request.return_value = response_factory(200)

        httpclient.get("https://api.example.com/x", headers={"Accept": "text/html"}, timeout=5)

        _, kwargs = mock_request.call_args
        assert kwargs["headers"]["User-Agent"] == httpclient.USER_AGENT
        assert kwargs["headers"]["Accept"] == "text/html"
        assert kwargs["timeout"] == 5

    def test_retries_retryable_status_with_backoff(self, mock_request, mock_sleep, response_factory):
        mock_request.side_effect = [
            response_factory(503),
            response_factory(429),
            response_factory(200, {"ok": True}),
        ]

        response = httpclient.request_with_retry(
            "GET", "https://api.example.com/x", max_retries=3, base_delay=1.0,
        )

        assert response.json() == {"ok": True}
        assert mock_request.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    def test_raises_after_exhausting_retries(self, mock_request, mock_sleep, response_factory):
        mock_request.return_value = response_factory(500)

        with pytest.raises(requests.HTTPError):
            httpclient.request_with_retry(
                "GET", "https://api.example.com/x", max_retries=2, base_delay=0.5,
            )

        assert mock_request.call_count == 3
        assert [c.args[0] for c in mock_sleep.call_args_list] == [0.5, 1.0]

    def test_client_errors_are_not_retried(self, mock_request, mock_sleep, response_factory):
        mock_request.return_value = response_factory(404)

        with pytest.raises(requests.HTTPError):
            httpclient.get("https://api.example.com/missing", max_retries=3)

        assert mock_request.call_count == 1
        mock_sleep.assert_not_called()

    def test_retries_connection_errors(self, mock_request, mock_sleep, response_factory):
        mock_request.side_effect = [
            requests.ConnectionError("reset"),
            response_factory(200, {"ok": True}),
        ]

        response = httpclient.get("https://api.example.com/x", max_retries=1, base_delay=2.0)

        assert response.json() == {"ok": True}
        mock_sleep.assert_called_once_with(2.0)

    def test_timeout_raised_after_last_attempt(self, mock_request, mock_sleep, response_factory):
        mock_request.side_effect = requests.Timeout("slow")

        with pytest.raises(requests.Timeout):
            httpclient.get("https://api.example.com/x", max_retries=1)

        assert mock_request.call_count == 2

    def test_post_passes_json(self, mock_request, mock_sleep, response_factory):
        mock_request.return_value = response_factory(200)

        httpclient.post("https://api.example.com/x", json={"a": 1})

        args, kwargs = mock_request.call_args
        assert args == ("POST", "https://api.example.com/x")
        assert kwargs["json"] == {"a": 1}
