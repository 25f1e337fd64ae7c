"""
Unit tests for the Groq and Gemini providers.

HTTP is mocked at the provider module's `requests.post`.
"""

from unittest.mock import Mock, patch

import requests

from jobcopilot.providers.base import FailureReason
from jobcopilot.providers.gemini_provider import GeminiProvider
from jobcopilot.providers.groq_provider import GroqProvider

GROQ_POST = "jobcopilot.providers.groq_provider.requests.post"
GEMINI_POST = "jobcopilot.providers.gemini_provider.requests.post"


def _response(status_code, payload=None):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


class TestGroqProvider:
    """Tests for GroqProvider."""

    def setup_method(self):
        self.provider = GroqProvider({})

    def test_defaults(self):
        assert self.provider.get_name() == "groq"
        assert self.provider.model == "llama-3.3-70b-versatile"
        assert self.provider.temperature == 0.2

    @patch(GROQ_POST)
    def test_success(self, mock_post):
        mock_post.return_value = _response(200, {
            "choices": [{"message": {"content": '[{"category": "JOB"}]'}}]
        })

        result = self.provider.call("prompt", "gsk_test")

        assert result.success is True
        assert result.content == '[{"category": "JOB"}]'
        url = mock_post.call_args[0][0]
        kwargs = mock_post.call_args[1]
        assert url == "https://api.groq.com/openai/v1/chat/completions"
        assert kwargs["headers"]["Authorization"] == "Bearer gsk_test"
        assert kwargs["json"]["messages"] == [{"role": "user", "content": "prompt"}]
        assert kwargs["json"]["temperature"] == 0.2

    @patch(GROQ_POST)
    def test_401_is_auth(self, mock_post):
        mock_post.return_value = _response(401)
        result = self.provider.call("prompt", "bad")
        assert result.success is False
        assert result.reason == FailureReason.AUTH.value
        assert result.status_code == 401

    @patch(GROQ_POST)
    def test_429_is_rate_limit(self, mock_post):
        mock_post.return_value = _response(429)
        assert self.provider.call("prompt", "k").reason == "rate_limit"

    @patch(GROQ_POST)
    def test_other_status_is_http_error(self, mock_post):
        mock_post.return_value = _response(503)
        assert self.provider.call("prompt", "k").reason == "http_error"

    @patch(GROQ_POST)
    def test_400_is_not_auth_for_groq(self, mock_post):
        mock_post.return_value = _response(400)
        assert self.provider.call("prompt", "k").reason == "http_error"

    @patch(GROQ_POST)
    def test_transport_error_is_network(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError("boom")
        result = self.provider.call("prompt", "k")
        assert result.success is False
        assert result.reason == "network"

    @patch(GROQ_POST)
    def test_missing_choices_is_no_content(self, mock_post):
        mock_post.return_value = _response(200, {"choices": []})
        assert self.provider.call("prompt", "k").reason == "no_content"

    @patch(GROQ_POST)
    def test_empty_content_is_no_content(self, mock_post):
        mock_post.return_value = _response(200, {"choices": [{"message": {"content": ""}}]})
        assert self.provider.call("prompt", "k").reason == "no_content"


class TestGeminiProvider:
    """Tests for GeminiProvider."""

    def setup_method(self):
        self.provider = GeminiProvider({})

    @patch(GEMINI_POST)
    def test_success(self, mock_post):
        mock_post.return_value = _response(200, {
            "candidates": [{"content": {"parts": [{"text": "[0, 2]"}]}}]
        })

        result = self.provider.call("prompt", "AIza_test")

        assert result.success is True
        assert result.content == "[0, 2]"
        url = mock_post.call_args[0][0]
        kwargs = mock_post.call_args[1]
        assert url.endswith("/models/gemini-1.5-flash:generateContent")
        assert kwargs["params"] == {"key": "AIza_test"}
        assert kwargs["json"] == {"contents": [{"parts": [{"text": "prompt"}]}]}

    @patch(GEMINI_POST)
    def test_400_is_auth(self, mock_post):
        mock_post.return_value = _response(400)
        assert self.provider.call("prompt", "bad").reason == "auth"

    @patch(GEMINI_POST)
    def test_429_is_rate_limit(self, mock_post):
        mock_post.return_value = _response(429)
        assert self.provider.call("prompt", "k").reason == "rate_limit"

    @patch(GEMINI_POST)
    def test_no_candidates_is_no_content(self, mock_post):
        mock_post.return_value = _response(200, {"candidates": []})
        assert self.provider.call("prompt", "k").reason == "no_content"

    @patch(GEMINI_POST)
    def test_empty_parts_is_no_content(self, mock_post):
        mock_post.return_value = _response(200, {"candidates": [{"content": {"parts": []}}]})
        assert self.provider.call("prompt", "k").reason == "no_content"

    @patch(GEMINI_POST)
    def test_timeout_is_network(self, mock_post):
        mock_post.side_effect = requests.exceptions.Timeout("slow")
        assert self.provider.call("prompt", "k").reason == "network"
