"""
Unit tests for the provider gateway and its failover chain.
"""

from jobcopilot.providers.base import FailureReason, ProviderResponse
from jobcopilot.providers.gateway import KEY_TEST_PROMPT, ProviderGateway
from jobcopilot.providers.parsing import extract_json_array

from tests.helpers import ScriptedProvider

KEYS = {"groq": "gsk", "gemini": "aiza"}


def _gateway(groq_responses=None, gemini_responses=None, credentials=KEYS):
    groq = ScriptedProvider("groq", groq_responses)
    gemini = ScriptedProvider("gemini", gemini_responses)
    gateway = ProviderGateway(credentials, providers={"groq": groq, "gemini": gemini})
    return gateway, groq, gemini


class TestCall:
    def test_no_key_makes_no_request(self):
        gateway, groq, _ = _gateway(credentials={})
        response = gateway.call("groq", "prompt")
        assert response.reason == FailureReason.NO_KEY.value
        assert groq.prompts == []
        assert gateway.calls == 0

    def test_exception_becomes_network(self):
        class Exploding(ScriptedProvider):
            def call(self, prompt, api_key):
                raise RuntimeError("kaboom")

        gateway = ProviderGateway({"groq": "k"}, providers={"groq": Exploding("groq")})
        response = gateway.call("groq", "prompt")
        assert response.success is False
        assert response.reason == "network"

    def test_counts_requests(self):
        gateway, _, _ = _gateway([ProviderResponse.ok("x")])
        gateway.call("groq", "prompt")
        assert gateway.calls == 1


class TestFailover:
    def test_first_provider_success(self):
        gateway, groq, gemini = _gateway([ProviderResponse.ok("[1]")])

        result = gateway.call_with_failover("prompt", parse=extract_json_array)

        assert result.success is True
        assert result.value == [1]
        assert result.provider == "groq"
        assert gemini.prompts == []

    def test_rate_limit_fails_over_once(self):
        gateway, groq, gemini = _gateway(
            [ProviderResponse.fail(FailureReason.RATE_LIMIT, 429)],
            [ProviderResponse.ok("[0]")],
        )

        result = gateway.call_with_failover("prompt", parse=extract_json_array)

        assert result.success is True
        assert result.provider == "gemini"
        assert len(groq.prompts) == 1
        assert len(gemini.prompts) == 1
        assert groq.prompts[0] == gemini.prompts[0] == "prompt"
        assert result.attempts == [("groq", "rate_limit"), ("gemini", "ok")]

    def test_unparsable_response_advances_chain(self):
        gateway, _, _ = _gateway(
            [ProviderResponse.ok("I cannot help with that.")],
            [ProviderResponse.ok('[{"category": "JOB"}]')],
        )

        result = gateway.call_with_failover("prompt", parse=extract_json_array)

        assert result.success is True
        assert result.provider == "gemini"
        assert result.attempts[0] == ("groq", "parse_error")

    def test_all_failed_when_two_attempted(self):
        gateway, _, _ = _gateway(
            [ProviderResponse.fail(FailureReason.AUTH, 401)],
            [ProviderResponse.fail(FailureReason.NETWORK)],
        )
        result = gateway.call_with_failover("prompt")
        assert result.success is False
        assert result.reason == "all_failed"

    def test_single_attempt_keeps_its_reason(self):
        gateway, _, gemini = _gateway(
            [ProviderResponse.fail(FailureReason.AUTH, 401)], credentials={"groq": "k"}
        )
        result = gateway.call_with_failover("prompt")
        assert result.reason == "auth"
        assert gemini.prompts == []

    def test_no_credentials(self):
        gateway, groq, gemini = _gateway(credentials={})
        result = gateway.call_with_failover("prompt")
        assert result.reason == "no_key"
        assert groq.prompts == [] and gemini.prompts == []

    def test_start_provider_is_honoured(self):
        gateway, groq, gemini = _gateway(gemini_responses=[ProviderResponse.ok("[]")])
        result = gateway.call_with_failover("prompt", start="gemini", parse=extract_json_array)
        assert result.provider == "gemini"
        assert result.value == []
        assert groq.prompts == []

    def test_each_provider_tried_at_most_once(self):
        gateway, groq, gemini = _gateway(
            [ProviderResponse.fail(FailureReason.RATE_LIMIT, 429)] * 3,
            [ProviderResponse.fail(FailureReason.RATE_LIMIT, 429)] * 3,
        )
        gateway.call_with_failover("prompt")
        assert len(groq.prompts) == 1
        assert len(gemini.prompts) == 1


class TestKeyCheck:
    def test_valid_key(self):
        gateway, groq, _ = _gateway([ProviderResponse.ok("OK")], credentials={})
        assert gateway.test_key("groq", "candidate") is True
        assert groq.prompts == [KEY_TEST_PROMPT]

    def test_rejected_key(self):
        gateway, _, _ = _gateway([ProviderResponse.fail(FailureReason.AUTH, 401)], credentials={})
        assert gateway.test_key("groq", "bad") is False
