"""
Tests for LLM provider modules.
"""

import json
from unittest.mock import MagicMock, patch

import pytest

from kb_gaps.exceptions import (
    InvalidCredentialError,
    LLMAPIError,
    LLMPermissionError,
    LLMProviderNotAvailableError,
    LLMTransientError,
)
from kb_gaps.llm import get_provider
from kb_gaps.llm.anthropic import AnthropicProvider
from kb_gaps.llm.mock import MockProvider
from kb_gaps.llm.openai import OpenAIProvider


class StatusError(Exception):
    """SDK-style error carrying an HTTP status code."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class TestGetProvider:
    """Tests for LLM provider factory."""

    def test_get_anthropic_provider(self):
        config = {
            "llm": {"provider": "anthropic", "model": "claude-sonnet-4-5", "api_key_env": "TEST_KEY"}
        }

        assert isinstance(get_provider(config), AnthropicProvider)

    def test_get_openai_provider(self):
        config = {"llm": {"provider": "openai", "model": "gpt-4o-mini", "api_key_env": "TEST_KEY"}}

        assert isinstance(get_provider(config), OpenAIProvider)

    def test_get_mock_provider(self):
        assert isinstance(get_provider({"llm": {"provider": "mock"}}), MockProvider)

    def test_get_provider_case_insensitive(self):
        assert isinstance(get_provider({"llm": {"provider": "OpenAI"}}), OpenAIProvider)

    def test_get_provider_default(self):
        """Defaults to OpenAI when no provider is named."""
        assert isinstance(get_provider({"llm": {"model": "gpt-4o-mini"}}), OpenAIProvider)

    def test_get_provider_invalid(self):
        with pytest.raises(ValueError, match="Unsupported provider"):
            get_provider({"llm": {"provider": "invalid"}})


class TestOpenAIProvider:
    """Tests for OpenAI provider."""

    def test_init(self):
        provider = OpenAIProvider({"model": "gpt-4o-mini", "api_key_env": "TEST_KEY"})

        assert provider.model == "gpt-4o-mini"
        assert provider.api_key_env == "TEST_KEY"

    def test_default_api_key_env(self):
        assert OpenAIProvider({}).api_key_env == "OPENAI_API_KEY"

    @patch.dict("os.environ", {"TEST_KEY": "sk-test-key"})
    def test_is_available_with_key(self):
        assert OpenAIProvider({"api_key_env": "TEST_KEY"}).is_available() is True

    def test_is_available_without_key(self):
        assert OpenAIProvider({"api_key_env": "NONEXISTENT_KEY"}).is_available() is False

    def test_check_configuration_without_key(self):
        provider = OpenAIProvider({"api_key_env": "NONEXISTENT_KEY"})

        with pytest.raises(LLMProviderNotAvailableError, match="openai"):
            provider.check_configuration()

    @patch.dict("os.environ", {"TEST_KEY": "not-an-openai-key"})
    def test_check_configuration_rejects_malformed_key(self):
        provider = OpenAIProvider({"api_key_env": "TEST_KEY"})

        with pytest.raises(InvalidCredentialError, match="sk-"):
            provider.check_configuration()

    def test_generate_requires_api_key(self):
        provider = OpenAIProvider({"api_key_env": "NONEXISTENT_KEY"})

        with pytest.raises(LLMProviderNotAvailableError):
            provider.generate("prompt")

    @patch.dict("os.environ", {"TEST_KEY": "sk-test-key"})
    def test_generate_sends_chat_request(self):
        provider = OpenAIProvider({"model": "gpt-4o-mini", "api_key_env": "TEST_KEY"})
        provider.client = MagicMock()
        message = MagicMock()
        message.content = '[{"ConvID": "1", "Intent": "How?"}]'
        provider.client.chat.completions.create.return_value = MagicMock(
            choices=[MagicMock(message=message)]
        )

        result = provider.generate(
            "batch", system_prompt="system", max_tokens=3000, temperature=0.1, model="gpt-4o"
        )

        assert result == '[{"ConvID": "1", "Intent": "How?"}]'
        kwargs = provider.client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["max_tokens"] == 3000
        assert kwargs["temperature"] == 0.1
        assert kwargs["messages"] == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "batch"},
        ]

    @patch.dict("os.environ", {"TEST_KEY": "sk-test-key"})
    def test_generate_without_choices_returns_empty(self):
        provider = OpenAIProvider({"api_key_env": "TEST_KEY"})
        provider.client = MagicMock()
        provider.client.chat.completions.create.return_value = MagicMock(choices=[])

        assert provider.generate("batch") == ""

    @patch.dict("os.environ", {"TEST_KEY": "sk-test-key"})
    def test_null_model_uses_provider_default(self):
        provider = OpenAIProvider({"model": None, "api_key_env": "TEST_KEY"})
        provider.client = MagicMock()
        provider.client.chat.completions.create.return_value = MagicMock(choices=[])

        provider.generate("batch")

        assert provider.get_model_name() == "gpt-4o-mini"
        assert provider.client.chat.completions.create.call_args.kwargs["model"] == "gpt-4o-mini"


class TestErrorTranslation:
    """Tests for mapping SDK errors to the kb-gaps taxonomy."""

    @pytest.fixture
    def provider(self):
        with patch.dict("os.environ", {"TEST_KEY": "sk-test-key"}):
            provider = OpenAIProvider({"api_key_env": "TEST_KEY"})
        provider.client = MagicMock()
        return provider

    def test_unauthorized_is_permission_error(self, provider):
        provider.client.chat.completions.create.side_effect = StatusError("Unauthorized", 401)

        with pytest.raises(LLMPermissionError) as exc_info:
            provider.generate("batch")

        assert exc_info.value.status == 401

    def test_insufficient_permissions_text(self, provider):
        provider.client.chat.completions.create.side_effect = Exception(
            "You have insufficient permissions for this operation. Missing scopes: model.request"
        )

        with pytest.raises(LLMPermissionError):
            provider.generate("batch")

    @pytest.mark.parametrize("status", [429, 500, 503])
    def test_retryable_status_is_transient(self, provider, status):
        provider.client.chat.completions.create.side_effect = StatusError("try later", status)

        with pytest.raises(LLMTransientError):
            provider.generate("batch")

    def test_other_errors_are_api_errors(self, provider):
        provider.client.chat.completions.create.side_effect = StatusError("bad request", 400)

        with pytest.raises(LLMAPIError) as exc_info:
            provider.generate("batch")

        assert not isinstance(exc_info.value, LLMTransientError)

    def test_keys_are_redacted(self, provider):
        provider.client.chat.completions.create.side_effect = StatusError(
            "Incorrect API key provided: sk-abcdefghijklmnopqrstuvwxyz", 400
        )

        with pytest.raises(LLMAPIError) as exc_info:
            provider.generate("batch")

        assert "sk-abcdefghijklmnopqrstuvwxyz" not in exc_info.value.error_message


class TestAnthropicProvider:
    """Tests for Anthropic provider."""

    def test_init_without_model(self):
        assert AnthropicProvider({}).model is None
        assert AnthropicProvider({}).get_model_name() == "claude-sonnet-4-5"

    def test_default_api_key_env(self):
        assert AnthropicProvider({}).api_key_env == "ANTHROPIC_API_KEY"

    def test_is_available_without_key(self):
        assert AnthropicProvider({"api_key_env": "NONEXISTENT_KEY"}).is_available() is False

    @patch.dict("os.environ", {"TEST_KEY": "sk-ant-test"})
    def test_generate_joins_text_blocks(self):
        provider = AnthropicProvider({"model": "claude-sonnet-4-5", "api_key_env": "TEST_KEY"})
        provider.client = MagicMock()
        first, second = MagicMock(), MagicMock()
        first.type, first.text = "text", '[{"ConvID": "1",'
        second.type, second.text = "text", ' "Intent": "How?"}]'
        provider.client.messages.create.return_value = MagicMock(content=[first, second])

        result = provider.generate("batch", system_prompt="system")

        assert json.loads(result) == [{"ConvID": "1", "Intent": "How?"}]
        kwargs = provider.client.messages.create.call_args.kwargs
        assert kwargs["system"] == "system"
        assert kwargs["model"] == "claude-sonnet-4-5"


class TestMockProvider:
    """Tests for mock provider."""

    def test_is_available(self):
        assert MockProvider({}).is_available() is True

    def test_model_name(self):
        assert MockProvider({}).get_model_name() == "mock-model"

    def test_answers_every_conv_id(self):
        prompt = "Conversations:\nConvID: 7\nConversation:\nCustomer: hi\n---\nConvID: abc\n"

        result = MockProvider({}).generate(prompt)

        assert result.startswith("```json")
        items = json.loads(result.strip("`").removeprefix("json"))
        assert [item["ConvID"] for item in items] == ["7", "abc"]
        assert all(item["Intent"].startswith("Mock intent: How do I ") for item in items)

    def test_deterministic(self):
        prompt = "ConvID: 42\n"
        assert MockProvider({}).generate(prompt) == MockProvider({}).generate(prompt)
