"""
Anthropic Claude LLM provider implementation.
"""

import os

from kb_gaps.exceptions import LLMProviderNotAvailableError
from kb_gaps.llm.base import LLMProvider


class AnthropicProvider(LLMProvider):
    """Anthropic Claude provider."""

    name = "anthropic"
    label = "Anthropic"
    default_api_key_env = "ANTHROPIC_API_KEY"
    default_model = "claude-sonnet-4-5"

    def __init__(self, config: dict):
        super().__init__(config)
        self.client = None
        self._initialize_client()

    def _initialize_client(self):
        """Initialize Anthropic client if API key is available."""
        api_key = os.environ.get(self.api_key_env) if self.api_key_env else None
        if api_key:
            try:
                from anthropic import Anthropic

                self.client = Anthropic(api_key=api_key, max_retries=0)
            except ImportError:
                raise ImportError(
                    "anthropic package not installed. Install with: pip install anthropic"
                )

    def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        max_tokens: int = 3000,
        temperature: float = 0.1,
        model: str | None = None,
    ) -> str:
        """
        Generate text using Anthropic Claude.

        Raises:
            LLMProviderNotAvailableError: If API key not configured
            LLMPermissionError: If the key may not use the model
            LLMTransientError: If the call may succeed on retry
            LLMAPIError: If API call fails
        """
        if not self.client:
            raise LLMProviderNotAvailableError(self.name, self.api_key_env)

        kwargs = {
            "model": model or self.get_model_name(),
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        try:
            response = self.client.messages.create(**kwargs)
        except Exception as e:
            self.raise_for_error(e)

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "text") == "text"
        )
        return text

    def is_available(self) -> bool:
        """Check if Anthropic provider is available."""
        api_key = os.environ.get(self.api_key_env) if self.api_key_env else None
        return api_key is not None and self.client is not None
