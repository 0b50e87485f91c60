"""
OpenAI LLM provider implementation.
"""

import os

from kb_gaps.exceptions import InvalidCredentialError, LLMProviderNotAvailableError
from kb_gaps.llm.base import LLMProvider


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions provider."""

    name = "openai"
    label = "OpenAI"
    default_api_key_env = "OPENAI_API_KEY"
    default_model = "gpt-4o-mini"

    def __init__(self, config: dict):
        super().__init__(config)
        self.client = None
        self._initialize_client()

    def _api_key(self) -> str | None:
        return os.environ.get(self.api_key_env) if self.api_key_env else None

    def _initialize_client(self):
        """Initialize OpenAI client if API key is available."""
        api_key = self._api_key()
        if api_key:
            try:
                from openai import OpenAI

                # Retries are driven by the extraction orchestrator
                self.client = OpenAI(api_key=api_key, max_retries=0)
            except ImportError:
                raise ImportError("openai package not installed. Install with: pip install openai")

    def check_configuration(self) -> None:
        """Reject missing keys and keys that are obviously not OpenAI keys."""
        super().check_configuration()
        api_key = self._api_key() or ""
        if not api_key.startswith("sk-"):
            raise InvalidCredentialError("OpenAI", "key should start with 'sk-'")

    def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        max_tokens: int = 3000,
        temperature: float = 0.1,
        model: str | None = None,
    ) -> str:
        """
        Generate text using OpenAI chat completions.

        Raises:
            LLMProviderNotAvailableError: If API key not configured
            LLMPermissionError: If the key may not use the model
            LLMTransientError: If the call may succeed on retry
            LLMAPIError: If API call fails
        """
        if not self.client:
            raise LLMProviderNotAvailableError(self.name, self.api_key_env)

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            response = self.client.chat.completions.create(
                model=model or self.get_model_name(),
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except Exception as e:
            self.raise_for_error(e)

        if not response.choices:
            return ""
        content = response.choices[0].message.content
        return str(content) if content else ""

    def is_available(self) -> bool:
        """Check if OpenAI provider is available."""
        return self._api_key() is not None and self.client is not None
