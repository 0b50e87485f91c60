"""
Abstract base class for LLM providers.
"""
from abc import ABC, abstractmethod
from typing import NoReturn, Optional

from kb_gaps.exceptions import (
    LLMAPIError,
    LLMPermissionError,
    LLMProviderNotAvailableError,
    LLMTransientError,
)
from kb_gaps.util.redact import redact_sensitive
from kb_gaps.util.retry import is_permission_error, is_retryable_error


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    name = "llm"
    label = "LLM"
    default_api_key_env: Optional[str] = None
    default_model: Optional[str] = None

    def __init__(self, config: dict):
        """
        Initialize LLM provider.

        Args:
            config: LLM configuration dict with 'model', 'api_key_env', etc.
        """
        self.config = config
        self.model = config.get('model')
        self.api_key_env = config.get('api_key_env', self.default_api_key_env)

    @abstractmethod
    def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 3000,
        temperature: float = 0.1,
        model: Optional[str] = None,
    ) -> str:
        """
        Generate text from the LLM.

        Args:
            prompt: The user prompt/input
            system_prompt: Optional system prompt for instruction
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            model: Model override for this call (default: configured model)

        Returns:
            Generated text response (may be empty)

        Raises:
            LLMProviderNotAvailableError: If the provider has no credentials
            LLMPermissionError: If the credential is rejected (401/403)
            LLMTransientError: If the call failed in a retryable way
            LLMAPIError: If the call failed otherwise
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """
        Check if the provider is properly configured and available.

        Returns:
            True if provider can be used, False otherwise
        """
        pass

    def check_configuration(self) -> None:
        """
        Validate credentials before any request is made.

        Raises:
            LLMProviderNotAvailableError: If the provider cannot be used
        """
        if not self.is_available():
            raise LLMProviderNotAvailableError(self.name, self.api_key_env)

    def get_model_name(self) -> str:
        """Get the configured model name, or the provider default."""
        return self.model or self.default_model or "unknown"

    def raise_for_error(self, error: Exception) -> NoReturn:
        """Translate an SDK exception into the kb-gaps error taxonomy."""
        error_msg = redact_sensitive(str(error))
        if is_permission_error(error):
            raise LLMPermissionError(
                self.label, error_msg, status=getattr(error, "status_code", None)
            ) from error
        if is_retryable_error(error):
            raise LLMTransientError(self.label, error_msg) from error
        raise LLMAPIError(self.label, error_msg) from error
