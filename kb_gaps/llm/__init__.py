"""
LLM providers used for batch intent extraction.

Every provider answers one batch prompt with free-form text that should hold
a JSON array of {ConvID, Intent} objects. Provider SDK errors are translated
into the kb-gaps error taxonomy so the orchestrator can tell a rejected key
(halt) from a transient failure (retry) from anything else (degrade batch).
"""

from kb_gaps.llm.anthropic import AnthropicProvider
from kb_gaps.llm.base import LLMProvider
from kb_gaps.llm.mock import MockProvider
from kb_gaps.llm.openai import OpenAIProvider

PROVIDERS: dict[str, type[LLMProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "mock": MockProvider,
}


def get_provider(config: dict) -> LLMProvider:
    """
    Build the provider named by ``llm.provider`` (default: openai).

    The mock provider needs no credentials and returns canned intents, which
    makes a whole pipeline run possible offline.

    Raises:
        ValueError: If the provider name is unknown
    """
    llm_config = config.get("llm", {})
    provider_name = llm_config.get("provider", "openai").lower()

    if provider_name not in PROVIDERS:
        raise ValueError(
            f"Unsupported provider: {provider_name}. Must be one of: {list(PROVIDERS)}"
        )

    return PROVIDERS[provider_name](llm_config)


__all__ = [
    "PROVIDERS",
    "LLMProvider",
    "AnthropicProvider",
    "OpenAIProvider",
    "MockProvider",
    "get_provider",
]
