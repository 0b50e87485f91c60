"""
Mock LLM provider for demo mode (no API calls).
"""

import json
import re

from kb_gaps.llm.base import LLMProvider
from kb_gaps.util.hashing import stable_fraction

MOCK_INTENTS = [
    "reset my password",
    "update my profile",
    "cancel my subscription",
    "contact support",
    "change my email",
]

_CONV_ID_LINE = re.compile(r"^ConvID: (.+)$", re.MULTILINE)


class MockProvider(LLMProvider):
    """
    Mock LLM provider that returns canned intents.

    Answers every "ConvID: <id>" block of a batch prompt with a deterministic
    intent so demo runs and tests are reproducible.
    """

    name = "mock"
    label = "Mock"

    def generate(
        self,
        prompt: str,
        system_prompt: str | None = None,
        max_tokens: int = 3000,
        temperature: float = 0.1,
        model: str | None = None,
    ) -> str:
        """Return a fenced JSON array with one mock intent per ConvID in the prompt."""
        items = []
        for conv_id in _CONV_ID_LINE.findall(prompt):
            conv_id = conv_id.strip()
            choice = MOCK_INTENTS[int(stable_fraction(conv_id) * len(MOCK_INTENTS))]
            items.append({"ConvID": conv_id, "Intent": f"Mock intent: How do I {choice}?"})
        return "```json\n" + json.dumps(items, indent=2) + "\n```"

    def is_available(self) -> bool:
        """Mock provider is always available."""
        return True

    def get_model_name(self) -> str:
        return self.model or "mock-model"
