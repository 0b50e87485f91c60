"""
Pytest configuration and shared fixtures.
"""

import json
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from kb_gaps.llm.base import LLMProvider
from kb_gaps.models.conversation import Conversation
from kb_gaps.workspace import Workspace

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def temp_workspace():
    """Create a temporary workspace for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        workspace = Workspace(Path(tmpdir))
        workspace.initialize()
        yield workspace


@pytest.fixture
def fixed_now():
    """Clock returning a fixed instant, for rows without timestamps."""
    return lambda: FIXED_NOW


@pytest.fixture
def refund_rows():
    """Two conversations exported out of order, with one blank line."""
    return [
        {"ConvID": "2", "Date/Time": "2024-01-16T09:00:00Z", "Role": "Customer", "Message": "Hi"},
        {
            "ConvID": "1",
            "Date/Time": "2024-01-15T10:30:05Z",
            "Role": "Agent",
            "Message": "Sure, let me check.",
        },
        {
            "ConvID": "1",
            "Date/Time": "2024-01-15T10:30:00Z",
            "Role": "Customer",
            "Message": "I want a refund",
        },
        {"ConvID": "1", "Date/Time": "2024-01-15T10:31:00Z", "Role": "", "Message": ""},
    ]


def make_conversations(count: int, start: int = 1) -> list[Conversation]:
    return [
        Conversation(
            conv_id=str(i),
            date="2024-01-15",
            transcript=[f"Customer: question {i}", "Agent: answer"],
        )
        for i in range(start, start + count)
    ]


@pytest.fixture
def conversations():
    """Twelve small conversations with ConvIDs 1..12."""
    return make_conversations(12)


def json_reply(batch_prompt: str, intent: str = "How do I get a refund?") -> str:
    """Build a well-formed batch reply covering every ConvID in the prompt."""
    ids = [line.split(":", 1)[1].strip() for line in batch_prompt.splitlines() if line.startswith("ConvID:")]
    return json.dumps([{"ConvID": conv_id, "Intent": intent} for conv_id in ids])


class ScriptedProvider(LLMProvider):
    """
    Provider whose replies come from a list of callables or exceptions.

    Each generate() call consumes one script entry. A callable receives the
    prompt and returns the reply text; an exception instance is raised.
    """

    name = "scripted"
    label = "Scripted"

    def __init__(self, script=None, available: bool = True):
        super().__init__({"model": "scripted-model"})
        self.script = list(script or [])
        self.available = available
        self.prompts: list[str] = []
        self.models: list[str | None] = []

    def generate(self, prompt, system_prompt=None, max_tokens=3000, temperature=0.1, model=None):
        self.prompts.append(prompt)
        self.models.append(model)
        step = self.script.pop(0) if self.script else json_reply
        if isinstance(step, BaseException):
            raise step
        return step(prompt)

    def is_available(self) -> bool:
        return self.available


@pytest.fixture
def scripted_provider():
    """Factory for ScriptedProvider instances."""
    return ScriptedProvider


@pytest.fixture
def conversation_factory():
    """Factory building conversations with sequential numeric ConvIDs."""
    return make_conversations


@pytest.fixture
def batch_reply():
    """Reply builder answering every ConvID in a batch prompt."""
    return json_reply
