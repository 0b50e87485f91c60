"""
Batch prompt rendering for intent extraction.
"""

from pathlib import Path

from kb_gaps.models.conversation import Conversation
from kb_gaps.util.templates import TemplateLoader

SYSTEM_TEMPLATE = "prompts/extract_intents_system.txt.j2"
BATCH_TEMPLATE = "prompts/extract_intents.txt.j2"


class PromptRenderer:
    """Renders the system and batch prompts, preferring workspace overrides."""

    def __init__(self, workspace_root: Path | None = None):
        self.loader = TemplateLoader(workspace_root)

    def system_prompt(self) -> str:
        return self.loader.render(SYSTEM_TEMPLATE).strip()

    def batch_prompt(self, conversations: list[Conversation]) -> str:
        """One prompt covering every conversation in the batch."""
        return self.loader.render(BATCH_TEMPLATE, conversations=conversations)
