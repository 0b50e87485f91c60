"""
Intent models produced by the extraction stage.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

ERROR_PREFIX = "ERROR:"


class IntentStatus(Enum):
    """
    Outcome of extracting an intent from one conversation.

    Levels:
        SUCCESSFUL: A clear, usable intent was extracted
        UNCLEAR: The model reported no clear intent ("unclear"/"unknown")
        ERROR: The intent is an error sentinel prefixed with "ERROR:"
    """

    SUCCESSFUL = "Success"
    UNCLEAR = "Unclear"
    ERROR = "Error"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Intent:
    """Short statement of what a customer was trying to accomplish."""

    conv_id: str
    date: str
    intent: str
    excerpt: str = ""

    @property
    def is_error(self) -> bool:
        return self.intent.startswith(ERROR_PREFIX)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ConvID": self.conv_id,
            "Date": self.date,
            "Conversation": self.excerpt,
            "Intent": self.intent,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Intent":
        return cls(
            conv_id=str(data.get("ConvID", "")).strip(),
            date=str(data.get("Date") or ""),
            intent=str(data.get("Intent") or ""),
            excerpt=str(data.get("Conversation") or ""),
        )


@dataclass
class ExtractionResult:
    """
    Terminal output of an extraction run.

    Attributes:
        intents: One entry per processed conversation, in batch order
        successful_extractions: Count of SUCCESSFUL intents
        unclear_intents: Count of UNCLEAR intents
        error_count: Count of ERROR intents
        model: Model name reported by the provider
    """

    intents: list[Intent] = field(default_factory=list)
    successful_extractions: int = 0
    unclear_intents: int = 0
    error_count: int = 0
    model: str = "unknown"

    @property
    def total_processed(self) -> int:
        return len(self.intents)

    def to_dict(self) -> dict[str, Any]:
        return {
            "intents": [intent.to_dict() for intent in self.intents],
            "totalProcessed": self.total_processed,
            "successfulExtractions": self.successful_extractions,
            "unclearIntents": self.unclear_intents,
            "errorCount": self.error_count,
            "model": self.model,
        }
