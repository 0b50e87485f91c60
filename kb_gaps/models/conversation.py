"""Conversation dataclasses built from exported chat rows."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class MessageRow:
    """One exported chat line, normalized.

    The timestamp is always timezone-aware (UTC) so rows coming from different
    parsers in the chain compare safely.
    """

    conv_id: str
    timestamp: datetime
    date: str
    role: str
    message: str

    @property
    def is_empty(self) -> bool:
        return not self.role or not self.message

    @property
    def line(self) -> str:
        return f"{self.role}: {self.message}"


@dataclass
class Conversation:
    """Chronologically ordered transcript of one customer interaction."""

    conv_id: str
    date: str
    transcript: list[str] = field(default_factory=list)
    entries: list[MessageRow] = field(default_factory=list)

    @property
    def message_count(self) -> int:
        return len(self.transcript)

    @property
    def text(self) -> str:
        return "\n".join(self.transcript)

    def excerpt(self, length: int = 100) -> str:
        """Short preview of the transcript used in exports."""
        return self.text[:length] + "..."

    def to_dict(self) -> dict[str, Any]:
        return {
            "ConvID": self.conv_id,
            "Date": self.date,
            "Conversation": self.text,
            "MessageCount": self.message_count,
            "Transcript": list(self.transcript),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Conversation":
        """Rebuild a conversation from its exported form (raw entries are not kept)."""
        transcript = data.get("Transcript")
        if transcript is None:
            text = str(data.get("Conversation", ""))
            transcript = [line for line in text.split("\n") if line]
        return cls(conv_id=str(data["ConvID"]), date=str(data.get("Date", "")), transcript=transcript)


@dataclass(frozen=True)
class ConversationStats:
    """Aggregate statistics over an assembled conversation list."""

    total_conversations: int
    total_messages: int
    avg_messages_per_conversation: float
    date_range: tuple[str, str] | None
    unique_conv_ids: int

    @property
    def date_range_label(self) -> str:
        if self.date_range is None:
            return "No dates found"
        return f"{self.date_range[0]} to {self.date_range[1]}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalConversations": self.total_conversations,
            "totalMessages": self.total_messages,
            "avgMessagesPerConv": self.avg_messages_per_conversation,
            "dateRange": self.date_range_label,
            "uniqueConvIds": self.unique_conv_ids,
        }
