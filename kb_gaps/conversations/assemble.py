"""
Reconstruct grouped, chronologically ordered conversations from flat rows.

Rows are sorted by (numeric ConvID, timestamp), grouped by ConvID in sorted
order, stripped of empty lines and joined as "Role: Message" transcripts.
ConvIDs without a leading integer sort as 0, so they cluster ahead of every
positive numeric ID.
"""

import logging
import math
import re
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any

from kb_gaps.conversations.timestamps import date_string, parse_timestamp
from kb_gaps.exceptions import EmptyInputError, InvalidInputError
from kb_gaps.models.conversation import Conversation, ConversationStats, MessageRow

logger = logging.getLogger(__name__)

TIMESTAMP_KEYS = ("Date/Time", "DateTime", "Timestamp", "Date")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _missing(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, float) and math.isnan(value))


def normalize_conv_id(value: Any, index: int) -> str:
    """Render a raw ConvID cell as a string, defaulting to conv_<index>."""
    if _missing(value):
        return f"conv_{index}"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip() or f"conv_{index}"


def numeric_conv_id(conv_id: str) -> int:
    """Leading integer of a ConvID, or 0 when it has none."""
    match = _LEADING_INT.match(conv_id)
    return int(match.group(1)) if match else 0


def _timestamp_value(record: Mapping[str, Any]) -> Any:
    for key in TIMESTAMP_KEYS:
        if not _missing(record.get(key)):
            return record[key]
    return None


def _text(value: Any) -> str:
    if _missing(value):
        return ""
    return str(value).strip()


def row_from_record(
    record: Mapping[str, Any],
    index: int,
    now: Callable[[], datetime] | None = None,
) -> MessageRow:
    """
    Normalize one loosely typed record into a MessageRow.

    Malformed fields degrade to defaults (synthetic ConvID, current time,
    empty strings) instead of raising.
    """
    timestamp = parse_timestamp(_timestamp_value(record), now=now, context=f"row {index}")
    return MessageRow(
        conv_id=normalize_conv_id(record.get("ConvID"), index),
        timestamp=timestamp,
        date=date_string(timestamp),
        role=_text(record.get("Role")),
        message=_text(record.get("Message")),
    )


class ConversationAssembler:
    """
    Builds Conversation objects from exported message rows.

    Example:
        >>> assembler = ConversationAssembler()
        >>> conversations, stats = assembler.assemble(records)
        >>> stats.total_conversations
        42
    """

    def __init__(self, now: Callable[[], datetime] | None = None):
        """
        Args:
            now: Clock used when a row has no usable timestamp
        """
        self.now = now

    def normalize(self, records: Iterable[Mapping[str, Any]]) -> list[MessageRow]:
        if records is None or isinstance(records, (str, bytes, Mapping)):
            raise InvalidInputError("expected a sequence of records")

        rows = []
        for index, record in enumerate(records):
            if isinstance(record, MessageRow):
                rows.append(record)
                continue
            if not isinstance(record, Mapping):
                raise InvalidInputError(
                    f"record {index} is a {type(record).__name__}, expected a mapping"
                )
            rows.append(row_from_record(record, index, now=self.now))

        if not rows:
            raise EmptyInputError("rows")
        return rows

    def assemble(
        self, records: Iterable[Mapping[str, Any]]
    ) -> tuple[list[Conversation], ConversationStats]:
        """
        Group rows into conversations and compute aggregate statistics.

        Args:
            records: Parsed spreadsheet rows with ConvID, a date column, Role, Message

        Returns:
            tuple: (conversations, stats)

        Raises:
            EmptyInputError: If there are no rows at all
            InvalidInputError: If the input is not a sequence of mappings
        """
        rows = self.normalize(records)
        rows.sort(key=lambda row: (numeric_conv_id(row.conv_id), row.timestamp))

        groups: dict[str, Conversation] = {}
        for row in rows:
            conversation = groups.get(row.conv_id)
            if conversation is None:
                conversation = Conversation(conv_id=row.conv_id, date=row.date)
                groups[row.conv_id] = conversation
            if row.is_empty:
                continue
            conversation.transcript.append(row.line)
            conversation.entries.append(row)

        conversations = [conv for conv in groups.values() if conv.message_count > 0]
        dropped = len(groups) - len(conversations)
        if dropped:
            logger.debug("Dropped %d conversation(s) with no messages", dropped)

        return conversations, compute_stats(conversations, unique_conv_ids=len(groups))


def compute_stats(conversations: list[Conversation], unique_conv_ids: int | None = None) -> ConversationStats:
    """Summarize an assembled conversation list."""
    total_messages = sum(conv.message_count for conv in conversations)
    average = round(total_messages / len(conversations), 1) if conversations else 0.0
    dates = sorted(conv.date for conv in conversations if conv.date)
    return ConversationStats(
        total_conversations=len(conversations),
        total_messages=total_messages,
        avg_messages_per_conversation=average,
        date_range=(dates[0], dates[-1]) if dates else None,
        unique_conv_ids=unique_conv_ids if unique_conv_ids is not None else len(conversations),
    )


def assemble_conversations(
    records: Iterable[Mapping[str, Any]],
    now: Callable[[], datetime] | None = None,
) -> tuple[list[Conversation], ConversationStats]:
    """Convenience wrapper around ConversationAssembler.assemble."""
    return ConversationAssembler(now=now).assemble(records)
