"""
CSV and JSON exports for conversations, intents and review items.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from kb_gaps.intent.classify import classify_intent
from kb_gaps.models.conversation import Conversation, ConversationStats
from kb_gaps.models.intent import ExtractionResult, Intent
from kb_gaps.models.search import ReviewItem, SearchSummary
from kb_gaps.util.files import write_json, write_text

logger = logging.getLogger(__name__)

INTENT_CSV_COLUMNS = ["ConvID", "Date", "Intent", "Status"]
REVIEW_CSV_COLUMNS = ["ConvID", "Intent", "ResultID", "Score", "Category", "ArticleChunk"]


def intents_to_csv(intents: Iterable[Intent]) -> str:
    """
    Render intents as CSV with a Status column.

    Example:
        >>> intents_to_csv([Intent("1", "2024-01-15", "How do I get a refund?")]).splitlines()
        ['ConvID,Date,Intent,Status', '1,2024-01-15,How do I get a refund?,Success']
    """
    rows = [
        {
            "ConvID": intent.conv_id,
            "Date": intent.date,
            "Intent": intent.intent,
            "Status": classify_intent(intent.intent).value,
        }
        for intent in intents
    ]
    return pd.DataFrame(rows, columns=INTENT_CSV_COLUMNS).to_csv(index=False)


def review_items_to_csv(items: Iterable[ReviewItem]) -> str:
    """Render review items as CSV; missing ids and scores become empty cells."""
    rows = [item.to_dict() for item in items]
    return pd.DataFrame(rows, columns=REVIEW_CSV_COLUMNS).to_csv(index=False)


def write_conversations(
    output_dir: Path, conversations: list[Conversation], stats: ConversationStats
) -> Path:
    """Write output/conversations.json (conversations plus stats)."""
    path = Path(output_dir) / "conversations.json"
    write_json(
        path,
        {
            "conversations": [conversation.to_dict() for conversation in conversations],
            "stats": stats.to_dict(),
        },
    )
    logger.info("Wrote %d conversations to %s", len(conversations), path)
    return path


def write_extraction(output_dir: Path, result: ExtractionResult) -> tuple[Path, Path]:
    """Write intents.json and intents.csv."""
    output_dir = Path(output_dir)
    json_path = output_dir / "intents.json"
    csv_path = output_dir / "intents.csv"
    write_json(json_path, result.to_dict())
    write_text(csv_path, intents_to_csv(result.intents))
    return json_path, csv_path


def write_review(output_dir: Path, summary: SearchSummary) -> tuple[Path, Path]:
    """Write review.json and review.csv."""
    output_dir = Path(output_dir)
    json_path = output_dir / "review.json"
    csv_path = output_dir / "review.csv"
    write_json(json_path, summary.to_dict())
    write_text(csv_path, review_items_to_csv(summary.review_items))
    return json_path, csv_path
