"""
Tabular and structured exports of pipeline results.
"""

from kb_gaps.report.export import (
    INTENT_CSV_COLUMNS,
    REVIEW_CSV_COLUMNS,
    intents_to_csv,
    review_items_to_csv,
    write_conversations,
    write_extraction,
    write_review,
)

__all__ = [
    "INTENT_CSV_COLUMNS",
    "REVIEW_CSV_COLUMNS",
    "intents_to_csv",
    "review_items_to_csv",
    "write_conversations",
    "write_extraction",
    "write_review",
]
