"""
Knowledge-base search models.

Both search protocols are normalized into SearchMatch before any business
logic looks at them.
"""

from dataclasses import dataclass, field
from typing import Any


class ReviewCategory:
    """Fixed categories for review items that do not carry a match title."""

    SKIPPED = "Skipped"
    NO_MATCH = "No Match Found"
    ERROR = "Error"
    UNKNOWN = "Unknown Category"


@dataclass(frozen=True)
class SearchMatch:
    """A single hit returned by the semantic index."""

    id: str
    score: float
    title: str | None = None
    article_text: str | None = None


@dataclass(frozen=True)
class ReviewItem:
    """An intent annotated with its best match (or lack thereof)."""

    conv_id: str
    intent: str
    result_id: str | None
    score: float | None
    category: str | None
    article_chunk: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "ConvID": self.conv_id,
            "Intent": self.intent,
            "ResultID": self.result_id,
            "Score": self.score,
            "Category": self.category,
            "ArticleChunk": self.article_chunk,
        }


@dataclass
class SearchSummary:
    """Totals and review items for one search run."""

    total_searched: int = 0
    high_confidence_matches: int = 0
    low_confidence_matches: int = 0
    review_items: list[ReviewItem] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalSearched": self.total_searched,
            "highConfidenceMatches": self.high_confidence_matches,
            "lowConfidenceMatches": self.low_confidence_matches,
            "reviewItems": [item.to_dict() for item in self.review_items],
        }
