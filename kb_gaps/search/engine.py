"""
Knowledge-base search and threshold classification of extracted intents.

Every intent is searched independently and in order. Review output only ever
surfaces gaps: low-confidence matches, misses, skipped intents and failures.
Well-covered matches are only counted.
"""

import logging
import time
from collections.abc import Callable, Iterable

from kb_gaps.exceptions import SearchError
from kb_gaps.models.intent import ERROR_PREFIX, Intent
from kb_gaps.models.search import ReviewCategory, ReviewItem, SearchMatch, SearchSummary
from kb_gaps.search.base import SearchClient

logger = logging.getLogger(__name__)

ARTICLE_CHUNK_LENGTH = 400
SCORE_DIGITS = 4

ProgressCallback = Callable[[int, int], None]


def should_skip(intent_text: str) -> bool:
    """Empty, unclear and error-sentinel intents are never searched."""
    text = intent_text.strip()
    return not text or text.lower().startswith("unclear") or text.startswith(ERROR_PREFIX)


class ResultClassifier:
    """Applies the confidence threshold and builds review items."""

    def __init__(self, threshold: float = 0.8):
        self.threshold = threshold

    def is_high_confidence(self, match: SearchMatch) -> bool:
        # A score exactly at the threshold counts as covered
        return match.score >= self.threshold

    def low_confidence(self, intent: Intent, match: SearchMatch) -> ReviewItem:
        return ReviewItem(
            conv_id=intent.conv_id,
            intent=intent.intent,
            result_id=match.id,
            score=round(match.score, SCORE_DIGITS),
            category=match.title or ReviewCategory.UNKNOWN,
            article_chunk=(match.article_text or "")[:ARTICLE_CHUNK_LENGTH],
        )

    def skipped(self, intent: Intent) -> ReviewItem:
        return ReviewItem(
            conv_id=intent.conv_id,
            intent=intent.intent,
            result_id=None,
            score=0,
            category=ReviewCategory.SKIPPED,
            article_chunk="Intent skipped - empty, unclear, or error.",
        )

    def no_match(self, intent: Intent) -> ReviewItem:
        return ReviewItem(
            conv_id=intent.conv_id,
            intent=intent.intent,
            result_id=None,
            score=0,
            category=ReviewCategory.NO_MATCH,
            article_chunk="No relevant KB chunk found.",
        )

    def failed(self, intent: Intent, error: str) -> ReviewItem:
        return ReviewItem(
            conv_id=intent.conv_id,
            intent=intent.intent,
            result_id=None,
            score=None,
            category=ReviewCategory.ERROR,
            article_chunk=f"[ERROR] {error}",
        )


class KnowledgeBaseSearchEngine:
    """
    Searches the knowledge base for each intent and classifies the results.

    Example:
        >>> engine = KnowledgeBaseSearchEngine(client, threshold=0.8, top_k=3)
        >>> summary = engine.search(result.intents)
        >>> summary.high_confidence_matches, len(summary.review_items)
        (12, 5)
    """

    def __init__(
        self,
        client: SearchClient,
        threshold: float = 0.8,
        top_k: int = 3,
        namespace: str = "",
        item_delay: float = 0.1,
    ):
        """
        Args:
            client: Search client for the index
            threshold: Scores below this are low confidence
            top_k: Matches requested per intent
            namespace: Index namespace ("" for the default namespace)
            item_delay: Seconds to wait after each query
        """
        self.client = client
        self.classifier = ResultClassifier(threshold)
        self.top_k = top_k
        self.namespace = namespace
        self.item_delay = item_delay

    @property
    def threshold(self) -> float:
        return self.classifier.threshold

    def search(
        self, intents: Iterable[Intent], on_progress: ProgressCallback | None = None
    ) -> SearchSummary:
        """
        Search every intent and build the review list.

        Args:
            intents: Intents to look up, in output order
            on_progress: Called as (done, total) after each intent

        Returns:
            SearchSummary; ``low_confidence_matches`` always equals the number
            of review items

        Raises:
            SearchProviderNotAvailableError: If the client is not configured
        """
        intents = list(intents)
        self.client.check_configuration()

        summary = SearchSummary(total_searched=len(intents))
        for index, intent in enumerate(intents, 1):
            queried = self._search_one(intent, summary)
            if on_progress is not None:
                on_progress(index, len(intents))
            if queried and index < len(intents) and self.item_delay > 0:
                time.sleep(self.item_delay)

        logger.info(
            "Search complete: %d searched, %d high confidence, %d for review",
            summary.total_searched,
            summary.high_confidence_matches,
            len(summary.review_items),
        )
        return summary

    def _add_review(self, summary: SearchSummary, item: ReviewItem) -> None:
        summary.low_confidence_matches += 1
        summary.review_items.append(item)

    def _search_one(self, intent: Intent, summary: SearchSummary) -> bool:
        """Process one intent; returns True when the provider was queried."""
        if should_skip(intent.intent):
            self._add_review(summary, self.classifier.skipped(intent))
            return False

        try:
            matches = self.client.search(intent.intent.strip(), self.top_k, self.namespace)
        except SearchError as e:
            logger.warning("Search failed for ConvID %s: %s", intent.conv_id, e.message)
            self._add_review(summary, self.classifier.failed(intent, e.message))
            return True
        except Exception as e:
            logger.warning("Search failed for ConvID %s", intent.conv_id, exc_info=True)
            self._add_review(summary, self.classifier.failed(intent, str(e)))
            return True

        if not matches:
            self._add_review(summary, self.classifier.no_match(intent))
            return True

        for match in matches:
            if self.classifier.is_high_confidence(match):
                summary.high_confidence_matches += 1
            else:
                self._add_review(summary, self.classifier.low_confidence(intent, match))
        return True
