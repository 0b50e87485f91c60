"""
Tests for CSV and JSON exports.
"""

import csv
import io
import json

from kb_gaps.models.conversation import Conversation, ConversationStats
from kb_gaps.models.intent import ExtractionResult, Intent
from kb_gaps.models.search import ReviewCategory, ReviewItem, SearchSummary
from kb_gaps.report import (
    INTENT_CSV_COLUMNS,
    REVIEW_CSV_COLUMNS,
    intents_to_csv,
    review_items_to_csv,
    write_conversations,
    write_extraction,
    write_review,
)


def read_csv(text):
    return list(csv.DictReader(io.StringIO(text)))


class TestIntentCsv:
    """Tests for the intent table."""

    def test_headers_and_status(self):
        text = intents_to_csv(
            [
                Intent("1", "2024-01-15", "How do I get a refund?"),
                Intent("2", "2024-01-15", "unclear"),
                Intent("3", "2024-01-16", "ERROR: No response from AI"),
            ]
        )

        assert text.splitlines()[0] == ",".join(INTENT_CSV_COLUMNS)
        rows = read_csv(text)
        assert [row["Status"] for row in rows] == ["Success", "Unclear", "Error"]

    def test_quoting(self):
        rows = read_csv(intents_to_csv([Intent("1", "2024-01-15", 'Why was I charged "twice", again?')]))

        assert rows[0]["Intent"] == 'Why was I charged "twice", again?'

    def test_empty(self):
        assert intents_to_csv([]).strip() == ",".join(INTENT_CSV_COLUMNS)


class TestReviewCsv:
    """Tests for the review table."""

    def test_headers_and_values(self):
        items = [
            ReviewItem("1", "How?", "a2", 0.5, "Refunds", "Refunds are..."),
            ReviewItem("2", "Why?", None, None, ReviewCategory.ERROR, "[ERROR] down"),
        ]

        text = review_items_to_csv(items)

        assert text.splitlines()[0] == ",".join(REVIEW_CSV_COLUMNS)
        rows = read_csv(text)
        assert rows[0]["ResultID"] == "a2"
        assert float(rows[0]["Score"]) == 0.5
        assert rows[1]["ResultID"] == ""
        assert rows[1]["Score"] == ""
        assert rows[1]["Category"] == "Error"


class TestWriters:
    """Tests for files written to the output directory."""

    def test_write_conversations(self, tmp_path):
        conversation = Conversation("1", "2024-01-15", ["Customer: hi"])
        stats = ConversationStats(1, 1, 1.0, ("2024-01-15", "2024-01-15"), 1)

        path = write_conversations(tmp_path, [conversation], stats)

        data = json.loads(path.read_text())
        assert data["conversations"][0]["ConvID"] == "1"
        assert data["conversations"][0]["Conversation"] == "Customer: hi"
        assert data["stats"]["dateRange"] == "2024-01-15 to 2024-01-15"

    def test_write_extraction(self, tmp_path):
        result = ExtractionResult(
            intents=[Intent("1", "2024-01-15", "How?")], successful_extractions=1, model="mock-model"
        )

        json_path, csv_path = write_extraction(tmp_path / "output", result)

        data = json.loads(json_path.read_text())
        assert data["totalProcessed"] == 1
        assert data["successfulExtractions"] == 1
        assert data["intents"][0]["Intent"] == "How?"
        assert read_csv(csv_path.read_text())[0]["Status"] == "Success"

    def test_write_review(self, tmp_path):
        summary = SearchSummary(
            total_searched=1,
            low_confidence_matches=1,
            review_items=[ReviewItem("1", "How?", None, 0, ReviewCategory.NO_MATCH, "No relevant KB chunk found.")],
        )

        json_path, csv_path = write_review(tmp_path, summary)

        data = json.loads(json_path.read_text())
        assert data["lowConfidenceMatches"] == 1
        assert data["reviewItems"][0]["Category"] == "No Match Found"
        assert read_csv(csv_path.read_text())[0]["ArticleChunk"] == "No relevant KB chunk found."
