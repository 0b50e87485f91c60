"""
Tests for loading message rows, conversations and intents from files.
"""

import json

import pandas as pd
import pytest

from kb_gaps.conversations import assemble_conversations
from kb_gaps.exceptions import (
    EmptyInputError,
    InputFileNotFoundError,
    InvalidInputError,
    MissingColumnsError,
)
from kb_gaps.loaders import load_conversations, load_intents, load_message_rows, read_records

ROWS_CSV = """ConvID,Date/Time,Role,Message
007,2024-01-15T10:30:00Z,Customer,I want a refund
007,2024-01-15T10:30:05Z,Agent,"Sure, let me check."
8,45307,Customer,Hello
"""


class TestReadRecords:
    """Tests for the format dispatch."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(InputFileNotFoundError):
            read_records(tmp_path / "missing.csv")

    def test_json_list(self, tmp_path):
        path = tmp_path / "rows.json"
        path.write_text(json.dumps([{"ConvID": 1}]))

        assert read_records(path) == [{"ConvID": 1}]

    def test_json_wrapper_object(self, tmp_path):
        path = tmp_path / "intents.json"
        path.write_text(json.dumps({"intents": [{"ConvID": "1"}], "totalProcessed": 1}))

        assert read_records(path) == [{"ConvID": "1"}]

    def test_json_object_without_records(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"total": 1}))

        with pytest.raises(InvalidInputError):
            read_records(path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")

        with pytest.raises(InvalidInputError, match="not valid JSON"):
            read_records(path)

    def test_json_entries_must_be_objects(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([1, 2]))

        with pytest.raises(InvalidInputError):
            read_records(path)


class TestLoadMessageRows:
    """Tests for exported chat rows."""

    def test_csv_keeps_conv_id_text(self, tmp_path):
        path = tmp_path / "rows.csv"
        path.write_text(ROWS_CSV)

        records = load_message_rows(path)

        assert len(records) == 3
        assert records[0]["ConvID"] == "007"
        assert records[1]["Message"] == "Sure, let me check."

    def test_csv_serial_dates_become_numbers(self, tmp_path):
        path = tmp_path / "rows.csv"
        path.write_text(ROWS_CSV)

        records = load_message_rows(path)

        assert records[2]["Date/Time"] == 45307.0
        assert records[0]["Date/Time"] == "2024-01-15T10:30:00Z"

    def test_rows_feed_assembly(self, tmp_path):
        path = tmp_path / "rows.csv"
        path.write_text(ROWS_CSV)

        conversations, stats = assemble_conversations(load_message_rows(path))

        assert [c.conv_id for c in conversations] == ["007", "8"]
        assert conversations[1].date == "2024-01-16"
        assert stats.total_messages == 3

    def test_missing_columns(self, tmp_path):
        path = tmp_path / "rows.csv"
        path.write_text("ConvID,Date/Time,Text\n1,2024-01-15,hello\n")

        with pytest.raises(MissingColumnsError) as exc_info:
            load_message_rows(path)

        assert "Role" in exc_info.value.message
        assert "Message" in exc_info.value.message

    def test_missing_timestamp_column(self, tmp_path):
        path = tmp_path / "rows.csv"
        path.write_text("ConvID,Role,Message\n1,Customer,hello\n")

        with pytest.raises(MissingColumnsError, match="Date/Time"):
            load_message_rows(path)

    def test_header_only(self, tmp_path):
        path = tmp_path / "rows.csv"
        path.write_text("ConvID,Date/Time,Role,Message\n")

        with pytest.raises(EmptyInputError):
            load_message_rows(path)

    def test_spreadsheet(self, tmp_path):
        path = tmp_path / "rows.xlsx"
        pd.DataFrame(
            [
                {"ConvID": 12, "Date/Time": pd.Timestamp("2024-01-15 10:30"), "Role": "Customer", "Message": "Hi"},
                {"ConvID": 12, "Date/Time": pd.Timestamp("2024-01-15 10:31"), "Role": "Agent", "Message": None},
            ]
        ).to_excel(path, index=False)

        records = load_message_rows(path)

        assert records[0]["ConvID"] == 12
        assert records[1]["Message"] is None
        conversations, _ = assemble_conversations(records)
        assert conversations[0].conv_id == "12"
        assert conversations[0].date == "2024-01-15"
        assert conversations[0].transcript == ["Customer: Hi"]


class TestLoadIntents:
    """Tests for intent files."""

    def test_csv(self, tmp_path):
        path = tmp_path / "intents.csv"
        path.write_text("ConvID,Date,Intent\n1,2024-01-15,How do I get a refund?\n2,2024-01-16,unclear\n")

        intents = load_intents(path)

        assert [(i.conv_id, i.intent) for i in intents] == [
            ("1", "How do I get a refund?"),
            ("2", "unclear"),
        ]

    def test_extraction_output_round_trip(self, tmp_path):
        path = tmp_path / "intents.json"
        path.write_text(
            json.dumps(
                {
                    "intents": [
                        {"ConvID": 3, "Date": "2024-01-15", "Conversation": "Customer: hi...", "Intent": "How?"}
                    ]
                }
            )
        )

        intent = load_intents(path)[0]

        assert intent.conv_id == "3"
        assert intent.excerpt == "Customer: hi..."

    def test_missing_intent_column(self, tmp_path):
        path = tmp_path / "intents.csv"
        path.write_text("ConvID,Date\n1,2024-01-15\n")

        with pytest.raises(MissingColumnsError, match="Intent"):
            load_intents(path)


class TestLoadConversations:
    """Tests for assembled conversation files."""

    def test_transcript(self, tmp_path):
        path = tmp_path / "conversations.json"
        path.write_text(
            json.dumps(
                {
                    "conversations": [
                        {"ConvID": "1", "Date": "2024-01-15", "Transcript": ["Customer: hi", "Agent: hello"]}
                    ],
                    "stats": {},
                }
            )
        )

        conversation = load_conversations(path)[0]

        assert conversation.text == "Customer: hi\nAgent: hello"
        assert conversation.message_count == 2

    def test_conversation_text_only(self, tmp_path):
        path = tmp_path / "conversations.json"
        path.write_text(json.dumps([{"ConvID": 5, "Date": "2024-01-15", "Conversation": "A: x\nB: y"}]))

        conversation = load_conversations(path)[0]

        assert conversation.conv_id == "5"
        assert conversation.transcript == ["A: x", "B: y"]

    def test_missing_conversation_text(self, tmp_path):
        path = tmp_path / "conversations.json"
        path.write_text(json.dumps([{"ConvID": "1"}]))

        with pytest.raises(MissingColumnsError):
            load_conversations(path)
