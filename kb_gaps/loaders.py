"""
Loading of exported message rows, conversations and intents from files.

Spreadsheet exports (.xlsx/.xls) and CSV files go through pandas; JSON files
may hold either a bare list of records or an object wrapping one.
"""

import json
import logging
import math
import re
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from kb_gaps.conversations.assemble import TIMESTAMP_KEYS, normalize_conv_id
from kb_gaps.exceptions import (
    EmptyInputError,
    InputFileNotFoundError,
    InvalidInputError,
    MissingColumnsError,
)
from kb_gaps.models.conversation import Conversation
from kb_gaps.models.intent import Intent

logger = logging.getLogger(__name__)

MESSAGE_COLUMNS = ["ConvID", "Role", "Message"]
INTENT_COLUMNS = ["ConvID", "Date", "Intent"]
CONVERSATION_COLUMNS = ["ConvID"]

SPREADSHEET_SUFFIXES = {".xlsx", ".xls"}
JSON_WRAPPER_KEYS = ("rows", "conversations", "intents", "reviewItems")

_NUMERIC = re.compile(r"^\s*\d+(\.\d+)?\s*$")


def _plain(value: Any) -> Any:
    """Convert pandas/numpy cell values to plain Python values."""
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, float) and math.isnan(value):
        return None
    if hasattr(value, "item") and not isinstance(value, (str, bytes, datetime)):
        value = value.item()
        if isinstance(value, float) and math.isnan(value):
            return None
    return value


def _read_table(path: Path) -> list[dict[str, Any]]:
    if path.suffix.lower() in SPREADSHEET_SUFFIXES:
        # First sheet, header row first, like the exporting tool writes it
        df = pd.read_excel(path, sheet_name=0)
    else:
        df = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8-sig")
    df.columns = [str(c).strip() for c in df.columns]
    return [{k: _plain(v) for k, v in row.items()} for row in df.to_dict(orient="records")]


def _read_json(path: Path) -> list[dict[str, Any]]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"{path} is not valid JSON: {e}") from e

    if isinstance(data, dict):
        for key in JSON_WRAPPER_KEYS:
            if isinstance(data.get(key), list):
                data = data[key]
                break
        else:
            raise InvalidInputError(
                f"{path} holds an object without any of: {', '.join(JSON_WRAPPER_KEYS)}"
            )

    if not isinstance(data, list):
        raise InvalidInputError(f"{path} must contain a list of records")
    if not all(isinstance(item, dict) for item in data):
        raise InvalidInputError(f"{path} contains entries that are not objects")
    return data


def read_records(path: str | Path) -> list[dict[str, Any]]:
    """
    Read a list of records from a CSV, spreadsheet or JSON file.

    Raises:
        InputFileNotFoundError: If the file does not exist
        InvalidInputError: If the file cannot be interpreted
    """
    path = Path(path)
    if not path.is_file():
        raise InputFileNotFoundError(str(path))

    if path.suffix.lower() == ".json":
        records = _read_json(path)
    else:
        try:
            records = _read_table(path)
        except (ValueError, pd.errors.ParserError, UnicodeDecodeError) as e:
            raise InvalidInputError(f"could not read {path}: {e}") from e

    logger.debug("Read %d records from %s", len(records), path)
    return records


def _require_columns(records: list[dict[str, Any]], required: list[str], path: Path) -> None:
    if not records:
        return
    present = set()
    for record in records:
        present.update(record.keys())
    missing = [col for col in required if col not in present]
    if missing:
        raise MissingColumnsError(missing, str(path))


def _spreadsheet_serial(value: Any) -> Any:
    # CSV exports keep serial dates as text
    if isinstance(value, str) and _NUMERIC.match(value):
        return float(value)
    return value


def load_message_rows(path: str | Path) -> list[dict[str, Any]]:
    """
    Load exported chat message rows.

    Requires ConvID, Role, Message and one timestamp column
    (Date/Time, DateTime, Timestamp or Date).

    Raises:
        MissingColumnsError: If a required column is absent
        EmptyInputError: If the file has no rows
    """
    path = Path(path)
    records = read_records(path)
    if not records:
        raise EmptyInputError("message rows")

    _require_columns(records, MESSAGE_COLUMNS, path)
    if not any(key in record for record in records for key in TIMESTAMP_KEYS):
        raise MissingColumnsError([TIMESTAMP_KEYS[0]], str(path))

    for record in records:
        for key in TIMESTAMP_KEYS:
            if key in record:
                record[key] = _spreadsheet_serial(record[key])
    return records


def _with_conv_id(record: dict[str, Any], index: int) -> dict[str, Any]:
    return {**record, "ConvID": normalize_conv_id(record.get("ConvID"), index)}


def load_intents(path: str | Path) -> list[Intent]:
    """
    Load a previously extracted (or hand-made) intent file.

    Raises:
        MissingColumnsError: If ConvID, Date or Intent is absent
        EmptyInputError: If the file has no rows
    """
    path = Path(path)
    records = read_records(path)
    if not records:
        raise EmptyInputError("intents")
    _require_columns(records, INTENT_COLUMNS, path)
    return [Intent.from_dict(_with_conv_id(r, i)) for i, r in enumerate(records)]


def load_conversations(path: str | Path) -> list[Conversation]:
    """Load conversations written by ``kb-gaps assemble``."""
    path = Path(path)
    records = read_records(path)
    if not records:
        raise EmptyInputError("conversations")
    _require_columns(records, CONVERSATION_COLUMNS, path)
    if not all("Transcript" in r or "Conversation" in r for r in records):
        raise MissingColumnsError(["Conversation"], str(path))
    return [Conversation.from_dict(_with_conv_id(r, i)) for i, r in enumerate(records)]
