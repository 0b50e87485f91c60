"""
Defensive parsing of batch extraction responses.

Models wrap the JSON array in Markdown fences or add a sentence of preamble
often enough that the raw text is never parsed directly.
"""

import json
import re
from typing import Any

from kb_gaps.exceptions import LLMResponseParsingError


def clean_llm_response(response: str) -> str:
    """
    Isolate the JSON array in an LLM response.

    Removes markdown code fences, then keeps the text between the first "["
    and the last "]" when both are present.
    """
    response = re.sub(r"```[a-zA-Z]*\n?", "", response)
    response = response.strip()

    start = response.find("[")
    end = response.rfind("]") + 1
    if start >= 0 and end > start:
        response = response[start:end]

    return response


def parse_intent_array(response: str) -> list[dict[str, Any]]:
    """
    Parse a batch response into a list of {"ConvID", "Intent"} objects.

    Elements that are not objects are discarded here; matching to
    conversations happens in the orchestrator.

    Raises:
        LLMResponseParsingError: If no JSON array can be recovered
    """
    cleaned = clean_llm_response(response)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise LLMResponseParsingError(f"invalid JSON ({e.msg} at position {e.pos})") from e

    if not isinstance(data, list):
        raise LLMResponseParsingError(f"expected a JSON array, got {type(data).__name__}")

    return [item for item in data if isinstance(item, dict)]
