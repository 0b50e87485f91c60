"""Configuration utility functions."""

import json
from functools import lru_cache
from typing import Any

from kb_gaps.workspace import SCHEMA_FILE, Workspace


@lru_cache(maxsize=None)
def _nullable_keys(name: str) -> frozenset[str]:
    """Keys of a config section whose schema accepts null."""
    schema = json.loads(SCHEMA_FILE.read_text())
    properties = schema["properties"][name]["properties"]
    return frozenset(
        key
        for key, prop in properties.items()
        if isinstance(prop.get("type"), list) and "null" in prop["type"]
    )


def _section(config: dict[str, Any] | None, name: str) -> dict[str, Any]:
    merged = dict(Workspace.DEFAULT_CONFIG[name])
    if config:
        nullable = _nullable_keys(name)
        # null falls back to the default unless the schema allows null
        merged.update(
            {
                k: v
                for k, v in (config.get(name) or {}).items()
                if v is not None or k in nullable
            }
        )
    return merged


def llm_settings(config: dict[str, Any] | None) -> dict[str, Any]:
    """
    Get the llm section with defaults filled in.

    Example:
        >>> llm_settings({"llm": {"batch_size": 5}})["batch_size"]
        5
        >>> llm_settings({})["retry_limit"]
        3
    """
    return _section(config, "llm")


def search_settings(config: dict[str, Any] | None) -> dict[str, Any]:
    """
    Get the search section with defaults filled in.

    ``embed_model: null`` is kept as None, which makes the legacy query
    fall back to a zero vector.
    """
    return _section(config, "search")
