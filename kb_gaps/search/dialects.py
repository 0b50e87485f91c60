"""
Request builders and response normalizers for the two search protocols.

The integrated records-search protocol and the legacy vector-query protocol
carry the same query in different envelopes and answer in different shapes.
Each direction gets one pure function per protocol; the rest of the package
only ever sees SearchRequest and SearchMatch.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import quote

from kb_gaps.models.search import SearchMatch

DEFAULT_NAMESPACE = "__default__"


class SearchProtocol(Enum):
    """Wire protocol used for a search request."""

    RECORDS = "records"
    LEGACY = "legacy"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class SearchRequest:
    """An HTTP request ready to send: path relative to the index host plus JSON body."""

    protocol: SearchProtocol
    path: str
    body: dict[str, Any]


def records_namespace(namespace: str | None) -> str:
    """Records search addresses the default namespace as "__default__"."""
    namespace = (namespace or "").strip()
    return namespace or DEFAULT_NAMESPACE


def legacy_namespace(namespace: str | None) -> str:
    """The legacy query endpoint addresses the default namespace as ""."""
    namespace = (namespace or "").strip()
    return "" if namespace == DEFAULT_NAMESPACE else namespace


def build_records_request(
    text: str, top_k: int, namespace: str | None, fields: list[str]
) -> SearchRequest:
    """
    Build an integrated-inference records search.

    The namespace is addressed in the URL path and repeated in the body;
    the query text is embedded server-side.
    """
    ns = records_namespace(namespace)
    return SearchRequest(
        protocol=SearchProtocol.RECORDS,
        path=f"/records/namespaces/{quote(ns, safe='')}/search",
        body={
            "namespace": ns,
            "query": {"inputs": {"text": text}, "top_k": top_k},
            "fields": list(fields),
        },
    )


def build_legacy_query_request(
    vector: list[float], top_k: int, namespace: str | None
) -> SearchRequest:
    """Build a legacy vector query for the same semantic query."""
    return SearchRequest(
        protocol=SearchProtocol.LEGACY,
        path="/query",
        body={
            "vector": vector,
            "topK": top_k,
            "includeMetadata": True,
            "namespace": legacy_namespace(namespace),
        },
    )


def _score(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _article_text(fields: dict[str, Any]) -> str | None:
    return fields.get("article") or fields.get("articleText") or fields.get("text")


def matches_from_records(payload: dict[str, Any]) -> list[SearchMatch]:
    """Normalize {"result": {"hits": [{_id, _score, fields}]}}."""
    hits = (payload.get("result") or {}).get("hits") or []
    matches = []
    for hit in hits:
        fields = hit.get("fields") or {}
        matches.append(
            SearchMatch(
                id=str(hit.get("_id", "")),
                score=_score(hit.get("_score")),
                title=fields.get("title"),
                article_text=_article_text(fields),
            )
        )
    return matches


def matches_from_legacy(payload: dict[str, Any]) -> list[SearchMatch]:
    """Normalize {"matches": [{id, score, metadata}]}."""
    matches = []
    for match in payload.get("matches") or []:
        metadata = match.get("metadata") or {}
        matches.append(
            SearchMatch(
                id=str(match.get("id", "")),
                score=_score(match.get("score")),
                title=metadata.get("title"),
                article_text=_article_text(metadata),
            )
        )
    return matches


NORMALIZERS = {
    SearchProtocol.RECORDS: matches_from_records,
    SearchProtocol.LEGACY: matches_from_legacy,
}


def normalize_response(protocol: SearchProtocol, payload: Any) -> list[SearchMatch]:
    """
    Translate a provider response into SearchMatch objects.

    Raises:
        ValueError: If the payload is not a JSON object
    """
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
    return NORMALIZERS[protocol](payload)
