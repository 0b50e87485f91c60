"""Pinecone search client with records-search primary and legacy query fallback."""

import logging
import os
from typing import Optional

import requests

from kb_gaps.exceptions import SearchAPIError, SearchProviderNotAvailableError
from kb_gaps.models.search import SearchMatch
from kb_gaps.search.base import SearchClient
from kb_gaps.search.dialects import (
    SearchRequest,
    build_legacy_query_request,
    build_records_request,
    normalize_response,
)
from kb_gaps.util.redact import redact_sensitive

logger = logging.getLogger(__name__)

DEFAULT_FIELDS = ["title", "article", "locale"]
DEFAULT_API_VERSION = "2025-04"
DEFAULT_EMBED_HOST = "https://api.pinecone.io"
ERROR_BODY_LENGTH = 200


class PineconeSearchClient(SearchClient):
    """
    Pinecone index client.

    Tries the integrated records search first. When it answers with a
    non-success status (or the request cannot be sent at all), the same query
    is retried against the legacy /query endpoint using a query vector from
    the inference embed API, or a zero vector when no embed model is set.
    """

    name = "pinecone"
    label = "Pinecone"

    def __init__(self, config: dict):
        super().__init__(config)
        self.host = (config.get("host") or "").rstrip("/")
        self.api_key_env = config.get("api_key_env", "PINECONE_API_KEY")
        self.timeout = config.get("timeout", 30)
        self.fields = list(config.get("fields") or DEFAULT_FIELDS)
        self.api_version = config.get("api_version", DEFAULT_API_VERSION)
        self.embed_model: Optional[str] = config.get("embed_model")
        self.embed_host = (config.get("embed_host") or DEFAULT_EMBED_HOST).rstrip("/")
        self.dimension = int(config.get("dimension", 1024))

    @property
    def api_key(self) -> Optional[str]:
        return os.environ.get(self.api_key_env) if self.api_key_env else None

    def check_configuration(self) -> None:
        if not self.api_key:
            raise SearchProviderNotAvailableError(self.name, f"API key (${self.api_key_env})")
        if not self.host:
            raise SearchProviderNotAvailableError(self.name, "search.host")

    def _records_headers(self) -> dict:
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Api-Key": self.api_key or "",
            "X-Pinecone-API-Version": self.api_version,
        }

    def _legacy_headers(self) -> dict:
        return {
            "Api-Key": self.api_key or "",
            "Content-Type": "application/json",
        }

    def _post(self, url: str, body: dict, headers: dict) -> dict:
        """
        POST JSON and return the decoded object.

        Raises:
            SearchAPIError: On transport errors, non-2xx status or invalid JSON
        """
        try:
            response = requests.post(url, json=body, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise SearchAPIError(self.label, redact_sensitive(str(e))) from e

        if not 200 <= response.status_code < 300:
            detail = redact_sensitive(str(response.text or ""))[:ERROR_BODY_LENGTH]
            raise SearchAPIError(
                self.label,
                f"{response.status_code} - {detail}",
                status=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise SearchAPIError(self.label, "response is not valid JSON") from e

    def _send(self, request: SearchRequest, headers: dict) -> list[SearchMatch]:
        payload = self._post(f"{self.host}{request.path}", request.body, headers)
        try:
            return normalize_response(request.protocol, payload)
        except ValueError as e:
            raise SearchAPIError(self.label, f"malformed {request.protocol} response: {e}") from e

    def _query_vector(self, text: str) -> list[float]:
        """Embed the query for the legacy endpoint."""
        if not self.embed_model:
            return [0.0] * self.dimension

        payload = self._post(
            f"{self.embed_host}/embed",
            {
                "model": self.embed_model,
                "parameters": {"input_type": "query", "truncate": "END"},
                "inputs": [{"text": text}],
            },
            self._records_headers(),
        )
        try:
            return [float(v) for v in payload["data"][0]["values"]]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise SearchAPIError(self.label, "embed response has no vector") from e

    def search(self, text: str, top_k: int, namespace: str | None = None) -> list[SearchMatch]:
        """
        Search the index, falling back to the legacy protocol on failure.

        Raises:
            SearchAPIError: If both protocols fail
        """
        primary = build_records_request(text, top_k, namespace, self.fields)
        try:
            return self._send(primary, self._records_headers())
        except SearchAPIError as e:
            logger.info("Records search failed (%s), trying legacy query endpoint", e.message)

        legacy = build_legacy_query_request(self._query_vector(text), top_k, namespace)
        return self._send(legacy, self._legacy_headers())
