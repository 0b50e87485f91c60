"""
Knowledge-base search layer.
"""

from kb_gaps.search.base import SearchClient
from kb_gaps.search.engine import KnowledgeBaseSearchEngine, ResultClassifier
from kb_gaps.search.mock import MockSearchClient
from kb_gaps.search.pinecone import PineconeSearchClient


def get_search_client(config: dict) -> SearchClient:
    """
    Factory function to get a search client based on config.

    Args:
        config: Configuration dict with 'search' section

    Returns:
        SearchClient instance

    Raises:
        ValueError: If provider is not supported
    """
    search_config = config.get("search", {})
    provider_name = search_config.get("provider", "pinecone").lower()

    clients = {
        "pinecone": PineconeSearchClient,
        "mock": MockSearchClient,
    }

    if provider_name not in clients:
        raise ValueError(
            f"Unsupported search provider: {provider_name}. Must be one of: {list(clients.keys())}"
        )

    return clients[provider_name](search_config)


__all__ = [
    "SearchClient",
    "KnowledgeBaseSearchEngine",
    "ResultClassifier",
    "MockSearchClient",
    "PineconeSearchClient",
    "get_search_client",
]
