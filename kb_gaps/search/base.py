"""
Abstract base class for knowledge-base search clients.
"""
from abc import ABC, abstractmethod

from kb_gaps.models.search import SearchMatch


class SearchClient(ABC):
    """Abstract base class for semantic search clients."""

    name = "search"
    label = "Search"

    def __init__(self, config: dict):
        """
        Args:
            config: The 'search' section of the workspace configuration
        """
        self.config = config

    @abstractmethod
    def search(self, text: str, top_k: int, namespace: str | None = None) -> list[SearchMatch]:
        """
        Query the index for ``text``.

        Returns:
            Matches, best first (may be empty)

        Raises:
            SearchAPIError: If no protocol produced a usable response
        """
        pass

    def check_configuration(self) -> None:
        """
        Validate configuration before any query is sent.

        Raises:
            SearchProviderNotAvailableError: If the client cannot be used
        """
        return None
