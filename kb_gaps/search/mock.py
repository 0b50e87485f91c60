"""
Mock search client for demo mode (no API calls).
"""

from kb_gaps.models.search import SearchMatch
from kb_gaps.search.base import SearchClient
from kb_gaps.util.hashing import stable_fraction

MOCK_ARTICLES = [
    ("Account Management", "How to update your account details and security settings."),
    ("Billing", "Understanding invoices, refunds and payment methods."),
    ("Subscriptions", "Changing or cancelling your plan at any time."),
    ("Getting Started", "A walkthrough of the first steps after signing up."),
]


class MockSearchClient(SearchClient):
    """
    Returns deterministic pseudo-random matches derived from the query text.

    Scores fall between 0.55 and 0.95 so demo runs show both high- and
    low-confidence results.
    """

    name = "mock"
    label = "Mock"

    def search(self, text: str, top_k: int, namespace: str | None = None) -> list[SearchMatch]:
        matches = []
        for rank in range(top_k):
            seed = stable_fraction(f"{namespace or ''}|{text}|{rank}")
            title, article = MOCK_ARTICLES[int(seed * len(MOCK_ARTICLES))]
            matches.append(
                SearchMatch(
                    id=f"mock_{int(seed * 10000):04d}",
                    score=0.55 + 0.4 * seed,
                    title=title,
                    article_text=article,
                )
            )
        return sorted(matches, key=lambda m: m.score, reverse=True)
