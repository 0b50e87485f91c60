"""
Classification of extracted intents.
"""

from kb_gaps.models.intent import ERROR_PREFIX, IntentStatus
from kb_gaps.models.pipeline import RunTally

UNCLEAR_MARKERS = ("unclear", "unknown")


def classify_intent(text: str) -> IntentStatus:
    """
    Classify an intent string.

    Examples:
        >>> classify_intent("How do I get a refund?")
        <IntentStatus.SUCCESSFUL: 'Success'>
        >>> classify_intent("Unclear - customer left")
        <IntentStatus.UNCLEAR: 'Unclear'>
        >>> classify_intent("ERROR: Failed to parse AI response")
        <IntentStatus.ERROR: 'Error'>
    """
    if text.startswith(ERROR_PREFIX):
        return IntentStatus.ERROR
    lowered = text.lower()
    if any(marker in lowered for marker in UNCLEAR_MARKERS):
        return IntentStatus.UNCLEAR
    return IntentStatus.SUCCESSFUL


def tally_intents(texts: list[str]) -> RunTally:
    """Count intents per status."""
    statuses = [classify_intent(text) for text in texts]
    return RunTally(
        successful=statuses.count(IntentStatus.SUCCESSFUL),
        unclear=statuses.count(IntentStatus.UNCLEAR),
        errors=statuses.count(IntentStatus.ERROR),
    )
