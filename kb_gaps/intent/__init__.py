"""
Intent extraction: prompt rendering, response parsing, classification and
the batched extraction orchestrator.
"""

from kb_gaps.intent.extract import IntentExtractionOrchestrator, PauseToken, extract_intents

__all__ = ["IntentExtractionOrchestrator", "PauseToken", "extract_intents"]
