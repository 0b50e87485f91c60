"""
kb-gaps: find knowledge-base content gaps in customer chat logs.

Turns exported chat transcripts into a prioritized list of intents the
knowledge base does not answer well.

Main features:
- Conversation reconstruction from flat per-message exports
- Batched LLM intent extraction with pause/resume and per-batch degradation
- Semantic knowledge-base search with protocol fallback and threshold review
- CSV and JSON exports
"""

__version__ = "0.1.0"
