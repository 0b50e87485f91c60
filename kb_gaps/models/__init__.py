"""
Data models used throughout the gap-analysis pipeline.

Modules:
- conversation: MessageRow, Conversation, ConversationStats
- intent: Intent, IntentStatus, ExtractionResult
- pipeline: RunStatus, RunTally, PipelineRunState
- search: SearchMatch, ReviewItem, SearchSummary
"""
