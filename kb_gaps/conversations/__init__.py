"""
Conversation reconstruction from exported chat rows.
"""

from kb_gaps.conversations.assemble import (
    ConversationAssembler,
    assemble_conversations,
    compute_stats,
)

__all__ = ["ConversationAssembler", "assemble_conversations", "compute_stats"]
