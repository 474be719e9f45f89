"""
Conversation data models.
"""
from .turn import ConversationTurn, Role, Transcript

__all__ = ["ConversationTurn", "Role", "Transcript"]
