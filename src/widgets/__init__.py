"""
Custom UI widgets for the agent-chat application.
"""
from .conversation_view import ConversationView
from .prompt_input import PromptInput

__all__ = ["ConversationView", "PromptInput"]
