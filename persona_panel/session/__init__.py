"""
Conversation session management
"""

from .conversation import ConversationSession

__all__ = ["ConversationSession"]
