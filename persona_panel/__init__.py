"""
Persona Panel - conversation moderation engine for multi-agent discussions

Decides which scripted agents answer each user message, keeps cumulative
score and fairness state across turns, and schedules when the expensive
scoring oracle is consulted instead of the local fallback heuristic.
"""

__version__ = "0.1.0"

from .core import (
    Agent,
    Message,
    MonitorScore,
    CumulativeScore,
    ScoreDecision,
    SpeakerSelection,
    TurnResult,
    SessionReport
)
from .moderation import CheckpointScheduler, detect_mentions, select_speakers
from .scoring import FallbackScorer
from .session import ConversationSession

__all__ = [
    "Agent",
    "Message",
    "MonitorScore",
    "CumulativeScore",
    "ScoreDecision",
    "SpeakerSelection",
    "TurnResult",
    "SessionReport",
    "CheckpointScheduler",
    "detect_mentions",
    "select_speakers",
    "FallbackScorer",
    "ConversationSession"
]
