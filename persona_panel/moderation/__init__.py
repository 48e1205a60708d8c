"""
Conversation moderation: mention detection, speaker selection and
oracle checkpoint scheduling.
"""

from .mentions import detect_mentions
from .selector import RankedAgent, rank_agents, recent_speaker_ids, select_speakers
from .checkpoints import (
    CheckpointScheduler,
    check_report_bot,
    check_score_keeper,
    count_user_messages
)

__all__ = [
    "detect_mentions",
    "RankedAgent",
    "rank_agents",
    "recent_speaker_ids",
    "select_speakers",
    "CheckpointScheduler",
    "check_report_bot",
    "check_score_keeper",
    "count_user_messages"
]
