"""
Turn scoring: cumulative score bookkeeping and the heuristic fallback scorer
"""

from .store import (
    initialize,
    apply_turn_scores,
    apply_turn_outcome,
    find_turn_score,
    total_score
)
from .fallback import FallbackScorer, latest_user_text

__all__ = [
    "initialize",
    "apply_turn_scores",
    "apply_turn_outcome",
    "find_turn_score",
    "total_score",
    "FallbackScorer",
    "latest_user_text"
]
