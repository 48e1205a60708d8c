"""
Cumulative score and skipped-turn bookkeeping.

Every function returns a new mapping and leaves its inputs untouched, so
the same state can be shared by tests and by concurrent sessions safely.
"""

from typing import Iterable, Optional, Sequence, Tuple

from ..core.models import (
    Agent, MonitorScore, CumulativeScore, CumulativeScoreState, SkippedTurnsState
)


def initialize(agents: Sequence[Agent]) -> Tuple[CumulativeScoreState, SkippedTurnsState]:
    """Zeroed cumulative totals and skip counters, one entry per agent"""
    cumulative = {agent.id: CumulativeScore(agent_id=agent.id) for agent in agents}
    skipped = {agent.id: 0 for agent in agents}
    return cumulative, skipped


def apply_turn_scores(
    cumulative: CumulativeScoreState,
    turn_scores: Iterable[MonitorScore]
) -> CumulativeScoreState:
    """Fold this turn's scores into the running totals.

    Scores for agent ids that are not in ``cumulative`` are dropped: oracle
    output is untrusted and may name agents that were never configured.
    """
    updated = dict(cumulative)
    for score in turn_scores:
        current = updated.get(score.agent_id)
        if current is None:
            continue
        updated[score.agent_id] = CumulativeScore(
            agent_id=score.agent_id,
            relevance=current.relevance + score.relevance,
            context=current.context + score.context
        )
    return updated


def apply_turn_outcome(
    skipped: SkippedTurnsState,
    agents: Sequence[Agent],
    speaker_ids: Iterable[str]
) -> SkippedTurnsState:
    """Reset the counters of this turn's speakers and age everyone else by one"""
    speakers = set(speaker_ids)
    updated = dict(skipped)
    for agent in agents:
        if agent.id in speakers:
            updated[agent.id] = 0
        else:
            updated[agent.id] = skipped.get(agent.id, 0) + 1
    return updated


def find_turn_score(agent_id: str, turn_scores: Iterable[MonitorScore]) -> Optional[MonitorScore]:
    """First turn score for ``agent_id``, if the provider produced one"""
    return next((s for s in turn_scores if s.agent_id == agent_id), None)


def total_score(
    agent_id: str,
    turn_scores: Sequence[MonitorScore],
    cumulative: CumulativeScoreState
) -> float:
    """Cumulative plus current-turn relevance and context; 0 when unscored this turn"""
    current = find_turn_score(agent_id, turn_scores)
    if current is None:
        return 0

    running = cumulative.get(agent_id)
    running_total = running.total if running else 0
    return running_total + current.relevance + current.context
