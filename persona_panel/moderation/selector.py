"""
Speaker selection: decides which one or two agents answer the user this turn.

Ranking, highest priority first:

1. mentioned agents before unmentioned ones
2. forced agents (silent for ``forced_skip_threshold`` turns) before others
3. higher current relevance, when the gap is at least ``relevance_tie_margin``
4. agents who did not just speak before recent speakers
5. higher primary score (weighted relevance and context)

Only agents that are mentioned, forced or relevant enough form the candidate
pool; when nobody qualifies the single best-ranked agent speaks anyway so the
conversation never stalls. A second speaker is added only when that candidate
is mentioned, forced or clears the stricter second-speaker threshold.
"""

from dataclasses import dataclass
from functools import cmp_to_key
from typing import Iterable, List, Optional, Sequence

from ..config import SelectionConfig
from ..core.models import (
    Agent, Message, MonitorScore, CumulativeScoreState, SkippedTurnsState,
    SpeakerSelection, USER_AGENT_ID, SYSTEM_AGENT_ID
)


@dataclass(frozen=True)
class RankedAgent:
    """Per-agent attributes derived once per selection"""
    agent_id: str
    relevance: float
    primary_score: float
    is_mentioned: bool
    is_forced: bool
    was_recent_speaker: bool
    can_speak: bool


def recent_speaker_ids(conversation: Sequence[Message], window: int = 2) -> List[str]:
    """Authors of the latest ``window`` agent messages, oldest first"""
    if window <= 0:
        return []
    agent_messages = [
        msg for msg in conversation
        if not msg.is_user and msg.agent_id not in (USER_AGENT_ID, SYSTEM_AGENT_ID)
    ]
    return [msg.agent_id for msg in agent_messages[-window:]]


def rank_agents(
    turn_scores: Sequence[MonitorScore],
    agents: Sequence[Agent],
    skipped: SkippedTurnsState,
    recent_speakers: Iterable[str],
    mentioned_ids: Iterable[str],
    config: Optional[SelectionConfig] = None
) -> List[RankedAgent]:
    """All agents that have a score this turn, best first"""
    config = config or SelectionConfig()
    mentioned = set(mentioned_ids)
    recent = set(recent_speakers)

    ranked = []
    for agent in agents:
        score = next((s for s in turn_scores if s.agent_id == agent.id), None)
        if score is None:
            continue

        is_mentioned = agent.id in mentioned
        is_forced = skipped.get(agent.id, 0) >= config.forced_skip_threshold

        ranked.append(RankedAgent(
            agent_id=agent.id,
            relevance=score.relevance,
            primary_score=score.relevance * config.relevance_weight + score.context * config.context_weight,
            is_mentioned=is_mentioned,
            is_forced=is_forced,
            was_recent_speaker=agent.id in recent,
            can_speak=is_mentioned or is_forced or score.relevance >= config.eligibility_threshold
        ))

    def compare(a: RankedAgent, b: RankedAgent) -> int:
        if a.is_mentioned != b.is_mentioned:
            return -1 if a.is_mentioned else 1
        if a.is_forced != b.is_forced:
            return -1 if a.is_forced else 1
        if abs(a.relevance - b.relevance) >= config.relevance_tie_margin:
            return -1 if a.relevance > b.relevance else 1
        if a.was_recent_speaker != b.was_recent_speaker:
            return 1 if a.was_recent_speaker else -1
        if a.primary_score != b.primary_score:
            return -1 if a.primary_score > b.primary_score else 1
        return 0

    # sorted() is stable, so full ties keep roster order
    return sorted(ranked, key=cmp_to_key(compare))


def select_speakers(
    turn_scores: Sequence[MonitorScore],
    agents: Sequence[Agent],
    cumulative: CumulativeScoreState,
    skipped: SkippedTurnsState,
    recent_speakers: Iterable[str],
    mentioned_ids: Iterable[str],
    config: Optional[SelectionConfig] = None
) -> SpeakerSelection:
    """Choose this turn's speaker(s) without touching any state.

    ``cumulative`` is accepted so oracle and fallback paths share one call
    shape; the ranking itself only looks at the current turn.
    """
    if not agents:
        raise ValueError("select_speakers requires at least one agent")

    config = config or SelectionConfig()
    mentioned = sorted(set(mentioned_ids))

    ranked = rank_agents(turn_scores, agents, skipped, recent_speakers, mentioned, config)

    eligible = [r for r in ranked if r.can_speak]
    candidates = eligible if eligible else ranked[:1]

    if not candidates:
        return SpeakerSelection(speaker1_id=agents[0].id, mentioned_ids=mentioned)

    speaker2_id = None
    if len(candidates) > 1:
        runner_up = candidates[1]
        if (
            runner_up.is_mentioned
            or runner_up.is_forced
            or runner_up.relevance >= config.second_speaker_threshold
        ):
            speaker2_id = runner_up.agent_id

    return SpeakerSelection(
        speaker1_id=candidates[0].agent_id,
        speaker2_id=speaker2_id,
        mentioned_ids=mentioned
    )
