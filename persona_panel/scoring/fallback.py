"""
Heuristic turn scoring used between oracle checkpoints

Scores every agent from the latest user message without calling the
scoring oracle:
- Base relevance/context for everyone
- Keyword category boosts for agents whose role claims the category
- Penalty for agents who dominated the last few messages
- Small boost for agents named in the message

The resulting scores go through the same speaker selection as oracle
scores, so the two paths differ only in where the numbers come from.
"""

import logging
from typing import List, Optional, Sequence

from ..config import FallbackConfig, SelectionConfig
from ..core.models import (
    Agent, CumulativeScoreState, Message, MonitorScore, ScoreDecision, SkippedTurnsState
)
from ..moderation.mentions import detect_mentions
from ..moderation.selector import recent_speaker_ids, select_speakers
from ..providers.base import ScoreProvider

logger = logging.getLogger(__name__)


def latest_user_text(conversation: Sequence[Message]) -> str:
    return next((msg.text for msg in reversed(conversation) if msg.is_user), "")


class FallbackScorer(ScoreProvider):
    """Keyword and recency based scoring that never leaves the process"""

    def __init__(
        self,
        config: Optional[FallbackConfig] = None,
        selection_config: Optional[SelectionConfig] = None
    ):
        self.config = config or FallbackConfig()
        self.selection_config = selection_config or SelectionConfig()

    def score_agents(self, conversation: Sequence[Message], agents: Sequence[Agent]) -> List[MonitorScore]:
        """Heuristic MonitorScore for every agent"""
        cfg = self.config
        message = latest_user_text(conversation).lower()
        recent_messages = list(conversation)[-cfg.recent_window:] if cfg.recent_window > 0 else []

        scores = []
        for agent in agents:
            relevance = cfg.base_relevance
            context = cfg.base_context

            role = agent.role.lower()
            name = agent.name.lower()

            for category in cfg.categories:
                if not any(keyword in message for keyword in category.keywords):
                    continue
                if any(ident in role or ident in name for ident in category.identifiers):
                    relevance = min(cfg.max_score, relevance + cfg.category_relevance_boost)
                    context = min(cfg.max_score, context + cfg.category_context_boost)

            authored = sum(1 for msg in recent_messages if msg.agent_id == agent.id)
            if authored >= cfg.recent_message_limit:
                relevance = max(cfg.min_score, relevance - cfg.recent_relevance_penalty)
                context = max(cfg.min_score, context - cfg.recent_context_penalty)

            if name and name in message:
                relevance = min(cfg.max_score, relevance + cfg.name_relevance_boost)
                context = min(cfg.max_score, context + cfg.name_context_boost)

            scores.append(MonitorScore(agent_id=agent.id, relevance=relevance, context=context))

        return scores

    def score(
        self,
        conversation: Sequence[Message],
        agents: Sequence[Agent],
        cumulative: CumulativeScoreState,
        skipped: Optional[SkippedTurnsState] = None
    ) -> ScoreDecision:
        """Heuristic scores plus the speaker the shared selection rules would pick"""
        scores = self.score_agents(conversation, agents)
        skipped = skipped if skipped is not None else {agent.id: 0 for agent in agents}

        selection = select_speakers(
            scores,
            agents,
            cumulative,
            skipped,
            recent_speaker_ids(conversation, self.selection_config.recent_speaker_window),
            detect_mentions(latest_user_text(conversation), agents),
            self.selection_config
        )

        names = {agent.id: agent.name for agent in agents}
        ranked = sorted(scores, key=lambda s: s.relevance + s.context, reverse=True)
        top = ", ".join(f"{names[s.agent_id]}: {s.relevance + s.context:g}" for s in ranked[:2])
        reasoning = (
            f"Fallback scoring: Selected {names[selection.speaker1_id]} based on keyword "
            f"relevance and conversation flow. Top scores: {top}"
        )

        logger.debug(f"fallback_scores | speaker={selection.speaker1_id} | {top}")

        return ScoreDecision(
            scores=scores,
            next_speaker_id=selection.speaker1_id,
            reasoning=reasoning
        )

    async def get_decision(
        self,
        conversation: Sequence[Message],
        agents: Sequence[Agent],
        cumulative: CumulativeScoreState,
        skipped: SkippedTurnsState
    ) -> ScoreDecision:
        return self.score(conversation, agents, cumulative, skipped)
