"""
Offline stand-ins for the scoring oracle, response generator and report bot.

Used by the scripted simulation and in tests when no real model is wired in.
Responses are canned and scores random, so these exercise the moderation
flow rather than conversation quality.
"""

import asyncio
import random
from datetime import datetime, timezone
from typing import Optional, Sequence

from ..core.models import (
    Agent, AgentReply, CumulativeScoreState, Message, MonitorScore, ScoreDecision,
    SkippedTurnsState, TokenUsage
)
from ..logging import get_logger
from .base import ReportGenerator, ResponseGenerator, ScoreProvider


MOCK_RESPONSES = [
    "That's a great question! Based on my experience, I think we should start by defining the core user requirements.",
    "I agree with the previous point. We also need to consider the technical architecture from the beginning.",
    "From a deployment perspective, I'd recommend we think about scalability and security early on.",
    "Let me add that we should validate our assumptions with real user feedback before we go too far down any path.",
    "I think we're on the right track. The key is to balance speed with quality.",
    "That makes sense. We should also consider the long-term maintenance implications.",
    "Good point! I'd like to add that performance should be a first-class consideration.",
    "Absolutely. And we need to make sure our solution can handle the expected load.",
]


def estimate_token_usage(prompt: str, response: str) -> TokenUsage:
    """Rough word-to-token conversion for providers that do not report usage"""
    prompt_tokens = int(len(prompt.split()) * 1.3)
    completion_tokens = int(len(response.split()) * 1.3)
    return TokenUsage(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=prompt_tokens + completion_tokens
    )


class MockScoreProvider(ScoreProvider):
    """Random 6-10 scores and a random suggested speaker"""

    def __init__(self, seed: Optional[int] = None, delay: float = 0.0):
        self.rng = random.Random(seed)
        self.delay = delay
        self.calls = 0
        self.logger = get_logger(__name__)

    async def get_decision(
        self,
        conversation: Sequence[Message],
        agents: Sequence[Agent],
        cumulative: CumulativeScoreState,
        skipped: SkippedTurnsState
    ) -> ScoreDecision:
        if self.delay:
            await asyncio.sleep(self.delay)
        self.calls += 1

        scores = [
            MonitorScore(
                agent_id=agent.id,
                relevance=self.rng.randint(6, 10),
                context=self.rng.randint(6, 10)
            )
            for agent in agents
        ]
        next_speaker = self.rng.choice(list(agents))

        self.logger.debug(f"mock_oracle_call | call={self.calls} | suggested={next_speaker.id}")

        return ScoreDecision(
            scores=scores,
            next_speaker_id=next_speaker.id,
            reasoning="Mock decision for development - selected based on random criteria"
        )


class MockResponseGenerator(ResponseGenerator):
    """Cycles through canned replies, tagging each with the speaking agent"""

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.response_index = 0

    async def generate(
        self,
        conversation: Sequence[Message],
        agents: Sequence[Agent],
        agent_id: str
    ) -> AgentReply:
        if self.delay:
            await asyncio.sleep(self.delay)

        agent = next((a for a in agents if a.id == agent_id), None)
        if agent is None:
            raise ValueError(f"Agent with ID {agent_id} not found.")

        response = MOCK_RESPONSES[self.response_index % len(MOCK_RESPONSES)]
        self.response_index += 1
        text = f"{response} (This is a mock response for development - {agent.name})"

        prompt = "\n".join(msg.text for msg in conversation)
        return AgentReply(agent_id=agent_id, text=text, usage=estimate_token_usage(prompt, text))


class MockReportGenerator(ReportGenerator):
    """Plain-text summary of who said how much"""

    async def generate_report(
        self,
        conversation: Sequence[Message],
        agents: Sequence[Agent],
        user_name: str
    ) -> str:
        lines = [
            f"Discussion report for {user_name}",
            f"Generated: {datetime.now(timezone.utc).date().isoformat()}",
            f"Messages in conversation: {len(conversation)}",
            "",
            "Contributions:"
        ]
        for agent in agents:
            count = sum(1 for msg in conversation if msg.agent_id == agent.id)
            lines.append(f"- {agent.name} ({agent.role or 'no role'}): {count} messages")
        return "\n".join(lines)
