"""
Contracts for the external collaborators the moderation engine depends on.

Implementations are chosen by the caller and injected into the session;
nothing here inspects the environment to pick one.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Sequence, Union

from pydantic import ValidationError

from ..core.exceptions import OracleMalformedError
from ..core.models import (
    Agent, AgentReply, CumulativeScoreState, Message, ScoreDecision, SkippedTurnsState
)


class ScoreProvider(ABC):
    """Produces per-agent turn scores and a suggested next speaker"""

    @abstractmethod
    async def get_decision(
        self,
        conversation: Sequence[Message],
        agents: Sequence[Agent],
        cumulative: CumulativeScoreState,
        skipped: SkippedTurnsState
    ) -> Union[ScoreDecision, Dict[str, Any]]:
        """Score every agent for the current turn.

        Remote oracles may return the raw decoded payload; the session runs
        it through :func:`validate_decision` before use.
        """
        pass


class ResponseGenerator(ABC):
    """Generates the text a selected agent says next"""

    @abstractmethod
    async def generate(
        self,
        conversation: Sequence[Message],
        agents: Sequence[Agent],
        agent_id: str
    ) -> AgentReply:
        """Return the reply for ``agent_id``; raise on failure"""
        pass


class ReportGenerator(ABC):
    """Synthesizes the end-of-conversation report"""

    @abstractmethod
    async def generate_report(
        self,
        conversation: Sequence[Message],
        agents: Sequence[Agent],
        user_name: str
    ) -> str:
        pass


def validate_decision(raw: Union[ScoreDecision, Mapping[str, Any], None]) -> ScoreDecision:
    """Turn untrusted oracle output into a ScoreDecision.

    Accepts camelCase keys (``nextSpeakerAgentId``, ``agentId``) as produced
    by JSON-speaking oracles. Raises OracleMalformedError when scores or the
    next speaker id are missing or any field fails validation.
    """
    if isinstance(raw, ScoreDecision):
        return raw
    if not isinstance(raw, Mapping):
        raise OracleMalformedError(f"Oracle returned {type(raw).__name__}, expected a mapping")

    scores = raw.get("scores")
    next_speaker = raw.get("next_speaker_id", raw.get("nextSpeakerAgentId"))

    if not isinstance(scores, list):
        raise OracleMalformedError("Oracle decision is missing its scores list")
    if not next_speaker:
        raise OracleMalformedError("Oracle decision is missing the next speaker id")

    try:
        return ScoreDecision(
            scores=[_normalize_score(s) for s in scores],
            next_speaker_id=next_speaker,
            reasoning=raw.get("reasoning") or ""
        )
    except (ValidationError, TypeError, ValueError) as e:
        raise OracleMalformedError(f"Oracle decision failed validation: {e}") from e


def _normalize_score(score: Any) -> Dict[str, Any]:
    data = dict(score)
    if "agentId" in data and "agent_id" not in data:
        data["agent_id"] = data.pop("agentId")
    return data
