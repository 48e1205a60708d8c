"""
Shared data models for the Persona Panel moderation engine.

Agents and messages are immutable once created; score and turn-counter
state is passed in and returned as fresh mappings by the scoring and
moderation functions rather than mutated in place.
"""

from typing import Dict, List, Optional
from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict, Field
import uuid


USER_AGENT_ID = "user"
SYSTEM_AGENT_ID = "system"


class Agent(BaseModel):
    """A configured conversational persona"""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), min_length=1)
    name: str
    role: str = ""
    starting_context: str = ""
    color: str = ""  # presentation only


class Message(BaseModel):
    """One utterance in the transcript"""
    model_config = ConfigDict(frozen=True)

    agent_id: str
    agent_name: str
    text: str
    is_user: bool = False
    color: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_user(cls, text: str, user_name: str = "User") -> "Message":
        return cls(agent_id=USER_AGENT_ID, agent_name=user_name, text=text, is_user=True)

    @classmethod
    def from_agent(cls, agent: Agent, text: str) -> "Message":
        return cls(agent_id=agent.id, agent_name=agent.name, text=text, color=agent.color)


class MonitorScore(BaseModel):
    """Relevance/context rating for one agent, valid for the current turn only"""
    model_config = ConfigDict(frozen=True)

    agent_id: str
    relevance: float = Field(ge=1, le=10)
    context: float = Field(ge=1, le=10)
    engagement: Optional[float] = Field(default=None, ge=1, le=10)
    expertise: Optional[float] = Field(default=None, ge=1, le=10)


class CumulativeScore(BaseModel):
    """Running totals of turn scores for one agent"""
    model_config = ConfigDict(frozen=True)

    agent_id: str
    relevance: float = Field(default=0, ge=0)
    context: float = Field(default=0, ge=0)

    @property
    def total(self) -> float:
        return self.relevance + self.context


# agent_id -> running totals; one entry per configured agent
CumulativeScoreState = Dict[str, CumulativeScore]

# agent_id -> consecutive turns since the agent last spoke
SkippedTurnsState = Dict[str, int]


class CheckpointState(BaseModel):
    """User message counts at which each oracle consumer last ran (-1 = never)"""
    model_config = ConfigDict(frozen=True)

    last_score_keeper_checkpoint: int = -1
    last_report_bot_checkpoint: int = -1


class ScoreDecision(BaseModel):
    """Output of a score provider: per-agent turn scores plus its preferred speaker"""
    scores: List[MonitorScore]
    next_speaker_id: str = Field(min_length=1)
    reasoning: str = ""


class SpeakerSelection(BaseModel):
    """Who speaks this turn"""
    model_config = ConfigDict(frozen=True)

    speaker1_id: str
    speaker2_id: Optional[str] = None
    mentioned_ids: List[str] = Field(default_factory=list)

    @property
    def speaker_ids(self) -> List[str]:
        if self.speaker2_id:
            return [self.speaker1_id, self.speaker2_id]
        return [self.speaker1_id]


class TokenUsage(BaseModel):
    """Token counts reported for one generation call"""
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)


class AgentReply(BaseModel):
    """Text produced by the response generator for one agent"""
    agent_id: str
    text: str
    usage: Optional[TokenUsage] = None


class AgentTokenStats(BaseModel):
    """Accumulated token usage for one agent"""
    agent_id: str
    agent_name: str
    total_tokens: int = 0
    total_cost: float = 0.0
    call_count: int = 0


class SessionState(BaseModel):
    """Snapshot of the mutable per-session moderation state"""
    cumulative: CumulativeScoreState = Field(default_factory=dict)
    skipped: SkippedTurnsState = Field(default_factory=dict)
    checkpoint: CheckpointState = Field(default_factory=CheckpointState)


class TurnResult(BaseModel):
    """Outcome of one user turn"""
    turn_number: int
    user_message: Message
    selection: SpeakerSelection
    replies: List[Message] = Field(default_factory=list)
    used_oracle: bool = False
    reasoning: str = ""
    errors: Dict[str, str] = Field(default_factory=dict)  # agent_id -> failure reason
    total_scores: Dict[str, float] = Field(default_factory=dict)
    report: Optional[str] = None
    report_error: Optional[str] = None
    state: SessionState


class SessionReport(BaseModel):
    """Final summary produced when a conversation ends"""
    session_id: str
    message_count: int
    user_turns: int
    cumulative: CumulativeScoreState
    skipped: SkippedTurnsState
    final_scores: List[MonitorScore] = Field(default_factory=list)
    report: Optional[str] = None
    report_error: Optional[str] = None
    token_summary: List[str] = Field(default_factory=list)
    ended_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
