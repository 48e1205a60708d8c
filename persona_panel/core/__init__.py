"""
Shared core foundation for Persona Panel.

Components:
- models: Agent, Message, score/turn state and decision models
- exceptions: error hierarchy for the collaborator boundaries
"""

from .models import (
    USER_AGENT_ID,
    SYSTEM_AGENT_ID,
    Agent,
    Message,
    MonitorScore,
    CumulativeScore,
    CumulativeScoreState,
    SkippedTurnsState,
    CheckpointState,
    ScoreDecision,
    SpeakerSelection,
    TokenUsage,
    AgentReply,
    AgentTokenStats,
    SessionState,
    TurnResult,
    SessionReport
)

from .exceptions import (
    PanelError,
    RosterError,
    OracleError,
    OracleUnavailableError,
    OracleMalformedError,
    ResponseGenerationError,
    SessionBusyError
)

__all__ = [
    # Data models
    "USER_AGENT_ID",
    "SYSTEM_AGENT_ID",
    "Agent",
    "Message",
    "MonitorScore",
    "CumulativeScore",
    "CumulativeScoreState",
    "SkippedTurnsState",
    "CheckpointState",
    "ScoreDecision",
    "SpeakerSelection",
    "TokenUsage",
    "AgentReply",
    "AgentTokenStats",
    "SessionState",
    "TurnResult",
    "SessionReport",

    # Errors
    "PanelError",
    "RosterError",
    "OracleError",
    "OracleUnavailableError",
    "OracleMalformedError",
    "ResponseGenerationError",
    "SessionBusyError"
]
