"""
Exception hierarchy for the moderation engine.

Errors are raised only at the collaborator boundaries (scoring oracle,
response generator) and at session construction; the scoring and
moderation functions themselves never raise on well-typed input.
"""


class PanelError(Exception):
    """Base class for all persona panel errors"""


class RosterError(PanelError, ValueError):
    """The agent roster is empty or contains duplicate ids"""


class OracleError(PanelError):
    """The scoring oracle could not produce a usable decision"""


class OracleUnavailableError(OracleError):
    """The scoring oracle call itself failed"""


class OracleMalformedError(OracleError):
    """The scoring oracle returned a structurally invalid decision"""


class ResponseGenerationError(PanelError):
    """Generating text for a selected speaker failed"""

    def __init__(self, agent_id: str, reason: str):
        super().__init__(f"Response generation failed for {agent_id}: {reason}")
        self.agent_id = agent_id
        self.reason = reason


class SessionBusyError(PanelError):
    """A user turn was submitted while the previous one is still running"""
