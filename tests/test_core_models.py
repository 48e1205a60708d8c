"""
Unit tests for persona_panel.core models and exceptions
"""

import pytest
from pydantic import ValidationError

from persona_panel.core.exceptions import (
    OracleMalformedError, OracleError, PanelError, ResponseGenerationError, RosterError
)
from persona_panel.core.models import (
    Agent, CumulativeScore, Message, MonitorScore, ScoreDecision, SpeakerSelection,
    USER_AGENT_ID
)


class TestAgent:
    """Test Agent model"""

    def test_agent_defaults(self):
        agent = Agent(name="Alex Morgan")

        assert agent.id
        assert agent.role == ""
        assert agent.starting_context == ""

    def test_agent_is_immutable(self):
        agent = Agent(id="alex", name="Alex Morgan")

        with pytest.raises(ValidationError):
            agent.name = "Someone Else"

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError):
            Agent(id="", name="Nobody")


class TestMessage:
    """Test Message construction helpers"""

    def test_from_user(self):
        message = Message.from_user("Hello team", user_name="Jordan")

        assert message.is_user
        assert message.agent_id == USER_AGENT_ID
        assert message.agent_name == "Jordan"
        assert message.created_at is not None

    def test_from_agent_copies_identity(self):
        agent = Agent(id="brenda", name="Brenda Chen", color="#10b981")
        message = Message.from_agent(agent, "Use Postgres")

        assert not message.is_user
        assert message.agent_id == "brenda"
        assert message.agent_name == "Brenda Chen"
        assert message.color == "#10b981"


class TestScores:
    """Test score models"""

    def test_monitor_score_range(self):
        MonitorScore(agent_id="a", relevance=1, context=10)

        with pytest.raises(ValidationError):
            MonitorScore(agent_id="a", relevance=0, context=5)

        with pytest.raises(ValidationError):
            MonitorScore(agent_id="a", relevance=11, context=5)
        with pytest.raises(ValidationError):
            MonitorScore(agent_id="a", relevance=5, context=-1)

    def test_cumulative_total(self):
        score = CumulativeScore(agent_id="a", relevance=12, context=7.5)

        assert score.total == 19.5

    def test_score_decision_requires_speaker(self):
        with pytest.raises(ValidationError):
            ScoreDecision(scores=[], next_speaker_id="")

    def test_speaker_ids(self):
        assert SpeakerSelection(speaker1_id="a").speaker_ids == ["a"]
        assert SpeakerSelection(speaker1_id="a", speaker2_id="b").speaker_ids == ["a", "b"]


class TestExceptions:
    """Test exception hierarchy"""

    def test_roster_error_is_value_error(self):
        assert issubclass(RosterError, ValueError)
        assert issubclass(RosterError, PanelError)

    def test_oracle_errors(self):
        assert issubclass(OracleMalformedError, OracleError)

    def test_response_generation_error_fields(self):
        error = ResponseGenerationError("alex", "timeout")

        assert error.agent_id == "alex"
        assert error.reason == "timeout"
        assert str(error) == "Response generation failed for alex: timeout"
