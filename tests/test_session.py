"""
Tests for persona_panel.session.conversation

Drives full user turns through ConversationSession with scripted
collaborators to check oracle scheduling, fallback on oracle failure,
concurrent generation and state bookkeeping.
"""

import asyncio

import pytest

from persona_panel.core.exceptions import RosterError, SessionBusyError
from persona_panel.core.models import Agent, AgentReply, TokenUsage
from persona_panel.providers.base import ReportGenerator, ResponseGenerator, ScoreProvider
from persona_panel.providers.mock import MockReportGenerator, MockResponseGenerator, MockScoreProvider
from persona_panel.session import ConversationSession


class ScriptedOracle(ScoreProvider):
    """Returns a fixed payload, or raises, and counts calls"""

    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.calls = 0

    async def get_decision(self, conversation, agents, cumulative, skipped):
        self.calls += 1
        if self.error:
            raise self.error
        return self.payload


class EchoGenerator(ResponseGenerator):
    """Replies with the agent id; tracks how many calls overlap"""

    def __init__(self, fail_for=(), empty_for=(), delay=0.01):
        self.fail_for = set(fail_for)
        self.empty_for = set(empty_for)
        self.delay = delay
        self.active = 0
        self.max_active = 0
        self.calls = []

    async def generate(self, conversation, agents, agent_id):
        self.calls.append(agent_id)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
        finally:
            self.active -= 1

        if agent_id in self.fail_for:
            raise RuntimeError("model timed out")
        if agent_id in self.empty_for:
            return AgentReply(agent_id=agent_id, text="   ")
        usage = TokenUsage(prompt_tokens=1000, completion_tokens=500, total_tokens=1500)
        return AgentReply(agent_id=agent_id, text=f"{agent_id} reply", usage=usage)


class BlockingGenerator(ResponseGenerator):

    def __init__(self):
        self.release = asyncio.Event()

    async def generate(self, conversation, agents, agent_id):
        await self.release.wait()
        return AgentReply(agent_id=agent_id, text="done")


class FailingReport(ReportGenerator):

    async def generate_report(self, conversation, agents, user_name):
        raise RuntimeError("report service down")


ORACLE_PAYLOAD = {
    "scores": [
        {"agentId": "alex", "relevance": 8, "context": 7},
        {"agentId": "brenda", "relevance": 7, "context": 8},
        {"agentId": "carlos", "relevance": 3, "context": 2},
    ],
    "nextSpeakerAgentId": "alex",
    "reasoning": "Alex and Brenda are on topic"
}


@pytest.fixture
def every_turn_config(config):
    """Oracle consulted on every user turn"""
    config.checkpoint.score_keeper_interval = 0
    return config


class TestSessionConstruction:
    """Test roster validation"""

    def test_empty_roster(self, config):
        with pytest.raises(RosterError):
            ConversationSession([], EchoGenerator(), config=config)

    def test_duplicate_ids(self, config):
        agents = [Agent(id="a", name="Ann Lee"), Agent(id="a", name="Ann Two")]

        with pytest.raises(ValueError, match="Duplicate agent id"):
            ConversationSession(agents, EchoGenerator(), config=config)

    def test_initial_state(self, team, config):
        session = ConversationSession(team, EchoGenerator(), config=config)

        assert session.conversation == []
        assert session.turn_count == 0
        assert session.skipped == {"alex": 0, "brenda": 0, "carlos": 0}
        assert session.user_name == "User"
        assert not session.is_busy


class TestTurnScoring:
    """Test oracle checkpoints versus fallback scoring"""

    @pytest.mark.asyncio
    async def test_fallback_before_first_checkpoint(self, team, config):
        oracle = ScriptedOracle(ORACLE_PAYLOAD)
        session = ConversationSession(team, EchoGenerator(), score_provider=oracle, config=config)

        result = await session.submit("What database should we use?")

        assert oracle.calls == 0
        assert not result.used_oracle
        assert result.selection.speaker_ids == ["brenda"]
        assert result.reasoning.startswith("Fallback scoring")
        assert [m.text for m in result.replies] == ["brenda reply"]
        assert session.cumulative["brenda"].relevance == 9
        assert session.skipped == {"alex": 1, "brenda": 0, "carlos": 1}

    @pytest.mark.asyncio
    async def test_oracle_at_checkpoints(self, team, config):
        oracle = ScriptedOracle(ORACLE_PAYLOAD)
        session = ConversationSession(team, EchoGenerator(delay=0), score_provider=oracle, config=config)

        used = [(await session.submit(f"question {i}")).used_oracle for i in range(5)]

        assert used == [False, False, True, False, True]
        assert oracle.calls == 2

    @pytest.mark.asyncio
    async def test_oracle_failure_falls_back(self, team, every_turn_config):
        oracle = ScriptedOracle(error=ConnectionError("oracle unreachable"))
        session = ConversationSession(team, EchoGenerator(), score_provider=oracle, config=every_turn_config)

        result = await session.submit("What database should we use?")

        assert oracle.calls == 1
        assert not result.used_oracle
        assert result.selection.speaker1_id == "brenda"

    @pytest.mark.asyncio
    async def test_malformed_oracle_falls_back(self, team, every_turn_config):
        oracle = ScriptedOracle({"scores": "nope"})
        session = ConversationSession(team, EchoGenerator(), score_provider=oracle, config=every_turn_config)

        result = await session.submit("What database should we use?")

        assert not result.used_oracle
        assert result.selection.speaker1_id == "brenda"

    @pytest.mark.asyncio
    async def test_zero_scores_fall_back(self, team, every_turn_config):
        """Turn scores are rated 1-10; a zero makes the oracle output unusable"""
        payload = {
            "scores": [{"agentId": "alex", "relevance": 0, "context": 0}],
            "nextSpeakerAgentId": "alex"
        }
        session = ConversationSession(
            team, EchoGenerator(), score_provider=ScriptedOracle(payload), config=every_turn_config
        )

        result = await session.submit("What database should we use?")

        assert not result.used_oracle
        assert result.selection.speaker1_id == "brenda"

    @pytest.mark.asyncio
    async def test_total_scores_use_state_before_turn(self, team, every_turn_config):
        session = ConversationSession(
            team, EchoGenerator(), score_provider=ScriptedOracle(ORACLE_PAYLOAD), config=every_turn_config
        )

        first = await session.submit("kick off")
        second = await session.submit("carry on")

        assert first.total_scores == {"alex": 15, "brenda": 15, "carlos": 5}
        assert second.total_scores == {"alex": 30, "brenda": 30, "carlos": 10}
        assert session.cumulative["alex"].total == 30


class TestResponseGeneration:
    """Test speaker replies and failures"""

    @pytest.mark.asyncio
    async def test_two_speakers_generated_concurrently(self, team, every_turn_config):
        generator = EchoGenerator(delay=0.05)
        session = ConversationSession(
            team, generator, score_provider=ScriptedOracle(ORACLE_PAYLOAD), config=every_turn_config
        )

        result = await session.submit("Frontend or backend first?")

        assert result.used_oracle
        assert result.selection.speaker_ids == ["alex", "brenda"]
        assert generator.max_active == 2
        assert [m.agent_id for m in result.replies] == ["alex", "brenda"]
        assert [m.agent_id for m in session.conversation] == ["user", "alex", "brenda"]
        assert result.reasoning == "Alex and Brenda are on topic"

    @pytest.mark.asyncio
    async def test_failed_speaker_gets_system_message(self, team, every_turn_config):
        generator = EchoGenerator(fail_for=["brenda"])
        session = ConversationSession(
            team, generator, score_provider=ScriptedOracle(ORACLE_PAYLOAD), config=every_turn_config
        )

        result = await session.submit("Frontend or backend first?")

        assert result.errors == {"brenda": "model timed out"}
        assert result.replies[0].text == "alex reply"
        system_message = result.replies[1]
        assert system_message.agent_id == "system"
        assert system_message.text == "An error occurred: model timed out. Please try again."
        assert system_message.color == "#ef4444"
        # State still advances for both selected speakers
        assert session.skipped == {"alex": 0, "brenda": 0, "carlos": 1}
        assert session.cumulative["brenda"].total == 15

    @pytest.mark.asyncio
    async def test_empty_reply_is_a_failure(self, team, config):
        session = ConversationSession(team, EchoGenerator(empty_for=["brenda"]), config=config)

        result = await session.submit("What database should we use?")

        assert result.errors == {"brenda": "empty response"}
        assert result.replies[0].agent_id == "system"

    @pytest.mark.asyncio
    async def test_mentioned_agent_replies(self, team, config):
        session = ConversationSession(team, EchoGenerator(), config=config)

        result = await session.submit("Carlos, what database should we use?")

        assert result.selection.speaker1_id == "carlos"
        assert result.selection.mentioned_ids == ["carlos"]

    @pytest.mark.asyncio
    async def test_token_usage_tracked(self, team, config):
        session = ConversationSession(team, EchoGenerator(), config=config)

        await session.submit("What database should we use?")

        stats = session.tokens.get_agent_stats("brenda")
        assert stats.total_tokens == 1500
        assert stats.call_count == 1


class TestTurnSerialization:
    """Test one-turn-at-a-time processing"""

    @pytest.mark.asyncio
    async def test_submit_while_busy(self, team, config):
        generator = BlockingGenerator()
        session = ConversationSession(team, generator, config=config)

        pending = asyncio.create_task(session.submit("first"))
        await asyncio.sleep(0)

        assert session.is_busy
        with pytest.raises(SessionBusyError):
            await session.submit("second")
        with pytest.raises(SessionBusyError):
            session.reset()

        generator.release.set()
        result = await pending

        assert result.turn_number == 1
        assert not session.is_busy
        assert [m.text for m in session.conversation if m.is_user] == ["first"]

    @pytest.mark.asyncio
    async def test_blank_message_rejected(self, team, config):
        session = ConversationSession(team, EchoGenerator(), config=config)

        with pytest.raises(ValueError):
            await session.submit("   ")
        assert session.conversation == []


class TestSessionState:
    """Test reset, snapshot and restore"""

    @pytest.mark.asyncio
    async def test_reset_starts_fresh(self, team, config):
        session = ConversationSession(team, EchoGenerator(), config=config)
        await session.submit("What database should we use?")
        old_id = session.id

        session.reset()

        assert session.id != old_id
        assert session.conversation == []
        assert session.turn_count == 0
        assert all(score.total == 0 for score in session.cumulative.values())
        assert session.tokens.get_total_tokens() == 0

    @pytest.mark.asyncio
    async def test_snapshot_and_restore(self, team, config):
        session = ConversationSession(team, EchoGenerator(), config=config)
        await session.submit("What database should we use?")
        saved = session.snapshot()

        await session.submit("How should the react component look?")
        assert session.skipped != saved.skipped

        session.restore(saved)

        assert session.snapshot() == saved

    @pytest.mark.asyncio
    async def test_turn_result_carries_state(self, team, config):
        session = ConversationSession(team, EchoGenerator(), config=config)

        result = await session.submit("What database should we use?")

        assert result.state == session.snapshot()
        assert session.checkpoint_status()["user_message_count"] == 1


class TestEndConversation:
    """Test the final scorekeeper pass and report"""

    @pytest.mark.asyncio
    async def test_end_report(self, team, config):
        oracle = ScriptedOracle(ORACLE_PAYLOAD)
        session = ConversationSession(
            team, EchoGenerator(), score_provider=oracle,
            report_generator=MockReportGenerator(), config=config, user_name="Jordan"
        )
        await session.submit("What database should we use?")
        cumulative_before = dict(session.cumulative)

        report = await session.end()

        assert oracle.calls == 1
        assert [s.agent_id for s in report.final_scores] == ["alex", "brenda", "carlos"]
        assert report.cumulative == cumulative_before
        assert report.report.startswith("Discussion report for Jordan")
        assert report.report_error is None
        assert report.message_count == 2
        assert report.user_turns == 1
        assert report.session_id == session.id
        assert report.token_summary[-1].startswith("Total: 1500 tokens")

    @pytest.mark.asyncio
    async def test_end_without_collaborators(self, team, config):
        session = ConversationSession(team, EchoGenerator(), config=config)

        report = await session.end()

        assert report.final_scores == []
        assert report.report is None

    @pytest.mark.asyncio
    async def test_report_failure_reported(self, team, config):
        session = ConversationSession(team, EchoGenerator(), report_generator=FailingReport(), config=config)

        report = await session.end()

        assert report.report is None
        assert report.report_error == "report service down"

    @pytest.mark.asyncio
    async def test_final_oracle_failure_tolerated(self, team, config):
        oracle = ScriptedOracle(error=RuntimeError("down"))
        session = ConversationSession(team, EchoGenerator(), score_provider=oracle, config=config)

        report = await session.end()

        assert report.final_scores == []

    @pytest.mark.asyncio
    async def test_interim_report_on_interval(self, team, config):
        config.checkpoint.report_bot_interval = 1
        config.checkpoint.min_messages_for_checkpoint = 1
        session = ConversationSession(team, EchoGenerator(), report_generator=MockReportGenerator(), config=config)

        result = await session.submit("What database should we use?")

        assert result.report is not None
        assert "Contributions:" in result.report
        assert result.report_error is None

    @pytest.mark.asyncio
    async def test_interim_report_failure_reported(self, team, config):
        config.checkpoint.report_bot_interval = 1
        config.checkpoint.min_messages_for_checkpoint = 1
        session = ConversationSession(team, EchoGenerator(), report_generator=FailingReport(), config=config)

        result = await session.submit("What database should we use?")

        assert result.report is None
        assert result.report_error == "report service down"
        assert [m.agent_id for m in result.replies] == ["brenda"]


class AbortTurn(BaseException):
    """Stands in for cancellation of the task running a turn"""


class AbortingGenerator(ResponseGenerator):

    async def generate(self, conversation, agents, agent_id):
        raise AbortTurn()


class TestStateAcrossTurns:
    """Test score and skip bookkeeping over a longer conversation"""

    @pytest.mark.asyncio
    async def test_cumulative_and_skip_invariants(self, team_with_devops, config):
        config.checkpoint.report_bot_interval = 1
        session = ConversationSession(
            team_with_devops, MockResponseGenerator(), score_provider=MockScoreProvider(seed=11),
            report_generator=MockReportGenerator(), config=config
        )
        script = [
            "Where should we start?",
            "What database should we use?",
            "Brenda, can the API scale?",
            "How do we deploy with docker?",
            "What do customers need from this feature?",
            "Alex, how should the react component look?",
            "Any risks we missed?",
            "Diana, can you summarize?",
        ]

        for text in script:
            previous_cumulative = dict(session.cumulative)
            previous_skipped = dict(session.skipped)

            result = await session.submit(text)

            speakers = set(result.selection.speaker_ids)
            assert 1 <= len(speakers) <= 2
            for agent in team_with_devops:
                before, after = previous_cumulative[agent.id], session.cumulative[agent.id]
                assert after.relevance >= before.relevance
                assert after.context >= before.context
                if agent.id in speakers:
                    assert session.skipped[agent.id] == 0
                else:
                    assert session.skipped[agent.id] == previous_skipped[agent.id] + 1

        assert session.turn_count == len(script)


class TestAbandonedTurn:
    """Test that a turn interrupted mid-generation leaves no partial state"""

    @pytest.mark.asyncio
    async def test_rolls_back_transcript_and_checkpoints(self, team, every_turn_config):
        oracle = ScriptedOracle(ORACLE_PAYLOAD)
        session = ConversationSession(team, AbortingGenerator(), score_provider=oracle, config=every_turn_config)
        before = session.snapshot()

        with pytest.raises(AbortTurn):
            await session.submit("Frontend or backend first?")

        assert oracle.calls == 1
        assert session.conversation == []
        assert session.turn_count == 0
        assert session.snapshot() == before
        assert not session.is_busy

    @pytest.mark.asyncio
    async def test_rollback_restores_scheduler_state(self, team, config):
        config.checkpoint.min_messages_for_checkpoint = 1
        session = ConversationSession(
            team, AbortingGenerator(), score_provider=ScriptedOracle(ORACLE_PAYLOAD), config=config
        )

        with pytest.raises(AbortTurn):
            await session.submit("hello")

        assert session.scheduler.state.last_score_keeper_checkpoint == -1
