"""
Unit tests for persona_panel.moderation.checkpoints module
"""

import pytest

from persona_panel.config import CheckpointConfig
from persona_panel.core.models import CheckpointState, Message
from persona_panel.moderation.checkpoints import (
    CheckpointScheduler, check_report_bot, check_score_keeper, count_user_messages
)


def _conversation(user_turns):
    messages = []
    for i in range(user_turns):
        messages.append(Message.from_user(f"question {i}"))
        messages.append(Message(agent_id="alex", agent_name="Alex", text=f"answer {i}"))
    return messages


class TestScoreKeeperSchedule:
    """Test oracle checkpoint timing with the default interval of 2 after 3 messages"""

    def test_default_schedule(self):
        scheduler = CheckpointScheduler()

        assert scheduler.should_call_score_keeper(_conversation(1)) is False
        assert scheduler.should_call_score_keeper(_conversation(2)) is False

        assert scheduler.should_call_score_keeper(_conversation(3)) is True
        assert scheduler.state.last_score_keeper_checkpoint == 3

        assert scheduler.should_call_score_keeper(_conversation(4)) is False
        assert scheduler.should_call_score_keeper(_conversation(5)) is True
        assert scheduler.state.last_score_keeper_checkpoint == 5

    def test_interval_zero_every_turn(self):
        scheduler = CheckpointScheduler(CheckpointConfig(score_keeper_interval=0))

        assert scheduler.should_call_score_keeper(_conversation(1)) is True
        assert scheduler.should_call_score_keeper(_conversation(2)) is True

    def test_ending_always_calls(self):
        scheduler = CheckpointScheduler()

        assert scheduler.should_call_score_keeper(_conversation(1), is_ending=True) is True
        assert scheduler.state.last_score_keeper_checkpoint == -1

    def test_ending_respects_flag(self):
        scheduler = CheckpointScheduler(CheckpointConfig(always_call_on_end=False))

        assert scheduler.should_call_score_keeper(_conversation(1), is_ending=True) is False

    def test_pure_function_returns_new_state(self):
        state = CheckpointState()

        due, new_state = check_score_keeper(state, _conversation(3))

        assert due is True
        assert new_state.last_score_keeper_checkpoint == 3
        assert state.last_score_keeper_checkpoint == -1


class TestReportBotSchedule:
    """Test report bot timing"""

    def test_interval_zero_only_at_end(self):
        scheduler = CheckpointScheduler()

        for turns in range(1, 8):
            assert scheduler.should_call_report_bot(_conversation(turns)) is False
        assert scheduler.should_call_report_bot(_conversation(8), is_ending=True) is True

    def test_interval_zero_without_end_call(self):
        config = CheckpointConfig(always_call_on_end=False)

        due, _ = check_report_bot(CheckpointState(), _conversation(5), is_ending=True, config=config)

        assert due is False

    def test_interval_schedule(self):
        scheduler = CheckpointScheduler(CheckpointConfig(report_bot_interval=3))

        assert scheduler.should_call_report_bot(_conversation(2)) is False
        assert scheduler.should_call_report_bot(_conversation(3)) is True
        assert scheduler.should_call_report_bot(_conversation(5)) is False
        assert scheduler.should_call_report_bot(_conversation(6)) is True

    def test_consumers_tracked_separately(self):
        scheduler = CheckpointScheduler(CheckpointConfig(report_bot_interval=2))

        assert scheduler.should_call_score_keeper(_conversation(3)) is True
        assert scheduler.state.last_report_bot_checkpoint == -1
        assert scheduler.should_call_report_bot(_conversation(3)) is True


class TestSchedulerHelpers:

    def test_count_user_messages(self):
        assert count_user_messages(_conversation(4)) == 4
        assert count_user_messages([]) == 0

    def test_reset(self):
        scheduler = CheckpointScheduler()
        scheduler.should_call_score_keeper(_conversation(3))

        scheduler.reset()

        assert scheduler.state == CheckpointState()
        assert scheduler.last_checkpoint() == -1

    def test_last_checkpoint(self):
        scheduler = CheckpointScheduler(CheckpointConfig(report_bot_interval=1))
        scheduler.should_call_score_keeper(_conversation(3))
        scheduler.should_call_report_bot(_conversation(4))

        assert scheduler.last_checkpoint() == 4

    @pytest.mark.parametrize("turns,expected", [(3, 2), (4, 1), (5, 0)])
    def test_status_after_checkpoint(self, turns, expected):
        scheduler = CheckpointScheduler()
        scheduler.should_call_score_keeper(_conversation(3))

        status = scheduler.status(_conversation(turns))

        assert status["user_message_count"] == turns
        assert status["last_score_keeper_checkpoint"] == 3
        assert status["next_score_keeper_in"] == expected
        assert status["next_report_bot_in"] == -1
