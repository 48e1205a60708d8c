"""
Checkpoint scheduling for the expensive scoring oracle and report bot.

The oracle is consulted only every ``score_keeper_interval`` user turns once
the conversation has ``min_messages_for_checkpoint`` user messages; the
fallback scorer covers the turns in between. The report bot runs only at
the end of a conversation unless given an interval of its own.
"""

import logging
from typing import Any, Dict, Optional, Sequence, Tuple

from ..config import CheckpointConfig
from ..core.models import CheckpointState, Message


logger = logging.getLogger(__name__)


def count_user_messages(conversation: Sequence[Message]) -> int:
    return sum(1 for msg in conversation if msg.is_user)


def _due(
    interval: int,
    last_checkpoint: int,
    conversation: Sequence[Message],
    config: CheckpointConfig
) -> Tuple[bool, int]:
    """Interval check shared by both consumers; returns (due, new last checkpoint)"""
    user_messages = count_user_messages(conversation)
    if user_messages < config.min_messages_for_checkpoint:
        return False, last_checkpoint
    if user_messages - last_checkpoint >= interval:
        return True, user_messages
    return False, last_checkpoint


def check_score_keeper(
    state: CheckpointState,
    conversation: Sequence[Message],
    is_ending: bool = False,
    config: Optional[CheckpointConfig] = None
) -> Tuple[bool, CheckpointState]:
    """Whether the scoring oracle should run this turn, and the resulting state"""
    config = config or CheckpointConfig()

    if is_ending and config.always_call_on_end:
        return True, state

    if config.score_keeper_interval == 0:
        return True, state

    due, last = _due(
        config.score_keeper_interval, state.last_score_keeper_checkpoint, conversation, config
    )
    if due:
        state = state.model_copy(update={"last_score_keeper_checkpoint": last})
    return due, state


def check_report_bot(
    state: CheckpointState,
    conversation: Sequence[Message],
    is_ending: bool = False,
    config: Optional[CheckpointConfig] = None
) -> Tuple[bool, CheckpointState]:
    """Whether the report bot should run now, and the resulting state"""
    config = config or CheckpointConfig()

    if is_ending and config.always_call_on_end:
        return True, state

    # Interval 0 batches the report to the end of the conversation
    if config.report_bot_interval == 0:
        return False, state

    due, last = _due(
        config.report_bot_interval, state.last_report_bot_checkpoint, conversation, config
    )
    if due:
        state = state.model_copy(update={"last_report_bot_checkpoint": last})
    return due, state


class CheckpointScheduler:
    """Stateful adapter holding one session's checkpoint counters"""

    def __init__(self, config: Optional[CheckpointConfig] = None):
        self.config = config or CheckpointConfig()
        self.state = CheckpointState()

    def should_call_score_keeper(self, conversation: Sequence[Message], is_ending: bool = False) -> bool:
        due, self.state = check_score_keeper(self.state, conversation, is_ending, self.config)
        logger.debug(
            f"score_keeper_check | due={due} | user_messages={count_user_messages(conversation)} "
            f"| last={self.state.last_score_keeper_checkpoint}"
        )
        return due

    def should_call_report_bot(self, conversation: Sequence[Message], is_ending: bool = False) -> bool:
        due, self.state = check_report_bot(self.state, conversation, is_ending, self.config)
        logger.debug(
            f"report_bot_check | due={due} | user_messages={count_user_messages(conversation)} "
            f"| last={self.state.last_report_bot_checkpoint}"
        )
        return due

    def last_checkpoint(self) -> int:
        """Most recent checkpoint of either consumer (-1 if neither has run)"""
        return max(self.state.last_score_keeper_checkpoint, self.state.last_report_bot_checkpoint)

    def reset(self) -> None:
        """Forget all checkpoints; called when a new conversation starts"""
        self.state = CheckpointState()

    def status(self, conversation: Sequence[Message]) -> Dict[str, Any]:
        """Checkpoint counters and user turns until each next call (-1 = only at end)"""
        user_messages = count_user_messages(conversation)

        if self.config.score_keeper_interval == 0:
            next_score_keeper = 0
        else:
            next_score_keeper = max(
                0,
                self.config.score_keeper_interval
                - (user_messages - self.state.last_score_keeper_checkpoint)
            )

        if self.config.report_bot_interval == 0:
            next_report_bot = -1
        else:
            next_report_bot = max(
                0,
                self.config.report_bot_interval
                - (user_messages - self.state.last_report_bot_checkpoint)
            )

        return {
            "user_message_count": user_messages,
            "last_score_keeper_checkpoint": self.state.last_score_keeper_checkpoint,
            "last_report_bot_checkpoint": self.state.last_report_bot_checkpoint,
            "next_score_keeper_in": next_score_keeper,
            "next_report_bot_in": next_report_bot
        }
