"""
Conversation session: runs user turns through scoring, speaker selection
and response generation while owning all per-conversation state
"""

import asyncio
import uuid
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import ConfigManager, get_config
from ..core.exceptions import (
    OracleError, OracleUnavailableError, ResponseGenerationError, RosterError, SessionBusyError
)
from ..core.models import (
    Agent, AgentReply, Message, MonitorScore, ScoreDecision, SessionReport, SessionState,
    TurnResult, SYSTEM_AGENT_ID
)
from ..logging import get_logger, with_session_id
from ..moderation import (
    CheckpointScheduler, count_user_messages, detect_mentions, recent_speaker_ids, select_speakers
)
from ..providers.base import ReportGenerator, ResponseGenerator, ScoreProvider, validate_decision
from ..scoring import FallbackScorer, apply_turn_outcome, apply_turn_scores, initialize, total_score
from ..usage import TokenTracker


class ConversationSession:
    """A single simulated conversation between the user and an agent roster.

    Turns are processed strictly one at a time. The scoring oracle is only
    consulted at checkpoints; every other turn, and every turn where the
    oracle fails, is scored by the fallback scorer. Up to two selected
    speakers are generated concurrently and state is updated once both
    have resolved.
    """

    def __init__(
        self,
        agents: Sequence[Agent],
        response_generator: ResponseGenerator,
        score_provider: Optional[ScoreProvider] = None,
        report_generator: Optional[ReportGenerator] = None,
        fallback_scorer: Optional[FallbackScorer] = None,
        config: Optional[ConfigManager] = None,
        user_name: Optional[str] = None
    ):
        self.config = config or get_config()
        self.logger = get_logger(__name__)

        self.agents: Tuple[Agent, ...] = self._validate_roster(agents)
        self.response_generator = response_generator
        self.score_provider = score_provider
        self.report_generator = report_generator
        self.fallback = fallback_scorer or FallbackScorer(self.config.fallback, self.config.selection)
        self.user_name = user_name or self.config.session.user_name

        self.scheduler = CheckpointScheduler(self.config.checkpoint)
        self.tokens = TokenTracker(self.config.pricing)
        self._busy = False

        self._start()

    @staticmethod
    def _validate_roster(agents: Sequence[Agent]) -> Tuple[Agent, ...]:
        roster = tuple(agents)
        if not roster:
            raise RosterError("A conversation needs at least one agent")

        seen = set()
        for agent in roster:
            if agent.id in seen:
                raise RosterError(f"Duplicate agent id in roster: {agent.id}")
            seen.add(agent.id)
        return roster

    def _start(self) -> None:
        """Fresh transcript and state for a new conversation"""
        self.id = str(uuid.uuid4())
        self.conversation: List[Message] = []
        self.cumulative, self.skipped = initialize(self.agents)
        self.turn_count = 0
        self.scheduler.reset()
        self.tokens.reset()

    @property
    def is_busy(self) -> bool:
        return self._busy

    def reset(self) -> None:
        """Start a new conversation with the same roster and collaborators"""
        if self._busy:
            raise SessionBusyError("Cannot reset while a turn is in progress")
        old_id = self.id
        self._start()
        self.logger.info(f"session_reset | previous={old_id} | session={self.id}")

    def snapshot(self) -> SessionState:
        """Copy of the moderation state, e.g. for saving a conversation"""
        return SessionState(
            cumulative=dict(self.cumulative),
            skipped=dict(self.skipped),
            checkpoint=self.scheduler.state
        )

    def restore(self, state: SessionState) -> None:
        """Replace the moderation state with a previously taken snapshot"""
        if self._busy:
            raise SessionBusyError("Cannot restore state while a turn is in progress")
        self.cumulative = dict(state.cumulative)
        self.skipped = dict(state.skipped)
        self.scheduler.state = state.checkpoint

    def checkpoint_status(self) -> Dict[str, int]:
        return self.scheduler.status(self.conversation)

    async def submit(self, user_text: str) -> TurnResult:
        """Run one full user turn and return what happened"""
        if self._busy:
            raise SessionBusyError("The previous turn is still being processed")
        if not user_text or not user_text.strip():
            raise ValueError("User message must not be empty")

        self._busy = True
        try:
            with with_session_id(self.id):
                return await self._run_turn(user_text)
        finally:
            self._busy = False

    async def _run_turn(self, user_text: str) -> TurnResult:
        user_message = Message.from_user(user_text, self.user_name)
        checkpoint_before = self.scheduler.state
        self.conversation.append(user_message)
        self.turn_count += 1

        try:
            decision, used_oracle, selection, totals, replies, errors = await self._resolve_turn(user_text)
        except BaseException:
            # Abandoned turn (e.g. cancellation): leave no trace of it
            self.conversation.pop()
            self.turn_count -= 1
            self.scheduler.state = checkpoint_before
            raise

        # Generation has resolved; only now touch score and turn state
        self.cumulative = apply_turn_scores(self.cumulative, decision.scores)
        self.skipped = apply_turn_outcome(self.skipped, self.agents, selection.speaker_ids)

        appended = []
        for agent_id in selection.speaker_ids:
            if agent_id in replies:
                message = Message.from_agent(self._agent(agent_id), replies[agent_id].text)
            else:
                message = self._error_message(errors[agent_id])
            self.conversation.append(message)
            appended.append(message)

        report = report_error = None
        if self.report_generator and self.scheduler.should_call_report_bot(self.conversation):
            report, report_error = await self._generate_report()

        return TurnResult(
            turn_number=self.turn_count,
            user_message=user_message,
            selection=selection,
            replies=appended,
            used_oracle=used_oracle,
            reasoning=decision.reasoning,
            errors=errors,
            total_scores=totals,
            report=report,
            report_error=report_error,
            state=self.snapshot()
        )

    async def _resolve_turn(self, user_text: str):
        """Score, select and generate for the user message just appended; no state is updated"""
        decision, used_oracle = await self._score_turn()

        selection = select_speakers(
            decision.scores,
            self.agents,
            self.cumulative,
            self.skipped,
            recent_speaker_ids(self.conversation, self.config.selection.recent_speaker_window),
            detect_mentions(user_text, self.agents),
            self.config.selection
        )
        totals = {
            agent.id: total_score(agent.id, decision.scores, self.cumulative)
            for agent in self.agents
        }

        self.logger.info(
            f"speakers_selected | turn={self.turn_count} | oracle={used_oracle} "
            f"| speakers={','.join(selection.speaker_ids)} | mentioned={','.join(selection.mentioned_ids)}"
        )

        history = tuple(self.conversation)
        replies, errors = await self._generate_replies(history, selection.speaker_ids)
        return decision, used_oracle, selection, totals, replies, errors

    async def _score_turn(self) -> Tuple[ScoreDecision, bool]:
        """Oracle decision at checkpoints, fallback scores otherwise"""
        if self.score_provider is not None and self.scheduler.should_call_score_keeper(self.conversation):
            try:
                return await self._call_oracle(), True
            except OracleError as e:
                self.logger.warning(f"oracle_fallback | turn={self.turn_count} | {e}")

        decision = self.fallback.score(self.conversation, self.agents, self.cumulative, self.skipped)
        return decision, False

    async def _call_oracle(self) -> ScoreDecision:
        try:
            raw = await self.score_provider.get_decision(
                tuple(self.conversation), self.agents, dict(self.cumulative), dict(self.skipped)
            )
        except OracleError:
            raise
        except Exception as e:
            raise OracleUnavailableError(f"Scoring oracle call failed: {e}") from e
        return validate_decision(raw)

    async def _generate_replies(
        self,
        history: Tuple[Message, ...],
        speaker_ids: List[str]
    ) -> Tuple[Dict[str, AgentReply], Dict[str, str]]:
        results = await asyncio.gather(
            *(self._generate_one(history, agent_id) for agent_id in speaker_ids),
            return_exceptions=True
        )

        replies: Dict[str, AgentReply] = {}
        errors: Dict[str, str] = {}
        for agent_id, result in zip(speaker_ids, results):
            if isinstance(result, ResponseGenerationError):
                self.logger.error(f"response_failed | agent={agent_id} | {result.reason}")
                errors[agent_id] = result.reason
            elif isinstance(result, BaseException):
                raise result
            else:
                replies[agent_id] = result
                if result.usage:
                    self.tokens.track_usage(agent_id, self._agent(agent_id).name, result.usage)
        return replies, errors

    async def _generate_one(self, history: Tuple[Message, ...], agent_id: str) -> AgentReply:
        try:
            reply = await self.response_generator.generate(history, self.agents, agent_id)
        except Exception as e:
            raise ResponseGenerationError(agent_id, str(e) or type(e).__name__) from e

        if not reply.text or not reply.text.strip():
            raise ResponseGenerationError(agent_id, "empty response")
        return reply

    async def _generate_report(self) -> Tuple[Optional[str], Optional[str]]:
        try:
            report = await self.report_generator.generate_report(
                tuple(self.conversation), self.agents, self.user_name
            )
            return report, None
        except Exception as e:
            self.logger.error(f"report_failed | session={self.id} | {e}")
            return None, str(e) or type(e).__name__

    async def end(self) -> SessionReport:
        """Close the conversation: final scorekeeper pass and report synthesis"""
        if self._busy:
            raise SessionBusyError("Cannot end the conversation while a turn is in progress")

        self._busy = True
        try:
            with with_session_id(self.id):
                final_scores: List[MonitorScore] = []
                if self.score_provider is not None and self.scheduler.should_call_score_keeper(
                    self.conversation, is_ending=True
                ):
                    try:
                        final_scores = (await self._call_oracle()).scores
                    except OracleError as e:
                        self.logger.warning(f"final_scores_unavailable | {e}")

                report = report_error = None
                if self.report_generator and self.scheduler.should_call_report_bot(
                    self.conversation, is_ending=True
                ):
                    report, report_error = await self._generate_report()

                self.logger.info(
                    f"session_end | turns={self.turn_count} | messages={len(self.conversation)} "
                    f"| report={'yes' if report else 'no'}"
                )

                return SessionReport(
                    session_id=self.id,
                    message_count=len(self.conversation),
                    user_turns=count_user_messages(self.conversation),
                    cumulative=dict(self.cumulative),
                    skipped=dict(self.skipped),
                    final_scores=final_scores,
                    report=report,
                    report_error=report_error,
                    token_summary=self.tokens.get_formatted_summary()
                )
        finally:
            self._busy = False

    def _agent(self, agent_id: str) -> Agent:
        return next(agent for agent in self.agents if agent.id == agent_id)

    def _error_message(self, reason: str) -> Message:
        return Message(
            agent_id=SYSTEM_AGENT_ID,
            agent_name=self.config.session.system_agent_name,
            text=f"An error occurred: {reason}. Please try again.",
            color="#ef4444"
        )
