"""
Scripted conversation runner and command-line entry point

Drives a ConversationSession through a fixed list of user messages using the
offline mock collaborators, printing each turn as it resolves.

Usage:
    persona-panel [--preset ID] [--seed N] [--message TEXT ...] [--debug]
"""

import argparse
import asyncio
import os
import sys
from typing import List, Optional, Sequence, Tuple

from ..config import ConfigManager, get_config
from ..core.models import Agent, SessionReport, TurnResult
from ..logging import get_logger
from ..providers.mock import MockReportGenerator, MockResponseGenerator, MockScoreProvider
from ..session import ConversationSession
from .presets import PRESETS, get_preset

DEFAULT_SCRIPT = [
    "Let's plan the new checkout feature. Where should we start?",
    "What database should we use for order history?",
    "Brenda, can the API handle the expected load?",
    "How do we roll this out with Kubernetes and CI/CD?",
    "Diana, what do customers actually need from this feature?",
    "Alex, what should the UI component structure look like?",
]


async def run_scripted_conversation(
    agents: Sequence[Agent],
    user_messages: Sequence[str],
    seed: Optional[int] = None,
    config: Optional[ConfigManager] = None,
    user_name: Optional[str] = None
) -> Tuple[List[TurnResult], SessionReport]:
    """Run every scripted user message through a mock-backed session"""
    logger = get_logger(__name__)

    session = ConversationSession(
        agents,
        response_generator=MockResponseGenerator(),
        score_provider=MockScoreProvider(seed=seed),
        report_generator=MockReportGenerator(),
        config=config,
        user_name=user_name
    )
    logger.info(f"simulation_start | session={session.id} | agents={len(session.agents)} | turns={len(user_messages)}")
    logger.debug(f"simulation_config | {session.config.get_summary()} | pricing={session.config.pricing.model_name}")

    results = []
    for text in user_messages:
        results.append(await session.submit(text))

    report = await session.end()
    return results, report


def _print_turn(result: TurnResult) -> None:
    source = "oracle" if result.used_oracle else "fallback"
    print(f"\n--- Turn {result.turn_number} ({source}) ---")
    print(f"{result.user_message.agent_name}: {result.user_message.text}")
    for message in result.replies:
        print(f"{message.agent_name}: {message.text}")


def _print_report(report: SessionReport) -> None:
    print("\n=== Conversation ended ===")
    print(f"Messages: {report.message_count} | User turns: {report.user_turns}")
    print("Cumulative scores:")
    for agent_id, score in report.cumulative.items():
        print(f"  {agent_id}: relevance={score.relevance:g} context={score.context:g}")
    if report.report:
        print("\n" + report.report)
    for line in report.token_summary:
        print(line)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point"""

    parser = argparse.ArgumentParser(
        description="Persona Panel - scripted multi-agent conversation simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  persona-panel                                   # Default script with the software team
  persona-panel --preset marketing --seed 7       # Marketing team, reproducible oracle scores
  persona-panel --message "Hey Ethan, thoughts?"  # Custom script (repeat --message per turn)

Environment Variables:
  CHECKPOINT_SCORE_KEEPER_INTERVAL   Oracle every N user turns (default: 2)
  CHECKPOINT_MIN_MESSAGES            User turns before the first checkpoint (default: 3)
  LOG_LEVEL                          Log level (default: INFO)
        """
    )

    parser.add_argument(
        "--preset",
        default="software-development",
        choices=sorted(PRESETS),
        help="Agent roster to use (default: software-development)"
    )

    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the mock scoring oracle"
    )

    parser.add_argument(
        "--message",
        action="append",
        dest="messages",
        metavar="TEXT",
        help="User message for one turn; repeat for more turns"
    )

    parser.add_argument(
        "--user-name",
        default=None,
        help="Display name for the human participant"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args(argv)

    if args.debug:
        os.environ["DEBUG_MODE"] = "true"
        os.environ["LOG_LEVEL"] = "DEBUG"

    config = get_config()
    preset = get_preset(args.preset)

    try:
        results, report = asyncio.run(run_scripted_conversation(
            preset.agents,
            args.messages or DEFAULT_SCRIPT,
            seed=args.seed,
            config=config,
            user_name=args.user_name
        ))
    except KeyboardInterrupt:
        print("\nSimulation interrupted")
        return 130

    print(f"Panel: {preset.name} - {preset.description}")
    for result in results:
        _print_turn(result)
    _print_report(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
