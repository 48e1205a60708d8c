"""
Detection of agents called out by name or role in a user message.
"""

import re
from typing import Sequence, Set

from ..core.models import Agent

MIN_NAME_LENGTH = 3

# Only the first word of each phrase is checked against an agent's role
ROLE_PHRASES = (
    "frontend engineer",
    "backend engineer",
    "product manager",
    "devops engineer",
    "sre engineer",
)

CALL_OUT_TEMPLATES = (
    "to {first}",
    "ask {first}",
    "{first} what",
    "{first} can",
    "{first} please",
    "@{first}",
    "hey {first}",
    "{first},",
)


def _mentions_name(text: str, agent: Agent) -> bool:
    for part in agent.name.split():
        if len(part) < MIN_NAME_LENGTH:
            continue
        if re.search(rf"\b{re.escape(part)}\b", text, re.IGNORECASE):
            return True
    return False


def _mentions_role(text_lower: str, agent: Agent) -> bool:
    role_lower = agent.role.lower()
    if len(role_lower) < MIN_NAME_LENGTH:
        return False
    for phrase in ROLE_PHRASES:
        if phrase in text_lower and phrase.split()[0] in role_lower:
            return True
    return False


def _mentions_call_out(text_lower: str, agent: Agent) -> bool:
    parts = agent.name.split()
    if not parts or len(parts[0]) < MIN_NAME_LENGTH:
        return False
    first = parts[0].lower()
    return any(template.format(first=first) in text_lower for template in CALL_OUT_TEMPLATES)


def detect_mentions(user_text: str, agents: Sequence[Agent]) -> Set[str]:
    """Ids of the agents the user addressed, by name, role phrase or call-out"""
    if not user_text:
        return set()

    text_lower = user_text.lower()
    mentioned = set()

    for agent in agents:
        if (
            _mentions_name(user_text, agent)
            or _mentions_role(text_lower, agent)
            or _mentions_call_out(text_lower, agent)
        ):
            mentioned.add(agent.id)

    return mentioned
