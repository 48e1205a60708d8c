"""
Per-agent token usage and cost accounting
"""

from typing import Dict, List, Optional

from ..config import PricingConfig
from ..core.models import AgentTokenStats, TokenUsage


def calculate_cost(usage: TokenUsage, pricing: Optional[PricingConfig] = None) -> float:
    """Dollar cost of one call at the configured per-1k-token prices"""
    pricing = pricing or PricingConfig()
    input_cost = (usage.prompt_tokens / 1000) * pricing.input_per_1k
    output_cost = (usage.completion_tokens / 1000) * pricing.output_per_1k
    return input_cost + output_cost


def format_cost(cost: float) -> str:
    if cost < 0.001:
        return '<$0.001'
    return f"${cost:.3f}"


class TokenTracker:
    """Accumulates token usage per agent across a conversation"""

    def __init__(self, pricing: Optional[PricingConfig] = None):
        self.pricing = pricing or PricingConfig()
        self._stats: Dict[str, AgentTokenStats] = {}

    def track_usage(self, agent_id: str, agent_name: str, usage: TokenUsage) -> None:
        cost = calculate_cost(usage, self.pricing)
        stats = self._stats.get(agent_id)

        if stats is None:
            self._stats[agent_id] = AgentTokenStats(
                agent_id=agent_id,
                agent_name=agent_name,
                total_tokens=usage.total_tokens,
                total_cost=cost,
                call_count=1
            )
            return

        stats.total_tokens += usage.total_tokens
        stats.total_cost += cost
        stats.call_count += 1

    def get_agent_stats(self, agent_id: str) -> Optional[AgentTokenStats]:
        return self._stats.get(agent_id)

    def get_all_stats(self) -> List[AgentTokenStats]:
        return list(self._stats.values())

    def get_total_cost(self) -> float:
        return sum(stats.total_cost for stats in self._stats.values())

    def get_total_tokens(self) -> int:
        return sum(stats.total_tokens for stats in self._stats.values())

    def reset(self) -> None:
        self._stats.clear()

    def get_formatted_summary(self) -> List[str]:
        """One line per agent, most expensive first, followed by the total"""
        stats = sorted(self.get_all_stats(), key=lambda s: s.total_cost, reverse=True)

        lines = [
            f"{s.agent_name}: {s.total_tokens} tokens ({format_cost(s.total_cost)})"
            for s in stats
        ]
        lines.append(f"Total: {self.get_total_tokens()} tokens ({format_cost(self.get_total_cost())})")
        return lines
