"""
Token usage tracking
"""

from .tokens import TokenTracker, calculate_cost, format_cost

__all__ = ["TokenTracker", "calculate_cost", "format_cost"]
