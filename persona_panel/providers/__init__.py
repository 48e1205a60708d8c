"""
Scoring oracle, response generator and report generator contracts
"""

from .base import ScoreProvider, ResponseGenerator, ReportGenerator, validate_decision
from .mock import (
    MockScoreProvider,
    MockResponseGenerator,
    MockReportGenerator,
    estimate_token_usage
)

__all__ = [
    "ScoreProvider",
    "ResponseGenerator",
    "ReportGenerator",
    "validate_decision",
    "MockScoreProvider",
    "MockResponseGenerator",
    "MockReportGenerator",
    "estimate_token_usage"
]
