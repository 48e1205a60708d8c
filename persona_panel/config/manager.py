"""
Configuration Manager for Persona Panel
=======================================

Centralized configuration management with environment variable loading,
validation, and type safety for the moderation engine's tuning constants.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Dict, Any, Optional, List, Tuple
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@dataclass
class SelectionConfig:
    """Speaker selection weights and thresholds"""
    relevance_weight: float = 0.8
    context_weight: float = 0.2

    # Basic eligibility to speak this turn
    eligibility_threshold: float = 5.0
    # Second speaker is only added above this bar (or when mentioned/forced)
    second_speaker_threshold: float = 6.0
    # Relevance differences below this are treated as a tie
    relevance_tie_margin: float = 1.0

    # Consecutive silent turns before an agent is forced to speak
    forced_skip_threshold: int = 2
    # Number of latest agent messages that count as "recent"
    recent_speaker_window: int = 2


@dataclass
class CheckpointConfig:
    """Scoring oracle / report bot scheduling"""
    score_keeper_interval: int = 2  # 0 = every turn
    report_bot_interval: int = 0  # 0 = only at conversation end
    min_messages_for_checkpoint: int = 3
    always_call_on_end: bool = True


@dataclass
class KeywordCategory:
    """A fallback keyword category and the role text that claims it"""
    name: str
    keywords: Tuple[str, ...]
    identifiers: Tuple[str, ...]


def _default_categories() -> List[KeywordCategory]:
    return [
        KeywordCategory(
            name="backend",
            keywords=("database", "data model", "optimization", "scale", "backend", "api"),
            identifiers=("backend",),
        ),
        KeywordCategory(
            name="frontend",
            keywords=("frontend", "ui", "react", "component", "design", "user interface"),
            identifiers=("frontend",),
        ),
        KeywordCategory(
            name="devops",
            keywords=("deployment", "infrastructure", "devops", "docker", "kubernetes", "ci/cd"),
            identifiers=("devops", "sre"),
        ),
        KeywordCategory(
            name="product",
            keywords=("user", "business", "feature", "requirements", "product", "customer"),
            identifiers=("product",),
        ),
    ]


@dataclass
class FallbackConfig:
    """Heuristic scoring used between oracle checkpoints"""
    base_relevance: int = 4
    base_context: int = 3
    max_score: int = 10
    min_score: int = 1

    category_relevance_boost: int = 5
    category_context_boost: int = 3

    recent_window: int = 6
    recent_message_limit: int = 2
    recent_relevance_penalty: int = 2
    recent_context_penalty: int = 1

    name_relevance_boost: int = 2
    name_context_boost: int = 1

    categories: List[KeywordCategory] = field(default_factory=_default_categories)


@dataclass
class SessionConfig:
    """Conversation session defaults"""
    user_name: str = "User"
    system_agent_name: str = "System"


@dataclass
class LoggingConfig:
    """Logging output configuration"""
    log_level: str = "INFO"
    debug_mode: bool = False
    log_file: Optional[str] = None


@dataclass
class PricingConfig:
    """Token pricing in dollars per 1000 tokens"""
    model_name: str = "gpt-4o-mini"
    input_per_1k: float = 0.000150
    output_per_1k: float = 0.000600


class ConfigManager:
    """
    Centralized configuration manager with environment variable loading
    and runtime validation for all engine settings.
    """

    def __init__(self, env_file_path: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            env_file_path: Optional path to .env file for loading environment variables
        """
        self._load_env_file(env_file_path)

        self.selection = self._load_selection_config()
        self.checkpoint = self._load_checkpoint_config()
        self.fallback = self._load_fallback_config()
        self.session = self._load_session_config()
        self.logging = self._load_logging_config()
        self.pricing = self._load_pricing_config()

        self._validate_configuration()

        logger.info("Configuration loaded and validated successfully")

    def _load_env_file(self, env_file_path: Optional[str]) -> None:
        """Load environment variables from .env file if it exists"""
        env_path = Path(env_file_path) if env_file_path else Path(".env")

        if env_path.exists():
            load_dotenv(dotenv_path=env_path, override=True)
            logger.info(f"Loaded environment variables from {env_path}")

    def _get_env_bool(self, key: str, default: bool) -> bool:
        """Get boolean environment variable with proper conversion"""
        value = os.getenv(key, str(default)).lower()
        return value in ('true', '1', 'yes', 'on')

    def _get_env_int(self, key: str, default: int) -> int:
        """Get integer environment variable with validation"""
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            logger.warning(f"Invalid integer value for {key}, using default: {default}")
            return default

    def _get_env_float(self, key: str, default: float) -> float:
        """Get float environment variable with validation"""
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            logger.warning(f"Invalid float value for {key}, using default: {default}")
            return default

    def _load_selection_config(self) -> SelectionConfig:
        """Load speaker selection configuration from environment variables"""
        return SelectionConfig(
            relevance_weight=self._get_env_float("SELECTION_RELEVANCE_WEIGHT", 0.8),
            context_weight=self._get_env_float("SELECTION_CONTEXT_WEIGHT", 0.2),
            eligibility_threshold=self._get_env_float("SELECTION_ELIGIBILITY_THRESHOLD", 5.0),
            second_speaker_threshold=self._get_env_float("SELECTION_SECOND_SPEAKER_THRESHOLD", 6.0),
            relevance_tie_margin=self._get_env_float("SELECTION_RELEVANCE_TIE_MARGIN", 1.0),
            forced_skip_threshold=self._get_env_int("SELECTION_FORCED_SKIP_THRESHOLD", 2),
            recent_speaker_window=self._get_env_int("SELECTION_RECENT_SPEAKER_WINDOW", 2)
        )

    def _load_checkpoint_config(self) -> CheckpointConfig:
        """Load checkpoint scheduling configuration from environment variables"""
        return CheckpointConfig(
            score_keeper_interval=self._get_env_int("CHECKPOINT_SCORE_KEEPER_INTERVAL", 2),
            report_bot_interval=self._get_env_int("CHECKPOINT_REPORT_BOT_INTERVAL", 0),
            min_messages_for_checkpoint=self._get_env_int("CHECKPOINT_MIN_MESSAGES", 3),
            always_call_on_end=self._get_env_bool("CHECKPOINT_ALWAYS_CALL_ON_END", True)
        )

    def _load_fallback_config(self) -> FallbackConfig:
        """Load fallback scoring configuration from environment variables"""
        return FallbackConfig(
            base_relevance=self._get_env_int("FALLBACK_BASE_RELEVANCE", 4),
            base_context=self._get_env_int("FALLBACK_BASE_CONTEXT", 3),
            max_score=self._get_env_int("FALLBACK_MAX_SCORE", 10),
            min_score=self._get_env_int("FALLBACK_MIN_SCORE", 1),
            category_relevance_boost=self._get_env_int("FALLBACK_CATEGORY_RELEVANCE_BOOST", 5),
            category_context_boost=self._get_env_int("FALLBACK_CATEGORY_CONTEXT_BOOST", 3),
            recent_window=self._get_env_int("FALLBACK_RECENT_WINDOW", 6),
            recent_message_limit=self._get_env_int("FALLBACK_RECENT_MESSAGE_LIMIT", 2),
            recent_relevance_penalty=self._get_env_int("FALLBACK_RECENT_RELEVANCE_PENALTY", 2),
            recent_context_penalty=self._get_env_int("FALLBACK_RECENT_CONTEXT_PENALTY", 1),
            name_relevance_boost=self._get_env_int("FALLBACK_NAME_RELEVANCE_BOOST", 2),
            name_context_boost=self._get_env_int("FALLBACK_NAME_CONTEXT_BOOST", 1)
        )

    def _load_session_config(self) -> SessionConfig:
        """Load session configuration from environment variables"""
        return SessionConfig(
            user_name=os.getenv("SESSION_USER_NAME", "User")
        )

    def _load_logging_config(self) -> LoggingConfig:
        """Load logging configuration from environment variables"""
        return LoggingConfig(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            debug_mode=self._get_env_bool("DEBUG_MODE", False),
            log_file=os.getenv("LOG_FILE") or None
        )

    def _load_pricing_config(self) -> PricingConfig:
        """Load token pricing configuration from environment variables"""
        return PricingConfig(
            model_name=os.getenv("PRICING_MODEL_NAME", "gpt-4o-mini"),
            input_per_1k=self._get_env_float("PRICING_INPUT_PER_1K", 0.000150),
            output_per_1k=self._get_env_float("PRICING_OUTPUT_PER_1K", 0.000600)
        )

    def _validate_configuration(self) -> None:
        """Validate configuration values for consistency and ranges"""
        errors = []

        total_weights = self.selection.relevance_weight + self.selection.context_weight
        if abs(total_weights - 1.0) > 0.01:
            errors.append(f"Selection weights sum to {total_weights:.3f}, should be 1.0")

        if self.selection.second_speaker_threshold < self.selection.eligibility_threshold:
            errors.append("Selection second_speaker_threshold must not be below eligibility_threshold")

        if self.selection.forced_skip_threshold < 1:
            errors.append("Selection forced_skip_threshold must be at least 1")

        if self.checkpoint.score_keeper_interval < 0 or self.checkpoint.report_bot_interval < 0:
            errors.append("Checkpoint intervals must be zero or positive")

        if self.checkpoint.min_messages_for_checkpoint < 0:
            errors.append("Checkpoint min_messages_for_checkpoint must be zero or positive")

        # Turn scores are rated on a 1-10 scale
        if not (1 <= self.fallback.min_score <= self.fallback.max_score <= 10):
            errors.append("Fallback min_score/max_score must satisfy 1 <= min_score <= max_score <= 10")

        if not (self.fallback.min_score <= self.fallback.base_relevance <= self.fallback.max_score):
            errors.append("Fallback base_relevance must lie within the score range")

        if not (self.fallback.min_score <= self.fallback.base_context <= self.fallback.max_score):
            errors.append("Fallback base_context must lie within the score range")

        if self.pricing.input_per_1k < 0 or self.pricing.output_per_1k < 0:
            errors.append("Token pricing must not be negative")

        if errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {error}" for error in errors)
            logger.error(error_msg)
            raise ValueError(error_msg)

    def get_summary(self) -> Dict[str, Any]:
        """Get configuration summary for logging and debugging"""
        return {
            "selection": {
                "weights": f"{self.selection.relevance_weight}/{self.selection.context_weight}",
                "eligibility_threshold": self.selection.eligibility_threshold,
                "second_speaker_threshold": self.selection.second_speaker_threshold,
                "forced_skip_threshold": self.selection.forced_skip_threshold
            },
            "checkpoint": {
                "score_keeper_interval": self.checkpoint.score_keeper_interval,
                "report_bot_interval": self.checkpoint.report_bot_interval,
                "min_messages": self.checkpoint.min_messages_for_checkpoint
            },
            "logging": {
                "level": self.logging.log_level,
                "debug_mode": self.logging.debug_mode
            }
        }


# Global configuration instance (initialized on first use)
_config_instance: Optional[ConfigManager] = None


def get_config() -> ConfigManager:
    """
    Get the global configuration instance.

    Returns:
        ConfigManager: The global configuration instance
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = ConfigManager()
    return _config_instance


def init_config(env_file_path: Optional[str] = None) -> ConfigManager:
    """
    Initialize the global configuration instance with custom env file.

    Args:
        env_file_path: Optional path to .env file

    Returns:
        ConfigManager: The initialized configuration instance
    """
    global _config_instance
    _config_instance = ConfigManager(env_file_path)
    return _config_instance
