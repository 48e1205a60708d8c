"""
Configuration management package for Persona Panel

Provides centralized configuration management with:
- Environment variable loading from .env files
- Runtime configuration validation
- Type-safe configuration classes
- Global configuration access patterns

Usage:
    from persona_panel.config import get_config

    config = get_config()
    print(f"Oracle every {config.checkpoint.score_keeper_interval} user turns")
"""

from .manager import (
    ConfigManager,
    SelectionConfig,
    CheckpointConfig,
    FallbackConfig,
    KeywordCategory,
    SessionConfig,
    LoggingConfig,
    PricingConfig,
    get_config,
    init_config
)

__all__ = [
    "ConfigManager",
    "SelectionConfig",
    "CheckpointConfig",
    "FallbackConfig",
    "KeywordCategory",
    "SessionConfig",
    "LoggingConfig",
    "PricingConfig",
    "get_config",
    "init_config"
]
