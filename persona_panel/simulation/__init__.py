"""
Scripted conversation simulation
"""

from .presets import PanelPreset, PRESETS, SOFTWARE_DEVELOPMENT, MARKETING, get_preset
from .runner import DEFAULT_SCRIPT, run_scripted_conversation, main

__all__ = [
    "PanelPreset",
    "PRESETS",
    "SOFTWARE_DEVELOPMENT",
    "MARKETING",
    "get_preset",
    "DEFAULT_SCRIPT",
    "run_scripted_conversation",
    "main"
]
