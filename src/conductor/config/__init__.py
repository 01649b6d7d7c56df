"""
Configuration module for conductor.

Exports the main components for convenient imports.
"""

from .loader import build_rule_table, load_config
from .schema import (
    AppConfig,
    KeywordRuleConfig,
    LibraryConfig,
    LoggingConfig,
    SelectorConfig,
)

__all__ = [
    "build_rule_table",
    "load_config",
    "AppConfig",
    "KeywordRuleConfig",
    "LibraryConfig",
    "LoggingConfig",
    "SelectorConfig",
]
