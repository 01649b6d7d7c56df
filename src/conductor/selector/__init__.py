"""
Skill selector -- keyword-driven choice of skill identifiers for a task.
"""

from .engine import RuleMatch, SkillSelector, select_skills, select_skills_for_command
from .rules import (
    DEFAULT_COMMANDS,
    DEFAULT_RULES,
    DEFAULT_TABLE,
    KeywordRule,
    RuleTable,
)

__all__ = [
    "DEFAULT_COMMANDS",
    "DEFAULT_RULES",
    "DEFAULT_TABLE",
    "KeywordRule",
    "RuleMatch",
    "RuleTable",
    "SkillSelector",
    "select_skills",
    "select_skills_for_command",
]
