"""
Skill library -- skill documents on disk and context assembly.
"""

from .loader import SkillDocument, SkillLibrary, UnknownSkillError

__all__ = [
    "SkillDocument",
    "SkillLibrary",
    "UnknownSkillError",
]
