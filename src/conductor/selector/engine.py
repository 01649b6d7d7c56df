"""
Skill Selector -- maps a free-text task description (and optionally a
command name) to an ordered list of skill identifiers.

Both operations are pure functions of their input and the RuleTable:
no state between calls, no failure modes. An empty description or an
unknown command is a valid input that degrades to the default lists.

Result order:
    select_skills:             baseline, keyword skills, explicit extras, trailing
    select_skills_for_command: command base (or fallback), keyword skills, extras

Results never contain duplicates; the first occurrence wins.
"""

from dataclasses import dataclass
from typing import Iterable, Sequence

from .rules import DEFAULT_TABLE, RuleTable


@dataclass(frozen=True)
class RuleMatch:
    """A keyword rule that fired, with the triggers that made it fire."""

    skill: str
    triggers: tuple[str, ...]


def _append_unique(result: list[str], skills: Iterable[str]) -> None:
    for skill in skills:
        if skill not in result:
            result.append(skill)


class SkillSelector:
    """Stateless selector over an immutable RuleTable.

    Safe to share between threads: the table is read-only and every call
    returns a freshly allocated list.
    """

    def __init__(self, table: RuleTable = DEFAULT_TABLE):
        self.table = table

    def explain(self, description: str) -> list[RuleMatch]:
        """Return the rules that match the description, in rule order."""
        lowered = (description or "").lower()
        matches: list[RuleMatch] = []
        for rule in self.table.rules:
            found = rule.matched_triggers(lowered, self.table.match_mode)
            if found:
                matches.append(RuleMatch(skill=rule.skill, triggers=tuple(found)))
        return matches

    def keyword_skills(self, description: str) -> list[str]:
        """Skills triggered by the description alone, de-duplicated."""
        result: list[str] = []
        _append_unique(result, (m.skill for m in self.explain(description)))
        return result

    def select_skills(
        self,
        description: str,
        extra: Sequence[str] = (),
    ) -> list[str]:
        """Select skills for a free-text task description.

        Args:
            description: Task text. Any string, including "".
            extra: Explicitly requested identifiers, added after keyword skills.

        Returns:
            baseline + triggered skills + extra + trailing, without duplicates.
        """
        result: list[str] = []
        _append_unique(result, self.table.baseline)
        _append_unique(result, self.keyword_skills(description))
        _append_unique(result, extra)
        _append_unique(result, [self.table.trailing])
        return result

    def select_skills_for_command(
        self,
        command_name: str,
        description: str = "",
        extra: Sequence[str] = (),
    ) -> list[str]:
        """Select skills for a named command, refined by an optional description.

        Unknown commands do not raise: they start from the fallback list.
        No trailing identifier is appended here; commands that need the
        retrospective carry it in their base list.
        """
        base = self.table.commands.get(command_name)
        if base is None:
            base = self.table.fallback

        result: list[str] = []
        _append_unique(result, base)
        _append_unique(result, self.keyword_skills(description))
        _append_unique(result, extra)
        return result


_default_selector = SkillSelector()


def select_skills(description: str, extra: Sequence[str] = ()) -> list[str]:
    """select_skills() over the built-in rule table."""
    return _default_selector.select_skills(description, extra)


def select_skills_for_command(
    command_name: str,
    description: str = "",
    extra: Sequence[str] = (),
) -> list[str]:
    """select_skills_for_command() over the built-in rule table."""
    return _default_selector.select_skills_for_command(command_name, description, extra)
