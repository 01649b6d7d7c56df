"""
Rule table -- keyword rules, command base lists and the default tables.

The table is plain immutable data: frozen dataclasses, tuples and a
read-only mapping. It is built once at startup (defaults, optionally
overridden by YAML config) and shared by every selector call.
"""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Literal, Mapping

MatchMode = Literal["substring", "word"]

MATCH_MODES = ("substring", "word")

# ── Skill identifiers ────────────────────────────────────────────────────────

THINKING = "core/thinking"
VERIFICATION = "core/verification"
PLANNING = "core/planning"
RETROSPECTIVE = "core/retrospective"
TDD = "development/tdd"
DEBUGGING = "development/debugging"
API_DESIGN = "development/api-design"
CODE_REVIEW = "development/code-review"
SERVERLESS = "infrastructure/serverless"
DATA_MODELING = "data/modeling"
DUCKDB = "data/duckdb"
POWERPOINT = "documents/powerpoint"
GOOGLE_DOCS = "documents/google-docs"
GOOGLE_SHEETS = "documents/google-sheets"
GOOGLE_SLIDES = "documents/google-slides"
REPORTS = "documents/reports"
GOOGLE_WORKSPACE = "integrations/google-workspace"


@dataclass(frozen=True)
class KeywordRule:
    """If any trigger occurs in the lower-cased text, the skill is selected."""

    triggers: tuple[str, ...]
    skill: str

    def __post_init__(self) -> None:
        triggers = self.triggers
        if isinstance(triggers, str):
            triggers = (triggers,)
        # Normalize here so hand-built rules behave like config-built ones
        object.__setattr__(self, "triggers", tuple(t.lower() for t in triggers if t))

    def matched_triggers(self, lowered: str, mode: MatchMode = "substring") -> list[str]:
        """Return the triggers found in an already lower-cased text."""
        if mode == "word":
            return [t for t in self.triggers if _word_pattern(t).search(lowered)]
        return [t for t in self.triggers if t in lowered]

    def matches(self, text: str, mode: MatchMode = "substring") -> bool:
        lowered = text.lower()
        if mode == "word":
            return any(_word_pattern(t).search(lowered) for t in self.triggers)
        return any(t in lowered for t in self.triggers)


def _word_pattern(trigger: str) -> re.Pattern[str]:
    return re.compile(r"(?<!\w)" + re.escape(trigger) + r"(?!\w)")


@dataclass(frozen=True)
class RuleTable:
    """Immutable selection table shared by all selector calls."""

    baseline: tuple[str, ...]
    rules: tuple[KeywordRule, ...]
    trailing: str
    commands: Mapping[str, tuple[str, ...]]
    fallback: tuple[str, ...]
    match_mode: MatchMode = "substring"
    version: str = field(default="builtin")

    def __post_init__(self) -> None:
        if self.match_mode not in MATCH_MODES:
            raise ValueError(
                f"match_mode must be one of {MATCH_MODES}, got {self.match_mode!r}"
            )
        frozen = {name: tuple(skills) for name, skills in dict(self.commands).items()}
        object.__setattr__(self, "commands", MappingProxyType(frozen))
        object.__setattr__(self, "baseline", tuple(self.baseline))
        object.__setattr__(self, "rules", tuple(self.rules))
        object.__setattr__(self, "fallback", tuple(self.fallback))

    def command_names(self) -> list[str]:
        return sorted(self.commands)


# ── Default tables ───────────────────────────────────────────────────────────

DEFAULT_BASELINE: tuple[str, ...] = (THINKING, VERIFICATION)

DEFAULT_TRAILING = RETROSPECTIVE

DEFAULT_FALLBACK: tuple[str, ...] = (THINKING,)

DEFAULT_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(("test", "tdd", "pytest"), TDD),
    KeywordRule(("debug", "error", "bug", "failing", "exception"), DEBUGGING),
    KeywordRule(("lambda", "serverless", "deploy"), SERVERLESS),
    KeywordRule(("api", "endpoint"), API_DESIGN),
    KeywordRule(("schema", "migration", "database"), DATA_MODELING),
    KeywordRule(("duckdb", "analytics", "parquet", "data"), DUCKDB),
    # Document skills
    KeywordRule(("powerpoint", "presentation", "slides", "ppt", "deck"), POWERPOINT),
    KeywordRule(("google slides", "gslides"), GOOGLE_SLIDES),
    KeywordRule(("document", "gdoc", "google doc"), GOOGLE_DOCS),
    KeywordRule(("spreadsheet", "excel", "sheets", "csv"), GOOGLE_SHEETS),
    KeywordRule(("report",), REPORTS),
    KeywordRule(("google drive", "google workspace", "gdrive"), GOOGLE_WORKSPACE),
)

DEFAULT_COMMANDS: dict[str, tuple[str, ...]] = {
    "implement": (THINKING, VERIFICATION, TDD, DEBUGGING, RETROSPECTIVE),
    "plan": (THINKING, PLANNING),
    "debug": (THINKING, DEBUGGING, VERIFICATION),
    "review": (THINKING, VERIFICATION, CODE_REVIEW),
    "test": (THINKING, TDD, VERIFICATION),
    "document": (THINKING, REPORTS),
    "retro": (RETROSPECTIVE,),
}

DEFAULT_TABLE = RuleTable(
    baseline=DEFAULT_BASELINE,
    rules=DEFAULT_RULES,
    trailing=DEFAULT_TRAILING,
    commands=DEFAULT_COMMANDS,
    fallback=DEFAULT_FALLBACK,
)
