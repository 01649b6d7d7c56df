"""
Pydantic models for conductor configuration.

Defines all configuration schemas using Pydantic v2 for validation,
defaults, and serialization. The selector section is converted once into
an immutable RuleTable (see config.loader.build_rule_table).
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class KeywordRuleConfig(BaseModel):
    """A keyword rule as written in YAML.

    Example:
        - triggers: [lambda, serverless]
          skill: infrastructure/serverless
    """

    triggers: list[str] = Field(min_length=1)
    skill: str = Field(min_length=1)

    @field_validator("triggers")
    @classmethod
    def _normalize_triggers(cls, v: list[str]) -> list[str]:
        """Triggers are compared against lower-cased text, so store them lower-cased."""
        cleaned = [t.strip().lower() for t in v if t and t.strip()]
        if not cleaned:
            raise ValueError("triggers must contain at least one non-empty string")
        return cleaned

    model_config = {"extra": "forbid"}


class SelectorConfig(BaseModel):
    """Skill selector configuration.

    Every field left as None keeps the built-in default table value.
    """

    baseline: list[str] | None = Field(
        default=None,
        description="Identifiers always present at the start of select_skills().",
    )
    trailing: str | None = Field(
        default=None,
        description="Identifier appended unconditionally by select_skills().",
    )
    fallback: list[str] | None = Field(
        default=None,
        description="Base list used by select_skills_for_command() for unknown commands.",
    )
    match_mode: Literal["substring", "word"] = Field(
        default="substring",
        description=(
            "substring: plain containment ('api' matches 'rapid'). "
            "word: triggers must sit on word boundaries. Opt-in behaviour change."
        ),
    )
    rules: list[KeywordRuleConfig] | None = Field(
        default=None,
        description="Replaces the default keyword rules entirely when set.",
    )
    extra_rules: list[KeywordRuleConfig] = Field(
        default_factory=list,
        description="Rules appended after the default (or replaced) rule list.",
    )
    commands: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Command base lists. Merged over the default command table.",
    )
    use_activation_keywords: bool = Field(
        default=False,
        description=(
            "If True, rules are also derived from the '- Keywords:' lines of the "
            "skill documents found in library.root (loaded once at startup)."
        ),
    )

    model_config = {"extra": "forbid"}


class LibraryConfig(BaseModel):
    """Skill document library configuration."""

    root: Path = Path("skills")
    max_active: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Maximum number of skill documents injected into a context block.",
    )
    constitution: bool = Field(
        default=True,
        description="If True, a CONSTITUTION.md (or equivalent) in the workspace is prepended.",
    )

    model_config = {"extra": "forbid"}


class LoggingConfig(BaseModel):
    """Logging system configuration."""

    level: Literal["debug", "info", "warn", "error"] = "warn"
    file: Path | None = None
    verbose: int = 0

    model_config = {"extra": "forbid"}


class AppConfig(BaseModel):
    """Complete application configuration.

    This is the root of the configuration tree. It combines all sections
    and is the entry point for validation.
    """

    selector: SelectorConfig = Field(default_factory=SelectorConfig)
    library: LibraryConfig = Field(default_factory=LibraryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"extra": "forbid"}
