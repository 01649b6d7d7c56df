"""
Main CLI for conductor using Click.

Commands:
    select          Skills for a free-text task description
    command         Skills for a named command (implement, plan, ...)
    context         Assembled context block (constitution + skill documents)
    commands        Command table
    rules           Keyword rule table
    skills          Skill documents found in the library
    validate-config Validate a YAML configuration file
"""

import json
import os
import sys
from pathlib import Path
from typing import Any

import click
import structlog
from pydantic import ValidationError

from .config import AppConfig, build_rule_table, load_config
from .library import SkillLibrary
from .logging import configure_logging
from .selector import SkillSelector

logger = structlog.get_logger()

# Exit codes
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 3

_VERSION = "0.3.0"

_CONFIG_OPTION = click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to the YAML configuration file",
)
_VERBOSE_OPTION = click.option(
    "-v", "--verbose", count=True, help="Verbosity (-v info, -vv debug)"
)
_SKILL_OPTION = click.option(
    "--skill",
    "extra_skills",
    multiple=True,
    help="Explicit skill identifier to add (repeatable)",
)


def _bootstrap(
    config_path: Path | None,
    cli_args: dict[str, Any] | None = None,
    json_output: bool = False,
) -> tuple[AppConfig, SkillSelector, SkillLibrary]:
    """Load config, configure logging and build the selector once."""
    try:
        config = load_config(config_path=config_path, cli_args=cli_args)
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except ValidationError as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    configure_logging(config.logging, json_output=json_output)
    library = SkillLibrary(config.library.root)
    selector = SkillSelector(build_rule_table(config, library))
    return config, selector, library


def _emit(skills: list[str], as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(skills))
    else:
        for skill in skills:
            click.echo(skill)


@click.group()
@click.version_option(version=_VERSION, prog_name="conductor")
def main() -> None:
    """conductor - choose which skill documents to load for a task."""
    pass


@main.command("select")
@click.argument("description", required=False, default="")
@_SKILL_OPTION
@click.option("--json", "as_json", is_flag=True, help="Print the result as a JSON list")
@click.option("--explain", is_flag=True, help="Show which triggers fired each skill")
@click.option(
    "--match-mode",
    type=click.Choice(["substring", "word"]),
    default=None,
    help="Trigger matching mode (default: substring)",
)
@_CONFIG_OPTION
@_VERBOSE_OPTION
def select_cmd(
    description: str,
    extra_skills: tuple[str, ...],
    as_json: bool,
    explain: bool,
    match_mode: str | None,
    config_path: Path | None,
    verbose: int,
) -> None:
    """Select skills for a task DESCRIPTION."""
    _, selector, _ = _bootstrap(
        config_path,
        {"match_mode": match_mode, "verbose": verbose},
        json_output=as_json,
    )
    skills = selector.select_skills(description, extra=extra_skills)
    logger.debug("selector.selected", chars=len(description), skills=skills)
    _emit(skills, as_json)

    if explain and not as_json:
        matches = selector.explain(description)
        click.echo("", err=True)
        if not matches:
            click.echo("  no keyword rule matched", err=True)
        for match in matches:
            click.echo(f"  {match.skill:<32} <- {', '.join(match.triggers)}", err=True)


@main.command("command")
@click.argument("name")
@click.argument("description", required=False, default="")
@_SKILL_OPTION
@click.option("--json", "as_json", is_flag=True, help="Print the result as a JSON list")
@_CONFIG_OPTION
@_VERBOSE_OPTION
def command_cmd(
    name: str,
    description: str,
    extra_skills: tuple[str, ...],
    as_json: bool,
    config_path: Path | None,
    verbose: int,
) -> None:
    """Select skills for command NAME, refined by an optional DESCRIPTION."""
    _, selector, _ = _bootstrap(config_path, {"verbose": verbose}, json_output=as_json)
    if name not in selector.table.commands:
        logger.info("selector.unknown_command", command=name)
    skills = selector.select_skills_for_command(name, description, extra=extra_skills)
    logger.debug("selector.command_selected", command=name, skills=skills)
    _emit(skills, as_json)


@main.command("context")
@click.argument("description", required=False, default="")
@click.option("--command", "command_name", default=None, help="Start from a command's base skills")
@_SKILL_OPTION
@click.option("--max-active", type=click.IntRange(1, 20), default=None, help="Maximum skills to inject")
@click.option("--skills-root", type=click.Path(file_okay=False), default=None, help="Skill library root")
@click.option(
    "--workspace",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding the project constitution (default: cwd)",
)
@_CONFIG_OPTION
@_VERBOSE_OPTION
def context_cmd(
    description: str,
    command_name: str | None,
    extra_skills: tuple[str, ...],
    max_active: int | None,
    skills_root: str | None,
    workspace: Path | None,
    config_path: Path | None,
    verbose: int,
) -> None:
    """Print the context block for a task DESCRIPTION."""
    config, selector, library = _bootstrap(
        config_path,
        {"max_active": max_active, "skills_root": skills_root, "verbose": verbose},
    )

    if command_name:
        skills = selector.select_skills_for_command(command_name, description, extra=extra_skills)
    else:
        skills = selector.select_skills(description, extra=extra_skills)

    constitution = None
    if config.library.constitution:
        constitution = library.load_constitution(workspace or Path(os.getcwd()))

    block = library.build_context(
        skills,
        max_active=config.library.max_active,
        constitution=constitution,
    )
    if not block:
        click.echo("No skill documents resolved.", err=True)
        sys.exit(EXIT_FAILED)
    click.echo(block)


@main.command("commands")
@_CONFIG_OPTION
def commands_cmd(config_path: Path | None) -> None:
    """List commands and their base skills."""
    _, selector, _ = _bootstrap(config_path)
    table = selector.table

    click.echo("Available commands:\n")
    for name in table.command_names():
        click.echo(f"  {name:<12} {', '.join(table.commands[name])}")
    click.echo(f"\n  Unknown commands -> {', '.join(table.fallback)}")


@main.command("rules")
@_CONFIG_OPTION
def rules_cmd(config_path: Path | None) -> None:
    """List the keyword rules in evaluation order."""
    _, selector, _ = _bootstrap(config_path)
    table = selector.table

    click.echo(f"Keyword rules ({table.match_mode} matching, table '{table.version}'):\n")
    for i, rule in enumerate(table.rules, 1):
        click.echo(f"  {i:>2}. {rule.skill:<32} {', '.join(rule.triggers)}")
    click.echo(f"\n  Baseline: {', '.join(table.baseline)}")
    click.echo(f"  Trailing: {table.trailing}")


@main.command("skills")
@click.option("--skills-root", type=click.Path(file_okay=False), default=None, help="Skill library root")
@_CONFIG_OPTION
def skills_cmd(skills_root: str | None, config_path: Path | None) -> None:
    """List skill documents found in the library."""
    _, _, library = _bootstrap(config_path, {"skills_root": skills_root})
    docs = library.discover()
    if not docs:
        click.echo(f"  No skill documents under {library.root}.")
        return
    for doc in docs:
        version = f"v{doc.version}" if doc.version else "-"
        keywords = ", ".join(doc.keywords) if doc.keywords else ""
        click.echo(f"  {doc.identifier:<32} {version:<8} {keywords}")


@main.command("validate-config")
@click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Path to the configuration file to validate",
)
def validate_config(config_path: Path) -> None:
    """Validate a YAML configuration file."""
    try:
        app_config = load_config(config_path=config_path)
        configure_logging(app_config.logging)
        table = build_rule_table(app_config)
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except ValidationError as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    click.echo("Valid configuration")
    click.echo(f"  Keyword rules: {len(table.rules)}")
    click.echo(f"  Commands: {len(table.commands)}")
    click.echo(f"  Match mode: {table.match_mode}")
    click.echo(f"  Skills root: {app_config.library.root}")


if __name__ == "__main__":
    main()
