"""
Cargador de configuración con deep merge.

Orden de precedencia (de menor a mayor):
1. Defaults (definidos en los schemas Pydantic)
2. Archivo YAML
3. Variables de entorno
4. Argumentos CLI

La tabla de reglas del selector se construye una sola vez a partir del
AppConfig validado (build_rule_table) y no se modifica después.
"""

import os
from pathlib import Path
from typing import Any

import structlog
import yaml

from ..library.loader import SkillLibrary
from ..selector.rules import DEFAULT_TABLE, KeywordRule, RuleTable
from .schema import AppConfig

logger = structlog.get_logger()


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge recursivo de diccionarios.

    Args:
        base: Diccionario base
        override: Diccionario que sobreescribe valores del base

    Returns:
        Nuevo diccionario con valores merged. Override gana en conflictos de hojas.

    Example:
        >>> deep_merge({"a": {"b": 1, "c": 2}}, {"a": {"b": 99}, "e": 4})
        {'a': {'b': 99, 'c': 2}, 'e': 4}
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_yaml_config(config_path: Path | None) -> dict[str, Any]:
    """Carga configuración desde archivo YAML.

    Args:
        config_path: Path al archivo YAML, o None para omitir

    Returns:
        Diccionario con la configuración, o dict vacío si no hay archivo
    """
    if not config_path:
        return {}

    if not config_path.exists():
        raise FileNotFoundError(f"Archivo de configuración no encontrado: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
        return data if data else {}


def load_env_overrides() -> dict[str, Any]:
    """Carga overrides desde variables de entorno.

    Variables soportadas:
        CONDUCTOR_SKILLS_ROOT: sobreescribe library.root
        CONDUCTOR_MAX_ACTIVE: sobreescribe library.max_active
        CONDUCTOR_MATCH_MODE: sobreescribe selector.match_mode
        CONDUCTOR_LOG_LEVEL: sobreescribe logging.level
    """
    overrides: dict[str, Any] = {}

    if root := os.environ.get("CONDUCTOR_SKILLS_ROOT"):
        overrides.setdefault("library", {})["root"] = root

    if max_active := os.environ.get("CONDUCTOR_MAX_ACTIVE"):
        # Pydantic valida y convierte el string
        overrides.setdefault("library", {})["max_active"] = max_active

    if match_mode := os.environ.get("CONDUCTOR_MATCH_MODE"):
        overrides.setdefault("selector", {})["match_mode"] = match_mode.lower()

    if log_level := os.environ.get("CONDUCTOR_LOG_LEVEL"):
        overrides.setdefault("logging", {})["level"] = log_level.lower()

    return overrides


def apply_cli_overrides(config_dict: dict[str, Any], cli_args: dict[str, Any]) -> dict[str, Any]:
    """Aplica overrides desde argumentos CLI.

    Args:
        config_dict: Configuración base (ya merged con YAML y env)
        cli_args: Diccionario con argumentos CLI

    Returns:
        Configuración con overrides de CLI aplicados
    """
    overrides: dict[str, Any] = {}

    if cli_args.get("skills_root"):
        overrides.setdefault("library", {})["root"] = cli_args["skills_root"]

    if cli_args.get("max_active") is not None:
        overrides.setdefault("library", {})["max_active"] = cli_args["max_active"]

    if cli_args.get("match_mode"):
        overrides.setdefault("selector", {})["match_mode"] = cli_args["match_mode"]

    if cli_args.get("log_file"):
        overrides.setdefault("logging", {})["file"] = cli_args["log_file"]

    if cli_args.get("verbose") is not None:
        overrides.setdefault("logging", {})["verbose"] = cli_args["verbose"]

    return deep_merge(config_dict, overrides)


def load_config(
    config_path: Path | None = None,
    cli_args: dict[str, Any] | None = None,
) -> AppConfig:
    """Carga y valida la configuración completa de la aplicación.

    Raises:
        FileNotFoundError: Si config_path no existe
        ValidationError: Si la configuración final no es válida
    """
    cli_args = cli_args or {}

    yaml_config = load_yaml_config(config_path)
    merged = deep_merge(yaml_config, load_env_overrides())
    merged = apply_cli_overrides(merged, cli_args)

    # Pydantic aplica los defaults automáticamente
    return AppConfig(**merged)


def build_rule_table(
    config: AppConfig,
    library: SkillLibrary | None = None,
) -> RuleTable:
    """Construye la tabla inmutable del selector a partir de la configuración.

    Args:
        config: AppConfig validado
        library: Librería de skills; sólo se usa si
            selector.use_activation_keywords está activo

    Returns:
        RuleTable listo para compartir entre llamadas
    """
    sel = config.selector

    if sel.rules is not None:
        rules = [KeywordRule(tuple(r.triggers), r.skill) for r in sel.rules]
    else:
        rules = list(DEFAULT_TABLE.rules)
    rules.extend(KeywordRule(tuple(r.triggers), r.skill) for r in sel.extra_rules)

    if sel.use_activation_keywords:
        library = library or SkillLibrary(config.library.root)
        declared = library.activation_rules()
        rules.extend(declared)
        logger.info("config.activation_rules_loaded", count=len(declared))

    commands = dict(DEFAULT_TABLE.commands)
    commands.update({name: tuple(skills) for name, skills in sel.commands.items()})

    customized = bool(
        sel.baseline is not None
        or sel.trailing is not None
        or sel.fallback is not None
        or sel.rules is not None
        or sel.extra_rules
        or sel.commands
        or sel.use_activation_keywords
    )

    table = RuleTable(
        baseline=tuple(sel.baseline) if sel.baseline is not None else DEFAULT_TABLE.baseline,
        rules=tuple(rules),
        trailing=sel.trailing if sel.trailing is not None else DEFAULT_TABLE.trailing,
        commands=commands,
        fallback=tuple(sel.fallback) if sel.fallback is not None else DEFAULT_TABLE.fallback,
        match_mode=sel.match_mode,
        version="config" if customized else DEFAULT_TABLE.version,
    )
    logger.info(
        "config.rule_table_built",
        rules=len(table.rules),
        commands=len(table.commands),
        match_mode=table.match_mode,
        version=table.version,
    )
    return table
