"""
Tests para la CLI (click).

Cubre select, command, context, commands, rules, skills y validate-config.
"""

import json
import logging
from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner

from conductor.cli import EXIT_CONFIG_ERROR, main


@pytest.fixture(autouse=True)
def reset_logging(monkeypatch: pytest.MonkeyPatch):
    for var in ("CONDUCTOR_SKILLS_ROOT", "CONDUCTOR_MAX_ACTIVE", "CONDUCTOR_MATCH_MODE"):
        monkeypatch.delenv(var, raising=False)
    yield
    logging.root.handlers.clear()
    structlog.reset_defaults()


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    (tmp_path / "skills" / "core").mkdir(parents=True)
    (tmp_path / "skills" / "development").mkdir()
    (tmp_path / "skills" / "core" / "thinking.md").write_text(
        "# Thinking Skill v1.2.0\n\nThink before acting.", encoding="utf-8"
    )
    (tmp_path / "skills" / "development" / "tdd.md").write_text(
        "# TDD\n\n## Activation\n- Keywords: test, tdd\n\nRed, green, refactor.",
        encoding="utf-8",
    )
    (tmp_path / "CONSTITUTION.md").write_text("Python 3.12 only.", encoding="utf-8")
    return tmp_path


class TestSelect:
    def test_json(self, runner: CliRunner):
        result = runner.invoke(main, ["select", "Write unit tests", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output) == [
            "core/thinking",
            "core/verification",
            "development/tdd",
            "core/retrospective",
        ]

    def test_plain_lines(self, runner: CliRunner):
        result = runner.invoke(main, ["select", ""])
        assert result.exit_code == 0
        assert "core/thinking" in result.output
        assert "core/retrospective" in result.output

    def test_extra_skill(self, runner: CliRunner):
        result = runner.invoke(
            main, ["select", "", "--skill", "documents/powerpoint", "--json"]
        )
        assert "documents/powerpoint" in json.loads(result.output)

    def test_word_mode(self, runner: CliRunner):
        result = runner.invoke(main, ["select", "rapid prototype", "--match-mode", "word", "--json"])
        assert "development/api-design" not in json.loads(result.output)

    def test_explain(self, runner: CliRunner):
        result = runner.invoke(main, ["select", "deploy a lambda", "--explain"])
        assert result.exit_code == 0
        assert "infrastructure/serverless" in result.output
        assert "lambda" in result.output


class TestCommand:
    def test_implement(self, runner: CliRunner):
        result = runner.invoke(main, ["command", "implement", "--json"])
        assert json.loads(result.output) == [
            "core/thinking",
            "core/verification",
            "development/tdd",
            "development/debugging",
            "core/retrospective",
        ]

    def test_unknown(self, runner: CliRunner):
        result = runner.invoke(main, ["command", "unknown-command", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output) == ["core/thinking"]

    def test_unknown_logged_with_verbose(self, runner: CliRunner):
        result = runner.invoke(main, ["command", "unknown-command", "-v"])
        assert result.exit_code == 0
        assert "selector.unknown_command" in result.output
        assert "core/thinking" in result.output

    def test_json_stays_clean_with_verbose(self, runner: CliRunner):
        result = runner.invoke(main, ["command", "unknown-command", "--json", "-vv"])
        assert result.exit_code == 0
        assert json.loads(result.output) == ["core/thinking"]


class TestListings:
    def test_commands(self, runner: CliRunner):
        result = runner.invoke(main, ["commands"])
        assert result.exit_code == 0
        assert "implement" in result.output
        assert "Unknown commands -> core/thinking" in result.output

    def test_rules(self, runner: CliRunner):
        result = runner.invoke(main, ["rules"])
        assert result.exit_code == 0
        assert "development/tdd" in result.output
        assert "substring matching" in result.output

    def test_skills(self, runner: CliRunner, workspace: Path):
        result = runner.invoke(main, ["skills", "--skills-root", str(workspace / "skills")])
        assert result.exit_code == 0
        assert "core/thinking" in result.output
        assert "v1.2.0" in result.output
        assert "test, tdd" in result.output


class TestContext:
    def test_context_block(self, runner: CliRunner, workspace: Path):
        result = runner.invoke(
            main,
            [
                "context",
                "write a test",
                "--skills-root",
                str(workspace / "skills"),
                "--workspace",
                str(workspace),
            ],
        )
        assert result.exit_code == 0
        assert "# Project Constitution" in result.output
        assert "Think before acting." in result.output
        assert "Red, green, refactor." in result.output

    def test_max_active(self, runner: CliRunner, workspace: Path):
        result = runner.invoke(
            main,
            [
                "context",
                "write a test",
                "--skills-root",
                str(workspace / "skills"),
                "--workspace",
                str(workspace),
                "--max-active",
                "1",
            ],
        )
        assert "Think before acting." in result.output
        assert "Red, green, refactor." not in result.output

    def test_nothing_resolved(self, runner: CliRunner, tmp_path: Path):
        result = runner.invoke(
            main,
            ["context", "", "--skills-root", str(tmp_path / "none"), "--workspace", str(tmp_path)],
        )
        assert result.exit_code == 1


class TestValidateConfig:
    def test_valid(self, runner: CliRunner, tmp_path: Path):
        path = tmp_path / "conductor.yaml"
        path.write_text(
            "selector:\n  extra_rules:\n    - triggers: [terraform]\n      skill: infra/terraform\n",
            encoding="utf-8",
        )
        result = runner.invoke(main, ["validate-config", "-c", str(path)])
        assert result.exit_code == 0
        assert "Valid configuration" in result.output
        assert "Keyword rules: 13" in result.output

    def test_invalid(self, runner: CliRunner, tmp_path: Path):
        path = tmp_path / "conductor.yaml"
        path.write_text("library:\n  max_active: 99\n", encoding="utf-8")
        result = runner.invoke(main, ["validate-config", "-c", str(path)])
        assert result.exit_code == EXIT_CONFIG_ERROR

    def test_invalid_config_on_select(self, runner: CliRunner, tmp_path: Path):
        path = tmp_path / "conductor.yaml"
        path.write_text("unknown: true\n", encoding="utf-8")
        result = runner.invoke(main, ["select", "x", "-c", str(path)])
        assert result.exit_code == EXIT_CONFIG_ERROR
