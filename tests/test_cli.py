"""Tests for CLI parsing and command dispatch."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path

import pytest

from achievers.cli import dispatch, parse_args
from achievers.config.settings import settings


def _run(argv: list[str]) -> int:
    return dispatch(parse_args(argv))


def test_parse_args_defaults_to_tui_mode() -> None:
    args = parse_args([])
    assert args.command is None
    assert args.workdir is None


def test_parse_args_statement_with_answers() -> None:
    args = parse_args(
        [
            "--email",
            "ada@example.com",
            "statement",
            "Fixed the login bug",
            "--impact",
            "customer",
            "--qa",
            "Root cause?",
            "Expired token",
            "--qa",
            "Who benefited?",
            "Everyone",
            "--submit",
        ]
    )
    assert args.command == "statement"
    assert args.email == "ada@example.com"
    assert args.qa == [["Root cause?", "Expired token"], ["Who benefited?", "Everyone"]]
    assert args.submit is True


def test_parse_args_feed_filters() -> None:
    args = parse_args(["feed", "--since", "2024-01-01", "--user", "ada"])
    assert args.since == date(2024, 1, 1)
    assert args.until is None
    assert args.user == "ada"


def test_parse_args_rejects_unknown_impact() -> None:
    with pytest.raises(SystemExit):
        parse_args(["questions", "Did it", "--impact", "partner"])


class TestCommands:
    """Commands run against a temporary workspace without AI credentials."""

    @pytest.fixture(autouse=True)
    def _no_credentials(self, workspace: Path) -> None:
        settings._data = {}

    def test_questions_prints_fallback_questions(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _run(["questions", "I fixed the build", "--impact", "team"]) == 0
        lines = capsys.readouterr().out.strip().splitlines()
        assert 3 <= len(lines) <= 5
        assert lines[0].startswith("1. ")

    def test_questions_reports_word_limit(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        statement = " ".join(["word"] * 61)
        assert _run(["questions", statement, "--impact", "team"]) == 1
        assert "exceeds 60 word limit (61 words)" in capsys.readouterr().err

    def test_statement_requires_user(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["statement", "I fixed it", "--impact", "team"]) == 1
        assert "No current user" in capsys.readouterr().err

    def test_submit_feed_and_counters(
        self, workspace: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        user = ["--email", "ada@example.com", "--name", "Ada"]
        statement = ["statement", "I fixed the build", "--impact", "team"]
        assert _run([*user, *statement, "--submit"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("Ada fixed the build.")
        record_id = out.strip().rsplit(" ", 1)[-1]

        records = (workspace / ".achievers" / "accomplishments.jsonl").read_text()
        assert json.loads(records)["id"] == record_id

        assert _run(["congratulate", record_id]) == 0
        assert capsys.readouterr().out.strip() == f"{record_id}: 1 congratulations"
        assert _run(["vote", record_id]) == 0
        assert capsys.readouterr().out.strip() == f"{record_id}: 1 votes"

        assert _run(["feed", "--user", "ADA"]) == 0
        feed = capsys.readouterr().out
        assert f"[{record_id}] Ada <ada@example.com>" in feed
        assert "congratulations: 1  votes: 1" in feed

        assert _run(["share", record_id]) == 0
        assert "Congratulations to Ada" in capsys.readouterr().out

    def test_counter_on_unknown_id_fails(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _run(["vote", "missing"]) == 1
        assert "Accomplishment 'missing' not found" in capsys.readouterr().err

    def test_empty_feed(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["feed"]) == 0
        assert "No accomplishments found." in capsys.readouterr().out

    def test_prompts_list_and_schema(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert _run(["prompts"]) == 0
        assert "accomplishment-generation" in capsys.readouterr().out

        assert _run(["prompts", "--schema", "accomplishment-generation"]) == 0
        schema = json.loads(capsys.readouterr().out)
        assert schema["userName"] == {"required": True}

        assert _run(["prompts", "--schema", "nope"]) == 1

    def test_health_without_credentials_is_unhealthy(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _run(["health"]) == 1
        assert json.loads(capsys.readouterr().out)["status"] == "unhealthy"

    def test_metrics_summarizes_recorded_calls(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert _run(["questions", "I fixed the build", "--impact", "team"]) == 0
        capsys.readouterr()

        assert _run(["metrics"]) == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["total_calls"] == 1
        assert summary["total_fallbacks"] == 1
        assert summary["failures_by_type"] == {"auth_failed": 1}

    def test_config_sets_user_and_switches(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        argv = [
            "config",
            "--user",
            "ada@example.com",
            "Ada Lovelace",
            "--cache-tokens",
            "on",
            "--enforce-statement-limit",
            "on",
        ]
        assert _run(argv) == 0
        shown = json.loads(capsys.readouterr().out)
        assert shown["current_user"] == {
            "email": "ada@example.com",
            "name": "Ada Lovelace",
        }
        assert shown["cache_tokens"] is True
        assert shown["enforce_statement_word_limit"] is True
        assert shown["credentials_configured"] is False

        assert _run(["statement", "I fixed it", "--impact", "team"]) == 0
        assert capsys.readouterr().out.startswith("Ada Lovelace fixed it.")

        assert _run(["config", "--clear-user", "--cache-tokens", "off"]) == 0
        shown = json.loads(capsys.readouterr().out)
        assert shown["current_user"] is None
        assert shown["cache_tokens"] is False


def test_parse_args_config_rejects_user_and_clear_together() -> None:
    with pytest.raises(SystemExit):
        parse_args(["config", "--user", "a@b.c", "A", "--clear-user"])
