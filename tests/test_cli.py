"""Smoke tests for the command line interface."""

import json

import pytest
from typer.testing import CliRunner

from cricket_scorer.cli.main import app
from cricket_scorer.config import settings
from cricket_scorer.database import configure_database

runner = CliRunner()


@pytest.fixture
def cli(tmp_path):
    url = f"sqlite:///{tmp_path / 'scorer.db'}"

    def invoke(*args):
        return runner.invoke(app, ["--database-url", url, *args])

    result = invoke("setup-db")
    assert result.exit_code == 0, result.output
    yield invoke
    configure_database()
    settings.database.url_override = None


def test_score_a_few_balls(cli):
    result = cli("new-match", "--team-a", "1", "--team-b", "2", "--overs", "5")
    assert result.exit_code == 0, result.output
    assert "Match 1 created" in result.output

    assert cli("toss", "1", "1", "--decision", "bat").exit_code == 0
    assert cli("start-innings", "1", "1", "101", "102", "201").exit_code == 0

    result = cli("ball", "1", "1", "--runs", "4")
    assert result.exit_code == 0, result.output
    assert "4/0 (0.1 ov)" in result.output

    result = cli("ball-json", "1", "1", '{"extra_type": "wide", "extra_runs": 1}')
    assert result.exit_code == 0, result.output
    assert "6/0 (0.1 ov)" in result.output

    result = cli("ball", "1", "1", "--wicket", "bowled")
    assert result.exit_code == 0, result.output
    assert "name the incoming batter" in result.output

    assert cli("batter", "1", "1", "103").exit_code == 0

    result = cli("show", "1")
    assert result.exit_code == 0, result.output
    assert "Fall of wickets" in result.output
    assert "Run rate: 18.00" in result.output

    assert cli("verify", "1").exit_code == 0


def test_rule_violation_exit_code(cli):
    cli("new-match", "--team-a", "1", "--team-b", "2")
    cli("toss", "1", "2", "--decision", "bowl")
    cli("start-innings", "1", "1", "101", "102", "201")

    result = cli("bowler", "1", "1", "101")
    assert result.exit_code == 1
    assert "bowler_is_batting" in result.output


def test_invalid_payload_exit_code(cli):
    cli("new-match", "--team-a", "1", "--team-b", "2")
    cli("toss", "1", "1")
    cli("start-innings", "1", "1", "101", "102", "201")

    result = cli("ball", "1", "1", "--runs", "1", "--extra", "wide")
    assert result.exit_code == 2


def test_undo_and_end_match(cli):
    cli("new-match", "--team-a", "1", "--team-b", "2")
    cli("toss", "1", "1")
    cli("start-innings", "1", "1", "101", "102", "201")
    cli("ball", "1", "1", "--runs", "2")

    result = cli("undo", "1", "1")
    assert result.exit_code == 0, result.output
    assert "0/0 (0.0 ov)" in result.output

    result = cli("undo", "1", "1")
    assert result.exit_code == 1

    result = cli("end-match", "1")
    assert result.exit_code == 0, result.output
    assert "No result" in result.output


def test_export(cli, tmp_path):
    cli("new-match", "--team-a", "1", "--team-b", "2")
    cli("toss", "1", "1")
    cli("start-innings", "1", "1", "101", "102", "201")
    cli("ball", "1", "1", "--runs", "6")
    cli("ball", "1", "1", "--extra", "leg_bye", "--extra-runs", "1")

    target = tmp_path / "match-1.json"
    result = cli("export", "1", "--output", str(target))
    assert result.exit_code == 0, result.output

    data = json.loads(target.read_text(encoding="utf-8"))
    assert data["match_id"] == 1
    assert [entry["kind"] for entry in data["entries"]] == ["toss", "innings_started", "delivery", "delivery"]
    assert data["snapshot"]["match"]["innings"][0]["runs"] == 7

    assert cli("export", "42").exit_code == 1
