"""Tests for the command-line interface."""

import pytest
from click.testing import CliRunner

from matchroom.cli import cli


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(f"database_path: {tmp_path / 'cli.sqlite'}\nauto_advance: true\n", encoding="utf-8")
    return str(path)


@pytest.fixture
def runner():
    return CliRunner()


def _ok(runner, *args):
    result = runner.invoke(cli, list(args))
    assert result.exit_code == 0, result.output
    return result.output


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_league_from_the_command_line(runner, config_path):
    assert "Database ready" in _ok(runner, "init-db", "--config", config_path)
    assert "Room #1 'Office' created" in _ok(runner, "add-room", "--config", config_path, "--name", "Office")
    for name in ("Ana", "Ben", "Cid"):
        _ok(runner, "add-player", "--config", config_path, "--room", "1", "--name", name)

    output = _ok(
        runner, "create-tournament", "--config", config_path, "--room", "1", "--name", "League",
        "--player", "1", "--player", "2", "--player", "3",
    )
    assert "created with 3 matches" in output
    assert "Ana vs Ben" in output

    output = _ok(
        runner, "record-result", "--config", config_path, "--match", "1",
        "--score1", "3", "--score2", "1", "--by", "Ana",
    )
    assert "Result saved" in output
    assert "Ana 3-1 Ben" in output

    output = _ok(runner, "standings", "--config", config_path, "--tournament", "1")
    assert "1. Ana - 3pts" in output

    output = _ok(runner, "matches", "--config", config_path, "--tournament", "1")
    assert "winner: Ana" in output
    assert output.count("pending") == 2


def test_errors_abort_with_kind(runner, config_path):
    _ok(runner, "add-room", "--config", config_path, "--name", "Office")
    _ok(runner, "add-player", "--config", config_path, "--room", "1", "--name", "Ana")

    result = runner.invoke(
        cli,
        ["create-tournament", "--config", config_path, "--room", "1", "--name", "Solo", "--player", "1"],
    )
    assert result.exit_code != 0
    assert "[ERROR] ValidationError" in result.output

    result = runner.invoke(
        cli, ["record-result", "--config", config_path, "--match", "99", "--score1", "1", "--score2", "0"]
    )
    assert result.exit_code != 0
    assert "[ERROR] NotFoundError" in result.output


def test_bad_config_aborts(runner, tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("matches_per_player: 0\n", encoding="utf-8")

    result = runner.invoke(cli, ["init-db", "--config", str(path)])

    assert result.exit_code != 0
    assert "Configuration Error" in result.output


def test_create_final_command(runner, config_path):
    _ok(runner, "add-room", "--config", config_path, "--name", "Office")
    for name in ("Ana", "Ben"):
        _ok(runner, "add-player", "--config", config_path, "--room", "1", "--name", name)
    _ok(
        runner, "create-tournament", "--config", config_path, "--room", "1", "--name", "Duel",
        "--player", "1", "--player", "2",
    )

    result = runner.invoke(cli, ["create-final", "--config", config_path, "--tournament", "1"])
    assert result.exit_code != 0
    assert "not finished" in result.output

    # Finishing the stage creates the final automatically
    _ok(runner, "record-result", "--config", config_path, "--match", "1", "--score1", "2", "--score2", "0")
    result = runner.invoke(cli, ["create-final", "--config", config_path, "--tournament", "1"])
    assert "[ERROR] ConflictError" in result.output
