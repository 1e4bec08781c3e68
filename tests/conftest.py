"""Shared fixtures: a throwaway SQLite database per test."""

import pytest

from matchroom.models import DRAW, Match, MatchStatus
from matchroom.service import TournamentService
from matchroom.storage import DatabaseManager


@pytest.fixture
def db(tmp_path):
    """Database manager on a fresh file under tmp_path."""
    manager = DatabaseManager(str(tmp_path / "test.sqlite"))
    manager.create_tables()
    return manager


@pytest.fixture
def session(db):
    s = db.get_session()
    yield s
    s.close()


@pytest.fixture
def config(tmp_path):
    return {
        "database_path": str(tmp_path / "test.sqlite"),
        "matches_per_player": 1,
        "auto_advance": True,
        "random_seed": 7,
        "log_level": "INFO",
    }


@pytest.fixture
def service(session, config):
    return TournamentService(session, config)


@pytest.fixture
def make_room(service):
    """Create a room with n players named P1..Pn. Returns (room, players)."""

    def _make(n, room_name="Office"):
        room = service.create_room(room_name).value
        players = [service.add_player(room.id, f"P{i}").value for i in range(1, n + 1)]
        return room, players

    return _make


def completed_match(team1, team2, score1, score2, round=0, number=1, tournament_id=1):
    """Build a completed Match without touching the database."""
    if score1 > score2:
        winner = team1
    elif score2 > score1:
        winner = team2
    else:
        winner = DRAW
    return Match(
        tournament_id=tournament_id,
        round=round,
        match_number=number,
        team1=team1,
        team2=team2,
        score1=score1,
        score2=score2,
        winner=winner,
        status=MatchStatus.COMPLETED,
    )
