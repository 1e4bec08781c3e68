"""Tests for bye/walkover resolution."""

from dataclasses import replace
from unittest.mock import MagicMock

import pytest

from matchroom.models import BYE, Match, MatchStatus
from matchroom.walkover import is_walkover, resolve_walkovers, walkover_result


def _pending(team1, team2, number=1, match_id=None):
    return Match(
        id=match_id or number, tournament_id=1, round=1, match_number=number,
        team1=team1, team2=team2,
    )


def create_mock_match_repo():
    """MatchRepository stub whose update_result completes the match."""
    repo = MagicMock()

    def update_result(match_id, score1, score2, winner):
        return Match(
            id=match_id, tournament_id=1, round=1, match_number=match_id,
            team1="?", team2="?", score1=score1, score2=score2, winner=winner,
            status=MatchStatus.COMPLETED,
        )

    repo.update_result.side_effect = update_result
    return repo


def test_walkover_result_for_bye_on_either_side():
    assert walkover_result(_pending("Ana", BYE)) == (3, 0, "Ana")
    assert walkover_result(_pending(BYE, "Ben")) == (0, 3, "Ben")


def test_walkover_result_rejects_regular_and_double_bye():
    with pytest.raises(ValueError):
        walkover_result(_pending("Ana", "Ben"))
    with pytest.raises(ValueError):
        walkover_result(_pending(BYE, BYE))


def test_is_walkover():
    assert is_walkover(_pending("Ana", BYE))
    assert not is_walkover(_pending("Ana", "Ben"))
    assert not is_walkover(_pending(BYE, BYE))

    done = replace(_pending("Ana", BYE), status=MatchStatus.COMPLETED, score1=3, score2=0, winner="Ana")
    assert not is_walkover(done)


def test_resolve_walkovers_completes_only_bye_matches():
    repo = create_mock_match_repo()
    matches = [
        _pending("Ana", BYE, number=1),
        _pending("Ben", "Cid", number=2),
    ]

    resolved = resolve_walkovers(repo, matches)

    repo.update_result.assert_called_once_with(1, 3, 0, "Ana")
    assert len(resolved) == 1
    assert resolved[0].winner == "Ana"
    assert resolved[0].is_completed


def test_double_bye_is_left_pending():
    repo = create_mock_match_repo()

    resolved = resolve_walkovers(repo, [_pending(BYE, BYE)])

    assert resolved == []
    repo.update_result.assert_not_called()


def test_match_completed_concurrently_is_skipped():
    repo = MagicMock()
    repo.update_result.return_value = None

    assert resolve_walkovers(repo, [_pending(BYE, "Ben")]) == []
    repo.update_result.assert_called_once_with(1, 0, 3, "Ben")
