"""Tests for knockout pairing and the round advancement engine."""

import pytest

from conftest import completed_match
from matchroom.advancement import (
    RoundAdvancementEngine,
    compute_tournament_status,
    is_round_complete,
    pair_entrants,
    plan_next_round,
    rank_for_bye,
)
from matchroom.exceptions import ConflictError, ValidationError
from matchroom.models import (
    BYE,
    Competitor,
    Match,
    Tournament,
    TournamentFormat,
    TournamentStatus,
    TournamentType,
)
from matchroom.storage import MatchRepository, RoomRepository, TournamentRepository


def _names(pairings):
    return [(number, home.name, away.name) for number, home, away in pairings]


def _competitors(*names):
    return [Competitor(name=n) for n in names]


# ============================================================================
# Pairing
# ============================================================================


def test_pair_even_count():
    pairings = pair_entrants(_competitors("A", "B", "C", "D"))
    assert _names(pairings) == [(1, "A", "B"), (2, "C", "D")]


def test_pair_odd_count_gives_first_entrant_a_bye():
    pairings = pair_entrants(_competitors("A", "B", "C", "D", "E"))
    assert _names(pairings) == [(1, "A", BYE), (2, "B", "C"), (3, "D", "E")]


def test_pair_two_and_one():
    assert _names(pair_entrants(_competitors("A", "B"))) == [(1, "A", "B")]
    assert pair_entrants(_competitors("A")) == []
    assert pair_entrants([]) == []


def test_double_bye_slot_is_skipped_and_number_not_reused():
    entrants = [Competitor.bye(), Competitor.bye(), Competitor(name="A"), Competitor(name="B")]
    assert _names(pair_entrants(entrants)) == [(2, "A", "B")]

    entrants = [Competitor(name="X"), Competitor.bye(), Competitor.bye()]
    assert _names(pair_entrants(entrants)) == [(1, "X", BYE)]


def test_three_winners_bye_goes_to_largest_differential():
    round_matches = [
        completed_match("A", "B", 3, 2, round=1, number=1),
        completed_match("C", "D", 4, 1, round=1, number=2),
        completed_match("E", "F", 2, 0, round=1, number=3),
    ]
    assert _names(plan_next_round(round_matches)) == [(1, "C", BYE), (2, "A", "E")]


def test_three_winners_total_goals_breaks_differential_tie():
    round_matches = [
        completed_match("A", "B", 2, 1, round=1, number=1),
        completed_match("C", "D", 3, 2, round=1, number=2),
        completed_match("E", "F", 1, 0, round=1, number=3),
    ]
    assert _names(plan_next_round(round_matches)) == [(1, "C", BYE), (2, "A", "E")]


def test_three_winners_full_tie_keeps_round_order():
    round_matches = [
        completed_match("E", "F", 1, 0, round=1, number=3),
        completed_match("A", "B", 1, 0, round=1, number=1),
        completed_match("C", "D", 1, 0, round=1, number=2),
    ]
    assert rank_for_bye(round_matches)[0].match_number == 1
    assert _names(plan_next_round(round_matches)) == [(1, "A", BYE), (2, "C", "E")]


def test_walkover_counts_in_bye_ranking():
    round_matches = [
        completed_match("A", BYE, 3, 0, round=1, number=1),
        completed_match("B", "C", 2, 1, round=1, number=2),
        completed_match("D", "E", 1, 0, round=1, number=3),
    ]
    assert _names(plan_next_round(round_matches)) == [(1, "A", BYE), (2, "B", "D")]


def test_next_round_from_four_and_two_winners():
    four = [completed_match(f"W{i}", f"L{i}", 2, 0, round=1, number=i) for i in range(1, 5)]
    assert _names(plan_next_round(four)) == [(1, "W1", "W2"), (2, "W3", "W4")]

    two = four[:2]
    assert _names(plan_next_round(two)) == [(1, "W1", "W2")]

    final = four[:1]
    assert plan_next_round(final) == []


def test_next_round_keeps_player_references():
    match = completed_match("A", "B", 2, 0, round=1, number=1)
    match.team1_player1 = 11
    other = completed_match("C", "D", 0, 2, round=1, number=2)
    other.team2_player1 = 44

    (number, home, away), = plan_next_round([match, other])
    assert (home.name, home.player1_id) == ("A", 11)
    assert (away.name, away.player1_id) == ("D", 44)


def test_plan_next_round_requires_a_winner_everywhere():
    pending = Match(tournament_id=1, round=1, match_number=2, team1="C", team2="D")
    with pytest.raises(ValidationError):
        plan_next_round([completed_match("A", "B", 1, 0, round=1, number=1), pending])


def test_is_round_complete():
    assert not is_round_complete([])
    assert is_round_complete([completed_match("A", "B", 1, 0)])
    assert not is_round_complete(
        [completed_match("A", "B", 1, 0), Match(tournament_id=1, round=0, match_number=2, team1="A", team2="C")]
    )


# ============================================================================
# Status
# ============================================================================


def test_status_lifecycle():
    pending = Match(tournament_id=1, round=0, match_number=1, team1="A", team2="B")
    assert compute_tournament_status([pending]) == TournamentStatus.PENDING

    stage = [completed_match("A", "B", 1, 0)]
    assert compute_tournament_status(stage) == TournamentStatus.ACTIVE

    final = completed_match("A", "B", 2, 1, round=1)
    assert compute_tournament_status(stage + [final]) == TournamentStatus.COMPLETED


def test_walkovers_alone_keep_tournament_pending():
    matches = [
        completed_match("A", BYE, 3, 0, round=1, number=1),
        Match(tournament_id=1, round=1, match_number=2, team1="B", team2="C"),
    ]
    assert compute_tournament_status(matches) == TournamentStatus.PENDING

    matches[1] = completed_match("B", "C", 1, 0, round=1, number=2)
    assert compute_tournament_status(matches) == TournamentStatus.ACTIVE


def test_single_walkover_in_last_round_is_not_a_final():
    matches = [
        completed_match("A", "B", 1, 0, round=1, number=1),
        completed_match("A", BYE, 3, 0, round=2, number=1),
    ]
    assert compute_tournament_status(matches) == TournamentStatus.ACTIVE


# ============================================================================
# Engine against storage
# ============================================================================


@pytest.fixture
def engine_setup(session):
    room = RoomRepository(session).create("Office")
    tournaments = TournamentRepository(session)
    tournament = tournaments.create(
        Tournament(name="Cup", type=TournamentType.ONE_V_ONE, room_id=room.id, format=TournamentFormat.KNOCKOUT)
    )
    matches = MatchRepository(session)
    return RoundAdvancementEngine(matches, tournaments), matches, tournaments, tournament.id


def test_seed_knockout_resolves_byes(engine_setup):
    engine, matches, _, tid = engine_setup

    created = engine.seed_knockout(tid, _competitors("A", "B", "C"))

    assert [(m.round, m.match_number, m.team1, m.team2) for m in created] == [
        (1, 1, "A", BYE),
        (1, 2, "B", "C"),
    ]
    first = matches.get_by_round(tid, 1)[0]
    assert first.is_completed
    assert (first.score1, first.score2, first.winner) == (3, 0, "A")


def test_seed_knockout_twice_conflicts(engine_setup):
    engine, _, _, tid = engine_setup
    engine.seed_knockout(tid, _competitors("A", "B"))

    with pytest.raises(ConflictError):
        engine.seed_knockout(tid, _competitors("A", "B"))


def test_advance_waits_for_round_to_complete(engine_setup):
    engine, matches, _, tid = engine_setup
    engine.seed_knockout(tid, _competitors("A", "B", "C", "D"))

    first = matches.get_by_round(tid, 1)[0]
    matches.update_result(first.id, 2, 0, "A")

    assert engine.advance(tid, 1) == []
    assert matches.count_in_round(tid, 2) == 0


def test_advance_creates_next_round_exactly_once(engine_setup):
    engine, matches, tournaments, tid = engine_setup
    engine.seed_knockout(tid, _competitors("A", "B", "C", "D"))
    m1, m2 = matches.get_by_round(tid, 1)
    matches.update_result(m1.id, 2, 0, "A")
    matches.update_result(m2.id, 0, 2, "D")

    created = engine.advance(tid, 1)
    assert [(m.team1, m.team2) for m in created] == [("A", "D")]

    with pytest.raises(ConflictError):
        engine.advance(tid, 1)

    # The chain treats the conflict as "already done"
    assert engine.advance_chain(tid, 1) == []
    assert matches.count_in_round(tid, 2) == 1
    assert tournaments.get_by_id(tid).status == TournamentStatus.ACTIVE


def test_round_zero_is_never_advanced(engine_setup):
    engine, matches, _, tid = engine_setup
    matches.create_many([Match.between(tid, 0, 1, Competitor(name="A"), Competitor(name="B"))])
    stage = matches.get_by_round(tid, 0)[0]
    matches.update_result(stage.id, 1, 0, "A")

    assert engine.advance(tid, 0) == []
    assert matches.max_round(tid) == 0


def test_engine_without_tournament_repo_skips_status(engine_setup):
    _, matches, _, tid = engine_setup
    engine = RoundAdvancementEngine(matches)
    assert engine.refresh_status(tid) is None


def test_five_winners_first_gets_bye():
    round_matches = [
        completed_match(f"W{i}", f"L{i}", 1, 0, round=2, number=i) for i in range(1, 6)
    ]
    assert _names(plan_next_round(round_matches)) == [
        (1, "W1", BYE),
        (2, "W2", "W3"),
        (3, "W4", "W5"),
    ]
