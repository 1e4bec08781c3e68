"""Round advancement for knockout rounds.

This module owns the pairing algorithm. It is used both to seed the first
knockout round from a roster and to build round R+1 from the winners of a
completed round R, so the pairing rules exist in one place only.

Pairing rules, given entrants in bracket order:
- Even count: consecutive entrants meet (1 vs 2, 3 vs 4, ...)
- Odd count: the first entrant gets a bye, the rest pair up as above
- Exactly 3 winners of a completed round: the winner of the most lopsided
  match (score differential, then total goals) gets the bye, the other
  two meet
"""

from typing import Optional

from matchroom.exceptions import ConflictError, ValidationError
from matchroom.models import BYE, Competitor, Match, TournamentStatus
from matchroom.utils import setup_logger
from matchroom.walkover import resolve_walkovers

logger = setup_logger(__name__)

ROUND_ROBIN_ROUND = 0
FIRST_KNOCKOUT_ROUND = 1

Pairing = tuple[int, Competitor, Competitor]


# ============================================================================
# Pure pairing functions
# ============================================================================


def is_round_complete(matches: list[Match]) -> bool:
    """A round is complete when it has matches and every one is completed."""
    return bool(matches) and all(m.is_completed for m in matches)


def rank_for_bye(matches: list[Match]) -> list[Match]:
    """Order matches by who most deserves a bye.

    Larger score differential first, then more total goals. Ties keep
    round order (the sort is stable over match_number order).
    """
    ordered = sorted(matches, key=lambda m: m.match_number)
    return sorted(ordered, key=lambda m: (-m.score_differential, -m.total_goals))


def pair_entrants(entrants: list[Competitor]) -> list[Pairing]:
    """Pair entrants in order.

    Returns:
        List of (match_number, team1, team2). A slot where both sides would
        be BYE is skipped and its number is not reused.
    """
    if len(entrants) < 2:
        return []

    pairings: list[Pairing] = []
    remaining = list(entrants)
    number = 1

    if len(remaining) % 2 == 1:
        pairings.append((number, remaining.pop(0), Competitor.bye()))
        number += 1

    for i in range(0, len(remaining), 2):
        home, away = remaining[i], remaining[i + 1]
        if home.is_bye and away.is_bye:
            logger.warning("Skipping slot %s: both sides are BYE", number)
        else:
            pairings.append((number, home, away))
        number += 1

    return pairings


def _winners_in_order(matches: list[Match]) -> list[Competitor]:
    winners = []
    for match in matches:
        winner = match.winning_competitor
        if winner is None:
            raise ValidationError(
                f"Round {match.round} match {match.match_number} has no winner to advance"
            )
        winners.append(winner)
    return winners


def plan_next_round(round_matches: list[Match]) -> list[Pairing]:
    """Work out the pairings of the round after a completed round.

    Args:
        round_matches: All matches of the completed round

    Returns:
        Pairings for the next round (empty when the round was the final)

    Raises:
        ValidationError: If a match has no winner (pending or drawn)
    """
    ordered = sorted(round_matches, key=lambda m: m.match_number)
    winners = _winners_in_order(ordered)

    if len(winners) == 3:
        top = rank_for_bye(ordered)[0]
        others = [m.winning_competitor for m in ordered if m is not top]
        return [
            (1, top.winning_competitor, Competitor.bye()),
            (2, others[0], others[1]),
        ]

    return pair_entrants(winners)


def build_round(tournament_id: Optional[int], round_number: int, pairings: list[Pairing]) -> list[Match]:
    """Turn pairings into pending Match objects for one round."""
    return [
        Match.between(tournament_id, round_number, number, home, away)
        for number, home, away in pairings
    ]


def compute_tournament_status(matches: list[Match]) -> TournamentStatus:
    """Derive tournament status from its matches.

    Pending until a match has been played; walkovers resolved at seeding do
    not count. Completed when the highest round (a knockout or finals round)
    holds a single completed match with no BYE side.
    """
    if not any(m.is_completed and not m.has_bye for m in matches):
        return TournamentStatus.PENDING

    highest = max(m.round for m in matches)
    if highest >= FIRST_KNOCKOUT_ROUND:
        last_round = [m for m in matches if m.round == highest]
        if len(last_round) == 1 and last_round[0].is_completed and not last_round[0].has_bye:
            return TournamentStatus.COMPLETED

    return TournamentStatus.ACTIVE


# ============================================================================
# Engine
# ============================================================================


class RoundAdvancementEngine:
    """Generates knockout rounds as earlier rounds complete.

    This class is responsible for:
    - Seeding the first knockout round from a roster
    - Checking whether a round is complete
    - Creating the next round exactly once (duplicate triggers get ConflictError)
    - Resolving byes in new rounds and chaining further rounds they complete
    - Keeping the tournament status in step with its matches
    """

    def __init__(self, match_repo, tournament_repo=None):
        """Initialize the engine.

        Args:
            match_repo: MatchRepository for reads and batch inserts
            tournament_repo: Optional TournamentRepository for status updates
        """
        self.match_repo = match_repo
        self.tournament_repo = tournament_repo

    def round_complete(self, tournament_id: int, round_number: int) -> bool:
        return is_round_complete(self.match_repo.get_by_round(tournament_id, round_number))

    def _insert_round(self, tournament_id: int, round_number: int, pairings: list[Pairing]) -> list[Match]:
        created = self.match_repo.create_many(build_round(tournament_id, round_number, pairings))
        logger.info(
            "Tournament %s: created %d match(es) for round %d",
            tournament_id,
            len(created),
            round_number,
        )
        resolved = {m.id: m for m in resolve_walkovers(self.match_repo, created)}
        return [resolved.get(m.id, m) for m in created]

    def seed_knockout(self, tournament_id: int, competitors: list[Competitor]) -> list[Match]:
        """Create round 1 of a knockout tournament and run the chain.

        Returns:
            All matches created (round 1 and any rounds completed by byes)
        """
        if self.match_repo.count_in_round(tournament_id, FIRST_KNOCKOUT_ROUND) > 0:
            raise ConflictError(f"Tournament {tournament_id} already has round {FIRST_KNOCKOUT_ROUND}")

        created = self._insert_round(tournament_id, FIRST_KNOCKOUT_ROUND, pair_entrants(competitors))
        created.extend(self.advance_chain(tournament_id, FIRST_KNOCKOUT_ROUND))
        return created

    def advance(self, tournament_id: int, round_number: int) -> list[Match]:
        """Generate round_number + 1 if round_number is complete.

        The round-robin stage (round 0) is never advanced here; its decisive
        match comes from the finals constructor.

        Returns:
            Matches created for the next round (empty if not ready or final)

        Raises:
            ConflictError: If the next round already exists
            ValidationError: If a match of the round has no winner
        """
        if round_number < FIRST_KNOCKOUT_ROUND:
            return []

        round_matches = self.match_repo.get_by_round(tournament_id, round_number)
        if not is_round_complete(round_matches):
            return []

        next_round = round_number + 1
        if self.match_repo.count_in_round(tournament_id, next_round) > 0:
            raise ConflictError(f"Tournament {tournament_id} round {next_round} already exists")

        pairings = plan_next_round(round_matches)
        if not pairings:
            return []

        return self._insert_round(tournament_id, next_round, pairings)

    def advance_chain(self, tournament_id: int, round_number: int) -> list[Match]:
        """Advance from round_number for as long as new rounds complete on their own.

        A round made only of byes is complete as soon as it is created, so
        the chain keeps going until a round needs real play. A conflict means
        another writer already generated the round; the chain stops there.

        Returns:
            All matches created by the chain
        """
        created: list[Match] = []
        current = round_number
        while True:
            try:
                new_matches = self.advance(tournament_id, current)
            except ConflictError as e:
                logger.info("Advancement stopped: %s", e)
                break
            if not new_matches:
                break
            created.extend(new_matches)
            current += 1

        self.refresh_status(tournament_id)
        return created

    def refresh_status(self, tournament_id: int) -> Optional[TournamentStatus]:
        """Recompute and store the tournament status.

        Returns:
            The status, or None when no tournament repository is configured
        """
        if self.tournament_repo is None:
            return None

        status = compute_tournament_status(self.match_repo.get_by_tournament(tournament_id))
        tournament = self.tournament_repo.get_by_id(tournament_id)
        if tournament is not None and tournament.status != status:
            self.tournament_repo.update_status(tournament_id, status)
            logger.info("Tournament %s is now %s", tournament_id, status.value)
        return status
