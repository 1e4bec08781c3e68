"""Bye/walkover resolution.

A match with exactly one BYE side is finished without play: the other side
wins 3-0. The resolver only finalizes those matches; generating the next
round is left to the advancement engine.
"""

from typing import Optional

from matchroom.models import BYE, WALKOVER_SCORE, Match
from matchroom.utils import setup_logger

logger = setup_logger(__name__)


def is_walkover(match: Match) -> bool:
    """True for a pending match with exactly one BYE side."""
    return not match.is_completed and match.bye_sides == 1


def walkover_result(match: Match) -> tuple[int, int, str]:
    """Return (score1, score2, winner) for a walkover match.

    Raises:
        ValueError: If the match does not have exactly one BYE side
    """
    if match.bye_sides != 1:
        raise ValueError(f"Match {match} is not a walkover")

    if match.team2 == BYE:
        return WALKOVER_SCORE, 0, match.team1
    return 0, WALKOVER_SCORE, match.team2


def resolve_walkovers(match_repo, matches: list[Match]) -> list[Match]:
    """Auto-complete every walkover in a batch of matches.

    Matches where both sides are BYE are left pending and logged, since they
    point at a seeding problem rather than a real pairing.

    Args:
        match_repo: MatchRepository used to persist the results
        matches: Newly created matches of some round

    Returns:
        The matches that were completed, as stored
    """
    resolved = []
    for match in matches:
        if match.is_completed:
            continue

        if match.bye_sides == 2:
            logger.warning(
                "Tournament %s round %s match %s has BYE on both sides, leaving it pending",
                match.tournament_id,
                match.round,
                match.match_number,
            )
            continue

        if not is_walkover(match):
            continue

        score1, score2, winner = walkover_result(match)
        stored: Optional[Match] = match_repo.update_result(match.id, score1, score2, winner)
        if stored is None:
            # Completed by someone else in the meantime
            continue

        logger.info(
            "Walkover: %s advances from round %s match %s",
            winner,
            match.round,
            match.match_number,
        )
        resolved.append(stored)

    return resolved
