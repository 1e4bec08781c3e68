"""Finals constructor for round-robin tournaments."""

from typing import Optional

from matchroom.advancement import ROUND_ROBIN_ROUND, is_round_complete
from matchroom.exceptions import ConflictError, ValidationError
from matchroom.models import Competitor, Match, Standing
from matchroom.standings import calculate_ranked_standings
from matchroom.utils import setup_logger

logger = setup_logger(__name__)


def select_finalists(standings: list[Standing]) -> tuple[Standing, Standing]:
    """Pick the top two by points, then goal difference.

    Raises:
        ValidationError: If fewer than two competitors have standings
    """
    if len(standings) < 2:
        raise ValidationError(f"Need at least 2 standings to build a final (got {len(standings)})")
    ranked = sorted(standings, key=lambda s: (-s.points, -s.goal_difference))
    return ranked[0], ranked[1]


def resolve_competitor(matches: list[Match], name: str) -> Competitor:
    """Find a competitor's player references from the first match they played.

    Falls back to a name-only competitor when no match mentions the name.
    """
    for match in matches:
        if match.team1 == name:
            return match.competitor1
        if match.team2 == name:
            return match.competitor2
    logger.warning("No player reference found for finalist '%s'", name)
    return Competitor(name=name)


def build_finals_match(matches: list[Match], tournament_id: Optional[int]) -> Match:
    """Build the decisive match once the round-robin stage is done.

    Args:
        matches: All matches of the tournament
        tournament_id: Tournament the final belongs to

    Returns:
        Pending Match, round = highest round + 1, match_number = 1

    Raises:
        ValidationError: Stage not finished, or fewer than two competitors
        ConflictError: A round after the round-robin stage already exists
    """
    stage = [m for m in matches if m.round == ROUND_ROBIN_ROUND]
    if not stage:
        raise ValidationError("Tournament has no round-robin stage")
    if not is_round_complete(stage):
        raise ValidationError("The round-robin stage is not finished yet")

    later = [m for m in matches if m.round > ROUND_ROBIN_ROUND]
    if later:
        raise ConflictError("A final has already been created for this tournament")

    first, second = select_finalists(calculate_ranked_standings(stage))
    home = resolve_competitor(stage, first.name)
    away = resolve_competitor(stage, second.name)
    next_round = max(m.round for m in matches) + 1
    return Match.between(tournament_id, next_round, 1, home, away)


def create_finals_match(match_repo, tournament_id: int) -> Match:
    """Build and persist the final of a round-robin tournament.

    Raises:
        ValidationError: Stage not finished, or fewer than two competitors
        ConflictError: The final already exists
    """
    final = build_finals_match(match_repo.get_by_tournament(tournament_id), tournament_id)
    created = match_repo.create_many([final])[0]
    logger.info("Tournament %s: final %s vs %s created", tournament_id, created.team1, created.team2)
    return created
