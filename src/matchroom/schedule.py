"""Tournament initializer: competitors, round-robin fixtures and knockout seeding."""

import random
from typing import Optional

from matchroom.advancement import RoundAdvancementEngine, ROUND_ROBIN_ROUND
from matchroom.models import (
    Competitor,
    Match,
    Player,
    Tournament,
    TournamentFormat,
    TournamentType,
)
from matchroom.utils import setup_logger
from matchroom.validation import validate_multiplicity, validate_roster

logger = setup_logger(__name__)


def build_teams(
    players: list[Player],
    rng: Optional[random.Random] = None,
    shuffle: bool = True,
) -> list[Competitor]:
    """Group players into 2v2 teams.

    Players are shuffled (unless shuffle is False, in which case they are
    taken as already grouped) and consecutive players form a team.

    Args:
        players: Even number of players
        rng: Random generator, for reproducible draws
        shuffle: Shuffle before pairing

    Returns:
        One Competitor per team
    """
    pool = list(players)
    if shuffle:
        (rng or random.Random()).shuffle(pool)
    return [Competitor.from_pair(pool[i], pool[i + 1]) for i in range(0, len(pool) - 1, 2)]


def build_competitors(
    players: list[Player],
    tournament_type: TournamentType,
    rng: Optional[random.Random] = None,
    shuffle: bool = True,
) -> list[Competitor]:
    """Validate a roster and turn it into competitors.

    Raises:
        ValidationError: If the roster cannot form a tournament of this type
    """
    validate_roster(players, tournament_type)
    if tournament_type == TournamentType.TWO_V_TWO:
        return build_teams(players, rng=rng, shuffle=shuffle)
    return [Competitor.from_player(p) for p in players]


def generate_round_robin_fixtures(count: int, multiplicity: int = 1) -> list[tuple[int, int]]:
    """Generate index pairs for a round robin.

    Every unordered pair (i, j) with i < j appears multiplicity times, in
    selection order.

    Examples:
        >>> generate_round_robin_fixtures(3)
        [(0, 1), (0, 2), (1, 2)]
        >>> generate_round_robin_fixtures(2, 2)
        [(0, 1), (0, 1)]
    """
    fixtures = []
    for i in range(count):
        for j in range(i + 1, count):
            fixtures.extend([(i, j)] * multiplicity)
    return fixtures


def generate_round_robin(
    competitors: list[Competitor],
    tournament_id: Optional[int],
    multiplicity: int = 1,
) -> list[Match]:
    """Create the round-0 matches of a round robin.

    Match numbers run from 1 in pair-generation order.
    """
    validate_multiplicity(multiplicity)
    fixtures = generate_round_robin_fixtures(len(competitors), multiplicity)
    return [
        Match.between(tournament_id, ROUND_ROBIN_ROUND, number, competitors[i], competitors[j])
        for number, (i, j) in enumerate(fixtures, start=1)
    ]


def initialize_tournament(
    tournament_repo,
    match_repo,
    tournament: Tournament,
    players: list[Player],
    rng: Optional[random.Random] = None,
    shuffle_teams: bool = True,
) -> tuple[Tournament, list[Match]]:
    """Build and persist a tournament with its initial matches.

    Validation happens before anything is written. If writing the matches
    fails, the tournament row is removed again.

    Args:
        tournament_repo: TournamentRepository
        match_repo: MatchRepository
        tournament: Tournament to create (status pending)
        players: Selected players, in selection order
        rng: Random generator for the 2v2 team draw
        shuffle_teams: Shuffle 2v2 players before grouping them into teams

    Returns:
        (stored tournament, created matches)

    Raises:
        ValidationError: If the roster or multiplicity is invalid
    """
    competitors = build_competitors(players, tournament.type, rng=rng, shuffle=shuffle_teams)
    multiplicity = tournament.matches_per_player or 1
    if tournament.format == TournamentFormat.ROUND_ROBIN:
        validate_multiplicity(multiplicity)

    stored = tournament_repo.create(tournament)
    try:
        if stored.format == TournamentFormat.KNOCKOUT:
            engine = RoundAdvancementEngine(match_repo, tournament_repo)
            matches = engine.seed_knockout(stored.id, competitors)
        else:
            matches = match_repo.create_many(generate_round_robin(competitors, stored.id, multiplicity))
    except Exception:
        logger.error("Could not create matches for tournament %s, removing it", stored.id)
        tournament_repo.session.rollback()
        tournament_repo.delete(stored.id)
        raise

    logger.info(
        "Created %s tournament '%s' (%s) with %d competitors and %d matches",
        stored.format.value,
        stored.name,
        stored.type.value,
        len(competitors),
        len(matches),
    )
    return tournament_repo.get_by_id(stored.id), matches
