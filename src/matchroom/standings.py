"""Standings calculator.

Standings are recomputed from the full match list on every call and never
stored, so there is no aggregate that can drift from the matches.
"""

from datetime import datetime
from typing import Iterable, Optional

from matchroom.models import BYE, Standing

POINTS_WIN = 3
POINTS_DRAW = 1
POINTS_LOSS = 0


def _first_player_id(matches: list, name: str) -> Optional[int]:
    """Player reference of the first match where name appears on either side."""
    for match in matches:
        if match.team1 == name:
            return match.team1_player1
        if match.team2 == name:
            return match.team2_player1
    return None


def calculate_standings(matches: Iterable) -> list[Standing]:
    """Calculate per-competitor aggregates from a list of matches.

    Works on tournament matches and on game history records alike: anything
    with team1/team2/score1/score2 and an is_completed flag.

    Every competitor named in any match gets an entry (BYE excluded), even
    with no completed match. Only completed matches without a BYE side are
    counted.

    Args:
        matches: Matches to aggregate

    Returns:
        Standings in the order competitors first appear (unranked)
    """
    matches = list(matches)
    standings: dict[str, Standing] = {}

    for match in matches:
        for name in (match.team1, match.team2):
            if name != BYE and name not in standings:
                standings[name] = Standing(name=name, player_id=_first_player_id(matches, name))

    for match in matches:
        if not match.is_completed:
            continue
        if match.score1 is None or match.score2 is None:
            continue
        if BYE in (match.team1, match.team2):
            continue

        home = standings[match.team1]
        away = standings[match.team2]

        home.matches += 1
        away.matches += 1

        home.goals_for += match.score1
        home.goals_against += match.score2
        away.goals_for += match.score2
        away.goals_against += match.score1

        if match.score1 > match.score2:
            home.wins += 1
            home.points += POINTS_WIN
            away.losses += 1
            away.points += POINTS_LOSS
        elif match.score2 > match.score1:
            away.wins += 1
            away.points += POINTS_WIN
            home.losses += 1
            home.points += POINTS_LOSS
        else:
            home.draws += 1
            away.draws += 1
            home.points += POINTS_DRAW
            away.points += POINTS_DRAW

    return list(standings.values())


def rank_standings(standings: list[Standing]) -> list[Standing]:
    """Sort standings by points then goal difference and assign positions.

    The sort is stable, so competitors level on both keep their order of
    first appearance.

    Returns:
        New list, best first, with position set (1 = best)
    """
    ranked = sorted(standings, key=lambda s: (-s.points, -s.goal_difference))
    for position, standing in enumerate(ranked, start=1):
        standing.position = position
    return ranked


def calculate_ranked_standings(matches: Iterable) -> list[Standing]:
    """calculate_standings followed by rank_standings."""
    return rank_standings(calculate_standings(matches))


def calculate_leaderboard(
    games: Iterable,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
) -> list[Standing]:
    """Rank competitors over game history within an optional time window.

    Args:
        games: GameRecord rows (typically all games of one room)
        since: Only count games created at or after this time
        until: Only count games created before this time

    Returns:
        Ranked standings
    """
    selected = []
    for game in games:
        created_at = getattr(game, "created_at", None)
        if since is not None and (created_at is None or created_at < since):
            continue
        if until is not None and (created_at is None or created_at >= until):
            continue
        selected.append(game)
    return calculate_ranked_standings(selected)
