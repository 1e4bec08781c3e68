"""Match result recording.

Applies a reported score to one pending tournament match and writes the
matching history row. Advancing the bracket is the caller's next step.
"""

from typing import Any, Optional

from matchroom.exceptions import NotFoundError, ValidationError
from matchroom.models import (
    BYE,
    DRAW,
    Competitor,
    GameRecord,
    Match,
    Tournament,
    TournamentType,
)
from matchroom.utils import setup_logger
from matchroom.validation import validate_scores

logger = setup_logger(__name__)


def determine_winner(team1: str, team2: str, score1: int, score2: int) -> str:
    """Return the winner's name, or DRAW on a level score.

    Examples:
        >>> determine_winner("Ana", "Ben", 2, 1)
        'Ana'
        >>> determine_winner("Ana", "Ben", 1, 1)
        'Draw'
    """
    if score1 > score2:
        return team1
    if score2 > score1:
        return team2
    return DRAW


def record_match_result(
    match_repo,
    game_repo,
    tournament: Tournament,
    match_id: int,
    score1: Any,
    score2: Any,
    acting_user: Optional[str] = None,
) -> Match:
    """Record the score of a pending tournament match.

    Args:
        match_repo: MatchRepository
        game_repo: GameRepository for the history row
        tournament: Tournament the match belongs to
        match_id: Match to update
        score1: Score of team1
        score2: Score of team2
        acting_user: Display name of the user entering the result

    Returns:
        The completed match

    Raises:
        ValidationError: Bad score, a BYE match, or a draw in a knockout round
        NotFoundError: Unknown match, or match already completed
    """
    score1, score2 = validate_scores(score1, score2)

    match = match_repo.get_by_id(match_id)
    if match is None or match.tournament_id != tournament.id:
        raise NotFoundError(f"Match {match_id} not found")
    if match.is_completed:
        raise NotFoundError(f"Match {match_id} is already completed")
    if match.has_bye:
        raise ValidationError(f"Match {match_id} is a walkover and needs no score")

    winner = determine_winner(match.team1, match.team2, score1, score2)
    if winner == DRAW and match.round >= 1:
        raise ValidationError("Knockout and final matches cannot end in a draw")

    # The match update and its history row are committed together
    updated = match_repo.update_result(match_id, score1, score2, winner, commit=False)
    if updated is None:
        raise NotFoundError(f"Match {match_id} is already completed")

    try:
        game_repo.create(
            GameRecord(
                team1=updated.team1,
                team2=updated.team2,
                score1=score1,
                score2=score2,
                winner=winner,
                type=tournament.type,
                team1_player1=updated.team1_player1,
                team1_player2=updated.team1_player2,
                team2_player1=updated.team2_player1,
                team2_player2=updated.team2_player2,
                room_id=tournament.room_id,
                tournament_id=tournament.id,
                created_by=acting_user,
                updated_by=acting_user,
            ),
            commit=False,
        )
        match_repo.session.commit()
    except Exception:
        match_repo.session.rollback()
        raise

    logger.info("Result recorded: %s (by %s)", updated, acting_user or "unknown")
    return updated


def record_game(
    game_repo,
    room_id: int,
    game_type: TournamentType,
    team1: Competitor,
    team2: Competitor,
    score1: Any,
    score2: Any,
    acting_user: Optional[str] = None,
) -> GameRecord:
    """Record a casual (non-tournament) game in the history table.

    Raises:
        ValidationError: Bad score, BYE used as a side, or same competitor twice
    """
    score1, score2 = validate_scores(score1, score2)
    if team1.is_bye or team2.is_bye or BYE in (team1.name, team2.name):
        raise ValidationError("BYE cannot play a game")
    if team1.name == team2.name:
        raise ValidationError("A game needs two different sides")

    players1 = {team1.player1_id, team1.player2_id} - {None}
    players2 = {team2.player1_id, team2.player2_id} - {None}
    if players1 & players2:
        raise ValidationError("A player cannot be on both sides")

    winner = determine_winner(team1.name, team2.name, score1, score2)
    game = game_repo.create(
        GameRecord(
            team1=team1.name,
            team2=team2.name,
            score1=score1,
            score2=score2,
            winner=winner,
            type=game_type,
            team1_player1=team1.player1_id,
            team1_player2=team1.player2_id,
            team2_player1=team2.player1_id,
            team2_player2=team2.player2_id,
            room_id=room_id,
            created_by=acting_user,
            updated_by=acting_user,
        )
    )
    logger.info("Game recorded in room %s: %s %d-%d %s", room_id, team1, score1, score2, team2)
    return game
